"""xlsx-to-csv - Streaming conversion of spreadsheet worksheets to CSV."""

from xlsx_to_csv.converter import SheetConverter, convert_sheet
from xlsx_to_csv.models import ConversionResult

__all__ = ["ConversionResult", "SheetConverter", "convert_sheet"]
__version__ = "0.1.0"
