import sys

from xlsx_to_csv.cli import main

sys.exit(main())
