# sheet_ledger/sheets/__init__.py

# Expose the high-level table operations and the client they run against.
# Route handlers should not need to build A1 addresses or map grids themselves.
#
# You can now import like this:
# from sheet_ledger.sheets import SheetsClient, add_record, get_all_data

from .api import SheetsClient
from .handler import (
    get_all_data,
    get_table_records,
    add_record,
    update_record,
    delete_record
)
