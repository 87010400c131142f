"""
Tabular record adapter.

Pure translation between spreadsheet grids and keyed records, plus the A1
address arithmetic needed to write a single field back. Nothing in here talks
to Google Sheets.
"""

import re
from typing import Any, Dict, List, Sequence

from sheet_ledger.errors import InvalidRowNumber, UnknownColumn
from sheet_ledger.utils.text import normalize_header

ROW_NUMBER = 'ROW_NUMBER'

# Row 1 is always the header row
FIRST_DATA_ROW = 2

_PLAIN_SHEET_NAME = re.compile(r'^[A-Za-z0-9_]+$')


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def grid_to_records(grid: Sequence[Sequence[Any]]) -> List[Dict[str, Any]]:
    """
    Convert a grid (header row followed by data rows) into keyed records.

    Every record carries every header field, with missing trailing cells
    filled with an empty string, plus ROW_NUMBER holding the 1-based sheet
    row the record came from. Cells beyond the header width are ignored.

    Args:
        grid: Rows as returned by the Sheets values API

    Returns:
        List[Dict[str, Any]]: One record per data row, in sheet order
    """
    if not grid or not grid[0]:
        return []

    header = [normalize_header(label) for label in grid[0]]
    records = []

    for i, row in enumerate(grid[1:]):
        record = {}
        for j, field in enumerate(header):
            record[field] = _cell_text(row[j]) if j < len(row) else ""
        record[ROW_NUMBER] = i + FIRST_DATA_ROW
        records.append(record)

    return records


def column_letter_to_index(letters: str) -> int:
    """
    Decode a bijective base-26 column letter: A=1, Z=26, AA=27, AB=28.

    The result is 1-based. Grid ranges in formatting requests are 0-based,
    so subtract one there.

    Raises:
        ValueError: If letters is empty or contains anything but A-Z
    """
    if not isinstance(letters, str) or not letters:
        raise ValueError(f"Invalid column letter: {letters!r}")

    index = 0
    for ch in letters.upper():
        if not 'A' <= ch <= 'Z':
            raise ValueError(f"Invalid column letter: {letters!r}")
        index = index * 26 + (ord(ch) - ord('A') + 1)
    return index


def column_index_to_letter(index: int) -> str:
    """Encode a 1-based column index as letters: 1 -> 'A', 27 -> 'AA'."""
    if isinstance(index, bool) or not isinstance(index, int) or index < 1:
        raise ValueError(f"Column index must be a positive integer: {index!r}")

    letters = []
    while index > 0:
        index, remainder = divmod(index - 1, 26)
        letters.append(chr(ord('A') + remainder))
    return ''.join(reversed(letters))


def resolve_column(header: Sequence[Any], field: str, sheet_name: str = "") -> str:
    """
    Find the column letter for a field in the live header row.

    Both the header labels and the requested field are normalized, so
    'Descrição' and 'Descricao' resolve to the same column. When a label is
    repeated, the rightmost one wins, matching grid_to_records.

    Raises:
        UnknownColumn: If the field is empty, synthetic or not in the header
    """
    wanted = normalize_header(field)
    if not wanted or wanted == ROW_NUMBER:
        raise UnknownColumn(str(field), sheet_name)

    position = None
    for j, label in enumerate(header):
        if normalize_header(label) == wanted:
            position = j

    if position is None:
        raise UnknownColumn(str(field), sheet_name)

    return column_index_to_letter(position + 1)


def parse_row_number(value: Any) -> int:
    """
    Coerce a client-supplied ROW_NUMBER into an int >= 2.

    JSON clients send either numbers or numeric strings.

    Raises:
        InvalidRowNumber: If the value is not an integer data row
    """
    if isinstance(value, bool):
        raise InvalidRowNumber(value)

    if isinstance(value, int):
        row_number = value
    elif isinstance(value, float) and value.is_integer():
        row_number = int(value)
    elif isinstance(value, str) and value.strip().isdecimal():
        row_number = int(value.strip())
    else:
        raise InvalidRowNumber(value)

    if row_number < FIRST_DATA_ROW:
        raise InvalidRowNumber(value)
    return row_number


def quote_sheet_name(sheet_name: str) -> str:
    """Quote a sheet name for A1 notation when it is not a plain identifier."""
    if _PLAIN_SHEET_NAME.match(sheet_name):
        return sheet_name
    return "'" + sheet_name.replace("'", "''") + "'"


def build_cell_address(sheet_name: str, row_number: int, column_letter: str) -> str:
    """
    Build a single-cell A1 address such as 'Registro!C5'.

    Raises:
        InvalidRowNumber: If row_number would address the header or less
    """
    if isinstance(row_number, bool) or not isinstance(row_number, int) or row_number < FIRST_DATA_ROW:
        raise InvalidRowNumber(row_number)

    # Validates the letters as a side effect
    column_letter_to_index(column_letter)

    return f"{quote_sheet_name(sheet_name)}!{column_letter.upper()}{row_number}"


def build_row(header: Sequence[Any], payload: Dict[str, Any]) -> List[Any]:
    """
    Lay out a payload as a row following the header order.

    Payload keys are normalized the same way as header labels. Fields the
    payload does not mention are written as empty strings; payload keys with
    no matching header are dropped.
    """
    values = {normalize_header(key): value for key, value in payload.items()}
    row = []
    for label in header:
        value = values.get(normalize_header(label))
        row.append("" if value is None else value)
    return row
