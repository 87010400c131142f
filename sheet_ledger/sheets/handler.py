"""
High-level ledger operations for the Sheet Ledger API.

This module provides a clean interface for all table operations, abstracting
away A1 addressing and header mapping. It manages the three ledger tables
(Registro, Metas and Organizadores) through an injected SheetsClient.

Request payloads are validated here before any remote call is made. Cell
formatting (the organizer display color) is a secondary, best-effort write:
its failure is logged and reported as a warning, never as a failed request.
"""

import logging
from typing import Any, Dict, List, Optional

from gspread.exceptions import GSpreadException
from gspread.utils import a1_to_rowcol

from sheet_ledger.errors import (
    FormattingError,
    RemoteOperationError,
    UnknownColumn,
    ValidationError,
)
from sheet_ledger.sheets.api import SheetsClient
from sheet_ledger.sheets.records import (
    ROW_NUMBER,
    build_cell_address,
    build_row,
    grid_to_records,
    parse_row_number,
    resolve_column,
)
from sheet_ledger.sheets.tables import (
    DEFAULT_TAG_COLOR,
    TABLES,
    get_table,
    is_color_field,
)
from sheet_ledger.utils.colors import WHITE, hex_to_rgb, rgb_to_hex
from sheet_ledger.utils.text import normalize_header

# Set up logging
logger = logging.getLogger(__name__)

UPDATE_FIELDS = [ROW_NUMBER, 'column', 'value']


def _require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError('O corpo da requisição deve ser um objeto JSON.')
    return payload


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _require_fields(payload: Dict[str, Any], fields: List[str]):
    """
    Presence check on request fields, by normalized name.

    Raises:
        ValidationError: Naming every missing field
    """
    present = {normalize_header(key): value for key, value in payload.items()}
    missing = [field for field in fields if _is_blank(present.get(normalize_header(field)))]
    if missing:
        raise ValidationError(f"Dados incompletos ({', '.join(missing)} faltando).")


def _appended_row_number(response: Dict[str, Any]) -> int:
    """
    Extract the row an append landed on from 'updates.updatedRange'.

    Raises:
        FormattingError: If the response carries no usable range
    """
    updated_range = response.get('updates', {}).get('updatedRange', '')
    cell = updated_range.rsplit('!', 1)[-1].split(':', 1)[0]
    try:
        row_number, _ = a1_to_rowcol(cell)
    except (GSpreadException, ValueError, AttributeError):
        raise FormattingError(f"Não foi possível identificar a linha inserida ({updated_range!r}).")
    return row_number


def apply_tag_color(client: SheetsClient, sheet_name: str, row_number: int,
                    column_letter: str, value: str) -> Optional[FormattingError]:
    """
    Best-effort background color write for a tag's color cell.

    A blank value clears the background so the cleared text is what reads back.

    Returns:
        Optional[FormattingError]: None on success, the logged failure otherwise
    """
    try:
        color = None if _is_blank(value) else hex_to_rgb(value)
        client.set_background_color(sheet_name, row_number, column_letter, color)
    except (ValueError, RemoteOperationError) as e:
        detail = getattr(e, 'cause', '') or str(e)
        error = FormattingError(
            f"Não foi possível aplicar a cor de fundo em {column_letter}{row_number}: {detail}"
        )
        logger.warning(f"Formatting failed on '{sheet_name}'!{column_letter}{row_number}: {detail}")
        return error
    return None


def resolve_tag_color(background: Optional[Dict[str, float]], text: Any) -> str:
    """
    Decide which color a tag is displayed with.

    The cell background wins over the stored text. A white background is the
    sheet default and counts as no background. With neither set the default
    tag color is used.
    """
    background_hex = rgb_to_hex(background)
    if background_hex and background_hex != WHITE:
        return background_hex
    if not _is_blank(text):
        return str(text).strip()
    return DEFAULT_TAG_COLOR


def _apply_background_colors(client: SheetsClient, table: Dict[str, Any],
                             header: List[str], records: List[Dict[str, Any]]):
    color_key = normalize_header(table['color_field'])
    try:
        column_letter = resolve_column(header, color_key, table['sheet_name'])
    except UnknownColumn:
        logger.warning(f"No '{table['color_field']}' column in '{table['sheet_name']}', skipping colors")
        return

    try:
        backgrounds = client.get_background_colors(table['sheet_name'], column_letter)
    except RemoteOperationError as e:
        # Text values are still usable
        logger.warning(f"Could not read backgrounds of '{table['sheet_name']}': {e.cause}")
        backgrounds = {}

    for record in records:
        record[color_key] = resolve_tag_color(backgrounds.get(record[ROW_NUMBER]), record.get(color_key))


def get_table_records(client: SheetsClient, table_key: str) -> List[Dict[str, Any]]:
    """
    Read one table as records.

    Args:
        client (SheetsClient): Connected sheets client
        table_key (str): Key in TABLES

    Returns:
        List[Dict[str, Any]]: Records with ROW_NUMBER, in sheet order
    """
    table = get_table(table_key)
    grid = client.get_values(table['sheet_name'])
    records = grid_to_records(grid)

    if table['color_field'] and records:
        _apply_background_colors(client, table, grid[0], records)

    logger.info(f"Loaded {len(records)} records from '{table['sheet_name']}'")
    return records


def get_all_data(client: SheetsClient) -> Dict[str, List[Dict[str, Any]]]:
    """Read every table, keyed by table key."""
    return {table_key: get_table_records(client, table_key) for table_key in TABLES}


def _success(message: str, updates: Dict[str, Any],
             warnings: Optional[List[FormattingError]] = None) -> Dict[str, Any]:
    result = {'success': True, 'message': message, 'updates': updates}
    if warnings:
        result['warnings'] = [warning.message for warning in warnings]
    return result


def add_record(client: SheetsClient, table_key: str, payload: Any) -> Dict[str, Any]:
    """
    Append a record to a table.

    The row is laid out following the live header. A worksheet without a
    header first gets the canonical one.

    Raises:
        ValidationError: If a required field is missing (no remote call made)
        RemoteOperationError: If the append fails
    """
    table = get_table(table_key)
    payload = _require_object(payload)
    _require_fields(payload, table['required'])

    sheet_name = table['sheet_name']
    header = client.get_header(sheet_name)
    if not header:
        logger.info(f"'{sheet_name}' has no header row, writing the default one")
        header = list(table['fields'])
        client.append_row(sheet_name, header)

    response = client.append_row(sheet_name, build_row(header, payload))

    warnings = []
    color_field = table['color_field']
    if color_field:
        color_value = {normalize_header(k): v for k, v in payload.items()}.get(normalize_header(color_field))
        if not _is_blank(color_value):
            try:
                row_number = _appended_row_number(response)
                column_letter = resolve_column(header, color_field, sheet_name)
            except (FormattingError, UnknownColumn) as e:
                logger.warning(f"Skipping background color on '{sheet_name}': {e.message}")
                warnings.append(FormattingError(e.message))
            else:
                error = apply_tag_color(client, sheet_name, row_number, column_letter, str(color_value))
                if error:
                    warnings.append(error)

    return _success(f"{table['label']} adicionad{table['gender']} com sucesso!", response, warnings)


def update_record(client: SheetsClient, table_key: str, payload: Any) -> Dict[str, Any]:
    """
    Overwrite one field of one record.

    Payload: {'ROW_NUMBER': <row>, 'column': <field name>, 'value': <new value>}.
    An empty string value clears the cell; a missing or null value is rejected.

    Raises:
        ValidationError: Missing field (no remote call made)
        InvalidRowNumber: ROW_NUMBER below 2 (no remote call made)
        UnknownColumn: Field not in the live header (header read, nothing written)
        RemoteOperationError: If the write fails
    """
    table = get_table(table_key)
    payload = _require_object(payload)

    missing = [field for field in UPDATE_FIELDS if field not in payload or payload[field] is None]
    missing += [field for field in (ROW_NUMBER, 'column')
                if field not in missing and _is_blank(payload[field])]
    if missing:
        raise ValidationError(f"Dados incompletos ({', '.join(missing)} faltando).")

    sheet_name = table['sheet_name']
    row_number = parse_row_number(payload[ROW_NUMBER])
    column = str(payload['column'])
    value = payload['value']

    header = client.get_header(sheet_name)
    column_letter = resolve_column(header, column, sheet_name)
    address = build_cell_address(sheet_name, row_number, column_letter)

    response = client.update_cell(address, value)

    warnings = []
    if is_color_field(table, column):
        error = apply_tag_color(client, sheet_name, row_number, column_letter, str(value))
        if error:
            warnings.append(error)

    return _success(f"{table['label']} atualizad{table['gender']} com sucesso!", response, warnings)


def delete_record(client: SheetsClient, table_key: str, payload: Any) -> Dict[str, Any]:
    """
    Delete the row holding a record.

    Rows below shift up, so row numbers held by clients are stale afterwards
    and must be refetched.

    Raises:
        ValidationError: Missing ROW_NUMBER (no remote call made)
        InvalidRowNumber: ROW_NUMBER below 2 (no remote call made)
        RemoteOperationError: If the delete fails
    """
    table = get_table(table_key)
    payload = _require_object(payload)
    if _is_blank(payload.get(ROW_NUMBER)):
        raise ValidationError(f"Dados incompletos ({ROW_NUMBER} faltando).")

    row_number = parse_row_number(payload[ROW_NUMBER])
    response = client.delete_row(table['sheet_name'], row_number)

    return _success(f"{table['label']} excluíd{table['gender']} com sucesso!", response)
