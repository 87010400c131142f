"""
Table registry for the ledger spreadsheet.

Each logical table maps to one worksheet. The field lists are the canonical
column order used when a worksheet has no header yet; once a header exists,
columns are always resolved against the live header row.
"""

from typing import Any, Dict

from sheet_ledger.errors import UnknownTable
from sheet_ledger.utils.text import normalize_header

# Fallback when an organizer has neither a background nor a stored color
DEFAULT_TAG_COLOR = '#cccccc'

# 'gender' is the Portuguese ending used in response messages ("Meta adicionada")
TABLES: Dict[str, Dict[str, Any]] = {
    'registro': {
        'sheet_name': 'Registro',
        'label': 'Registro',
        'gender': 'o',
        'fields': [
            'Data', 'Valor', 'Tag 1', 'Tag 2', 'Tag 3', 'Tag 4',
            'Descrição', 'Método de Pagamento', 'Tipo'
        ],
        'required': ['Data'],
        'color_field': None,
    },
    'metas': {
        'sheet_name': 'Metas',
        'label': 'Meta',
        'gender': 'a',
        'fields': ['Mês', 'Tag', 'Meta'],
        'required': ['Mês', 'Tag'],
        'color_field': None,
    },
    'organizadores': {
        'sheet_name': 'Organizadores',
        'label': 'Organizador',
        'gender': 'o',
        'fields': ['Tag', 'Método de Pagamento', 'Tipo', 'Cor'],
        'required': ['Tag'],
        'color_field': 'Cor',
    },
}


def get_table(table_key: str) -> Dict[str, Any]:
    """
    Look up a table definition by key.

    Raises:
        UnknownTable: If the key is not registered
    """
    try:
        return TABLES[table_key]
    except KeyError:
        raise UnknownTable(table_key)


def is_color_field(table: Dict[str, Any], field: str) -> bool:
    """True when field names the table's display color column."""
    color_field = table.get('color_field')
    if not color_field:
        return False
    return normalize_header(field) == normalize_header(color_field)
