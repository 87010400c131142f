# sheet_ledger/utils/text.py
"""
Header-name normalization shared by the read and write paths.

Sheet headers are written by hand in Portuguese ("Descrição", "Mês"), while
browser clients tend to send unaccented keys. Both sides go through
normalize_header so a field looked up on write matches the key produced on
read.
"""

import unicodedata


def strip_accents(text: str) -> str:
    """Remove combining diacritical marks: 'Método' -> 'Metodo'."""
    decomposed = unicodedata.normalize('NFKD', text)
    return ''.join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_header(label) -> str:
    """
    Normalize a header label or request key.

    Args:
        label: Raw header cell or JSON key (None is treated as empty)

    Returns:
        str: Label without surrounding whitespace and without accents
    """
    if label is None:
        return ""
    return strip_accents(str(label).strip())
