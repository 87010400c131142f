# sheet_ledger/utils/__init__.py

from .text import normalize_header, strip_accents
from .colors import hex_to_rgb, rgb_to_hex, normalize_hex, WHITE
