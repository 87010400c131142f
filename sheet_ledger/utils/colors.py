# sheet_ledger/utils/colors.py
"""
Conversions between CSS hex colors and the Sheets API Color object.

The API represents colors as {'red': r, 'green': g, 'blue': b} with floats in
[0, 1], and omits components that are zero.
"""

import re
from typing import Dict, Optional

_HEX_PATTERN = re.compile(r'^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{6})$')

WHITE = '#ffffff'


def hex_to_rgb(value: str) -> Dict[str, float]:
    """
    Parse '#rgb' or '#rrggbb' (leading '#' optional) into a Sheets Color.

    Raises:
        ValueError: If the value is not a hex color
    """
    match = _HEX_PATTERN.match((value or '').strip())
    if not match:
        raise ValueError(f"Not a hex color: {value!r}")

    digits = match.group(1)
    if len(digits) == 3:
        digits = ''.join(ch * 2 for ch in digits)

    return {
        'red': int(digits[0:2], 16) / 255,
        'green': int(digits[2:4], 16) / 255,
        'blue': int(digits[4:6], 16) / 255,
    }


def rgb_to_hex(color: Optional[Dict[str, float]]) -> Optional[str]:
    """Format a Sheets Color as lowercase '#rrggbb'. Returns None when there is no color."""
    if color is None:
        return None

    channels = []
    for key in ('red', 'green', 'blue'):
        component = float(color.get(key, 0) or 0)
        component = min(max(component, 0.0), 1.0)
        channels.append(int(round(component * 255)))

    return '#{:02x}{:02x}{:02x}'.format(*channels)


def normalize_hex(value: str) -> str:
    """Canonical lowercase '#rrggbb' form of a hex color string."""
    return rgb_to_hex(hex_to_rgb(value))
