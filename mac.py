# ─────────────────────────────────────────────────────────────────
# mac.py - MAC Address Normalization
#
# Devices and users type MAC addresses in many spellings. Every MAC
# is stored and compared in one canonical form:
#   aa:bb:cc:dd:ee:ff
# ─────────────────────────────────────────────────────────────────

import re
from typing import Optional

_NON_HEX = re.compile(r"[^0-9a-f]")


def normalize_mac(raw: Optional[str]) -> Optional[str]:
    """
    Canonical lower-case, colon-separated MAC address.

    Accepts "AA:BB:CC:DD:EE:FF", "aabbccddeeff", "AA-BB-CC-DD-EE-FF"...
    Returns None unless the input holds exactly 12 hex digits.
    """
    if not raw:
        return None

    digits = _NON_HEX.sub("", str(raw).lower())
    if len(digits) != 12:
        return None

    return ":".join(digits[i:i + 2] for i in range(0, 12, 2))
