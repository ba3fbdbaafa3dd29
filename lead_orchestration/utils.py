# lead_orchestration/utils.py
"""Small string helpers shared by the validator, gateway and orchestrator."""

from __future__ import annotations

import re
from typing import Any

_NON_DIGITS = re.compile(r"\D+", re.ASCII)


def only_digits(value: Any) -> str:
    """
    Strip everything except ASCII digits.

    >>> only_digits("+91 98765-43210")
    '919876543210'
    """
    if value is None:
        return ""
    return _NON_DIGITS.sub("", str(value))


def trim_quotes(value: Any) -> str:
    """Trim whitespace and one pair of matching surrounding quotes."""
    text = str(value if value is not None else "").strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        text = text[1:-1]
    return text
