"""
shop_history/descriptions.py

Cleanup for values read from the chosen description column.
"""

from __future__ import annotations

import re
from typing import Final

from shop_history.types import GENERAL_REPAIR_LABEL

MAX_DESCRIPTION_LENGTH: Final[int] = 90

# Whole-value match: a single bare word such as "Lucas" or "O'Neil".
_BARE_NAME = re.compile(r"^[a-zA-Z.'-]+$")
_ROLE_PREFIX = re.compile(r"^(tech|technician|advisor|writer)\s*[:\-]\s*", re.IGNORECASE)


def looks_like_bare_name(value: str) -> bool:
    tokens = value.split()
    return len(tokens) <= 2 and bool(_BARE_NAME.match(value))


def normalize_description(raw: str | None) -> str:
    """
    Clean one description cell.

    Bare names (a technician leaking into the description column) and
    empty values become ``"General Repair"``; a leading role label such as
    ``"Tech: "`` is stripped and the result is capped at 90 characters.
    """

    cleaned = " ".join((raw or "").split())
    if looks_like_bare_name(cleaned):
        return GENERAL_REPAIR_LABEL

    stripped = _ROLE_PREFIX.sub("", cleaned, count=1).strip()
    if not stripped:
        return GENERAL_REPAIR_LABEL

    return stripped[:MAX_DESCRIPTION_LENGTH]
