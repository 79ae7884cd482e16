"""
shop_history/csv_lines.py

Lenient line decoder for vendor CSV exports.

Quotes toggle an "inside field" state so commas inside quoted values are
kept. Doubled quotes are not unescaped: each quote character toggles the
state, so a doubled quote inside a quoted field is dropped.
"""

from __future__ import annotations

import re

from shop_history.types import RawRow

_LINE_BREAK = re.compile(r"\r?\n")


def split_csv_line(line: str, delimiter: str = ",") -> RawRow:
    """
    Split one raw line into trimmed fields. Never raises.
    """

    fields: RawRow = []
    current: list[str] = []
    in_quotes = False

    for ch in line:
        if ch == '"':
            in_quotes = not in_quotes
            continue
        if ch == delimiter and not in_quotes:
            fields.append("".join(current))
            current = []
            continue
        current.append(ch)

    fields.append("".join(current))
    return [value.strip() for value in fields]


def csv_lines(text: str) -> list[str]:
    """
    Split file text into trimmed, non-empty lines.
    """

    stripped = (line.strip() for line in _LINE_BREAK.split(text))
    return [line for line in stripped if line]


def decode_rows(text: str | None) -> list[RawRow]:
    """
    Decode a whole file into rows; the first row is the header.
    """

    if not text:
        return []
    return [split_csv_line(line) for line in csv_lines(text)]


def count_data_rows(text: str | None) -> int:
    """Number of rows after the header; 0 for header-only or empty files."""
    if not text:
        return 0
    lines = csv_lines(text)
    if len(lines) < 2:
        return 0
    return len(lines) - 1
