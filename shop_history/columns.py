"""
shop_history/columns.py

Heuristic header scoring for vendor CSV exports that arrive without any
column mapping.

Scoring is expressed as weight tables over regular expressions so each
header can be scored on its own. Pickers take the arg-max with a strict
``score > best`` comparison starting from ``best = -1``, so ties resolve
to the earliest column and any surviving header scoring 0 or more beats
"no column".
"""

from __future__ import annotations

import re
from typing import Final, Sequence

from shop_history.types import ColumnScore

NO_COLUMN: Final[int] = -1

_PERSON_FIELD = re.compile(
    r"(tech|technician|advisor|writer|service writer|employee|staff|name|customer|driver)",
    re.IGNORECASE,
)
_METADATA_FIELD = re.compile(
    r"(phone|email|address|vin|plate|license|unit|stock|fleet|company|location|city|state|zip)",
    re.IGNORECASE,
)
_REPAIR_TEXT_FIELD = re.compile(
    r"(complaint|concern|cause|correction|operation|op|job|service|work performed"
    r"|work_performed|description|line)",
    re.IGNORECASE,
)
_LOOSE_DESCRIPTION = re.compile(r"description|job|service", re.IGNORECASE)

DESCRIPTION_WEIGHTS: Final[tuple[tuple[re.Pattern[str], int], ...]] = (
    (re.compile(r"(line description|job description|work performed|description)", re.IGNORECASE), 7),
    (re.compile(r"(complaint|concern|cause|correction)", re.IGNORECASE), 6),
    (re.compile(r"(service|job|operation|op)", re.IGNORECASE), 4),
    (_REPAIR_TEXT_FIELD, 2),
    (re.compile(r"(note|notes|memo|comment)", re.IGNORECASE), -1),
    (re.compile(r"(id|number|no\.|ro|invoice)", re.IGNORECASE), -2),
)

TOTAL_WEIGHTS: Final[tuple[tuple[re.Pattern[str], int], ...]] = (
    (re.compile(r"(grand total|invoice total|total)", re.IGNORECASE), 6),
    (re.compile(r"(line_total|line total|amount|price|extended)", re.IGNORECASE), 4),
    (re.compile(r"(labor|parts)", re.IGNORECASE), 1),
    (re.compile(r"(rate|tax|qty|quantity|cost)", re.IGNORECASE), -3),
)


def normalize_header(header: str) -> str:
    """Trim, lowercase and collapse internal whitespace."""
    return " ".join(header.split()).lower()


def looks_like_person_field(header: str) -> bool:
    return bool(_PERSON_FIELD.search(header))


def looks_like_metadata_field(header: str) -> bool:
    return bool(_METADATA_FIELD.search(header))


def looks_like_repair_text_field(header: str) -> bool:
    return bool(_REPAIR_TEXT_FIELD.search(header))


def _weighted_score(
    header: str,
    weights: Sequence[tuple[re.Pattern[str], int]],
) -> int:
    return sum(weight for pattern, weight in weights if pattern.search(header))


def score_description_header(header: str) -> int | None:
    """
    Score one header as a repair description column.

    Returns ``None`` for headers that can never be chosen: blanks, person
    fields and structured metadata fields.
    """

    normalized = normalize_header(header)
    if not normalized:
        return None
    if looks_like_person_field(normalized) or looks_like_metadata_field(normalized):
        return None
    return _weighted_score(normalized, DESCRIPTION_WEIGHTS)


def score_total_header(header: str) -> int | None:
    """
    Score one header as the monetary total column. ``None`` for blanks.
    """

    normalized = normalize_header(header)
    if not normalized:
        return None
    return _weighted_score(normalized, TOTAL_WEIGHTS)


def _best_column(scores: Sequence[ColumnScore]) -> int:
    best_index = NO_COLUMN
    best_score = -1
    for candidate in scores:
        if candidate.score > best_score:
            best_score = candidate.score
            best_index = candidate.index
    return best_index


def score_columns(headers: Sequence[str], scorer) -> list[ColumnScore]:
    """Score every header with *scorer*, skipping rejected ones."""
    scores: list[ColumnScore] = []
    for index, header in enumerate(headers):
        score = scorer(header)
        if score is not None:
            scores.append(ColumnScore(index=index, score=score))
    return scores


def choose_description_column(headers: Sequence[str]) -> int:
    """
    Pick the best description column index, or ``-1``.
    """

    best_index = _best_column(score_columns(headers, score_description_header))
    if best_index != NO_COLUMN:
        return best_index

    for index, header in enumerate(headers):
        if _LOOSE_DESCRIPTION.search(header) and not looks_like_person_field(header):
            return index
    return NO_COLUMN


def choose_total_column(headers: Sequence[str]) -> int:
    """
    Pick the best monetary total column index, or ``-1``.
    """

    return _best_column(score_columns(headers, score_total_header))


__all__ = [
    "DESCRIPTION_WEIGHTS",
    "NO_COLUMN",
    "TOTAL_WEIGHTS",
    "choose_description_column",
    "choose_total_column",
    "looks_like_metadata_field",
    "looks_like_person_field",
    "looks_like_repair_text_field",
    "normalize_header",
    "score_columns",
    "score_description_header",
    "score_total_header",
]
