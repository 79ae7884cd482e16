from __future__ import annotations

import pytest

from shop_history.descriptions import MAX_DESCRIPTION_LENGTH, normalize_description


@pytest.mark.parametrize("raw", ["Lucas", "O'Neil", "J.R.", "Mary-Kate", "", "   ", None])
def test_bare_names_and_blanks_become_general_repair(raw: str | None) -> None:
    assert normalize_description(raw) == "General Repair"


def test_real_description_is_kept() -> None:
    assert normalize_description("Replaced serpentine belt") == "Replaced serpentine belt"


def test_whitespace_is_collapsed() -> None:
    assert normalize_description("  Replaced   serpentine\tbelt ") == "Replaced serpentine belt"


def test_two_word_description_without_punctuation_is_kept() -> None:
    # Only single-token values match the bare-name rule.
    assert normalize_description("Oil change") == "Oil change"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Tech: replaced rear rotors", "replaced rear rotors"),
        ("Technician - diagnosed no start", "diagnosed no start"),
        ("advisor:customer states noise", "customer states noise"),
        ("Writer -", "General Repair"),
    ],
)
def test_role_prefix_is_stripped(raw: str, expected: str) -> None:
    assert normalize_description(raw) == expected


def test_long_descriptions_are_truncated() -> None:
    raw = "Replace " + "x" * 200

    result = normalize_description(raw)

    assert len(result) == MAX_DESCRIPTION_LENGTH
    assert result.startswith("Replace x")
