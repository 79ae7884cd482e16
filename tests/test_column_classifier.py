from __future__ import annotations

import unittest

from shop_history.columns import (
    NO_COLUMN,
    choose_description_column,
    choose_total_column,
    normalize_header,
    score_description_header,
    score_total_header,
)


class TestDescriptionColumn(unittest.TestCase):
    def test_person_headers_never_win_over_job_description(self) -> None:
        for person_header in ("technician", "advisor name", "driver"):
            with self.subTest(person_header=person_header):
                headers = [person_header, "job description"]
                self.assertEqual(choose_description_column(headers), 1)

                reversed_headers = ["job description", person_header]
                self.assertEqual(choose_description_column(reversed_headers), 0)

    def test_person_and_metadata_headers_are_rejected(self) -> None:
        for header in ("Technician", "Service Writer", "Customer", "VIN", "Phone", "Unit #", "Fleet"):
            with self.subTest(header=header):
                self.assertIsNone(score_description_header(header))

    def test_strong_phrase_beats_generic_service_header(self) -> None:
        headers = ["RO Number", "Service", "Work Performed"]

        self.assertEqual(choose_description_column(headers), 2)

    def test_complaint_header_beats_notes(self) -> None:
        headers = ["Notes", "Complaint"]

        self.assertEqual(choose_description_column(headers), 1)

    def test_ties_resolve_to_first_column(self) -> None:
        headers = ["Concern", "Correction"]

        self.assertEqual(
            score_description_header(headers[0]),
            score_description_header(headers[1]),
        )
        self.assertEqual(choose_description_column(headers), 0)

    def test_neutral_header_is_chosen_over_nothing(self) -> None:
        self.assertEqual(choose_description_column(["Date", "Amount"]), 0)

    def test_returns_no_column_when_everything_is_rejected(self) -> None:
        self.assertEqual(choose_description_column(["Technician", "Customer Name", "Phone"]), NO_COLUMN)

    def test_fallback_skips_person_fields(self) -> None:
        # Every header is rejected or scores below zero; the loose match must
        # not return the person field.
        headers = ["Customer Service Rep", "Invoice No."]

        self.assertEqual(choose_description_column(headers), NO_COLUMN)

    def test_header_normalization(self) -> None:
        self.assertEqual(normalize_header("  Job   Description "), "job description")


class TestTotalColumn(unittest.TestCase):
    def test_invoice_total_beats_rate_and_cost(self) -> None:
        headers = ["Labor Rate", "Parts Cost", "Invoice Total"]

        self.assertEqual(choose_total_column(headers), 2)

    def test_amount_used_when_no_total(self) -> None:
        headers = ["Description", "Qty", "Amount"]

        self.assertEqual(choose_total_column(headers), 2)

    def test_penalties_apply(self) -> None:
        self.assertEqual(score_total_header("Tax"), -3)
        self.assertEqual(score_total_header("Total"), 6)
        self.assertIsNone(score_total_header("   "))

    def test_no_qualifying_total_column(self) -> None:
        self.assertEqual(choose_total_column(["Tax", "Quantity"]), NO_COLUMN)
        self.assertEqual(choose_total_column([]), NO_COLUMN)


if __name__ == "__main__":
    unittest.main()
