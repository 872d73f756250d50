"""Tests for itemized row parsing."""
import unittest
from decimal import Decimal

from grantaudit.llm.models import Direction
from grantaudit.llm.rows import parse_itemized_row, parse_itemized_rows


class TestParseItemizedRow(unittest.TestCase):
    """Test parse_itemized_row()."""

    def test_amount_before_direction(self):
        row = parse_itemized_row("UPI-SALARY-HONORARIUM 50000 DEBIT")
        self.assertEqual(row.narration, "UPI-SALARY-HONORARIUM")
        self.assertEqual(row.amount, Decimal("50000"))
        self.assertEqual(row.direction, Direction.DEBIT)
        self.assertEqual(row.raw_amount, "50000")
        self.assertIsNone(row.date)

    def test_direction_before_amount(self):
        row = parse_itemized_row("NEFT GRANT CREDIT 1200000")
        self.assertEqual(row.narration, "NEFT GRANT")
        self.assertEqual(row.amount, Decimal("1200000"))
        self.assertEqual(row.direction, Direction.CREDIT)

    def test_leading_date_and_balance_column(self):
        row = parse_itemized_row("05/06/2024 LAPTOP PURCHASE 65,000.00 Dr 1,135,000.00")
        self.assertEqual(row.date, "05/06/2024")
        self.assertEqual(row.narration, "LAPTOP PURCHASE")
        self.assertEqual(row.amount, Decimal("65000.00"))
        self.assertEqual(row.direction, Direction.DEBIT)

    def test_digits_inside_narration_are_not_amounts(self):
        row = parse_itemized_row("UPI/REF123/KIT 2500 DEBIT")
        self.assertEqual(row.narration, "UPI/REF123/KIT")
        self.assertEqual(row.amount, Decimal("2500"))

    def test_balance_with_its_own_marker_is_ambiguous(self):
        """A trailing "balance Cr" column must not be read as the transaction."""
        self.assertIsNone(parse_itemized_row("05/06/2024 LAPTOP PURCHASE 65,000.00 1,135,000.00 Cr"))
        self.assertIsNone(parse_itemized_row("LAPTOP PURCHASE 65,000.00 DEBIT 1,135,000.00 CR"))

    def test_amount_and_balance_before_marker_is_ambiguous(self):
        self.assertIsNone(parse_itemized_row("SALARY APRIL 45000 1155000 DEBIT"))

    def test_narration_never_holds_an_amount(self):
        for line in ("UPI-SALARY-HONORARIUM 50000 DEBIT", "NEFT GRANT CREDIT 1200000 1200000"):
            row = parse_itemized_row(line)
            self.assertNotRegex(row.narration, r"(^|\s)\d")

    def test_not_a_row(self):
        self.assertIsNone(parse_itemized_row("Opening balance as on 01/04/2024"))
        self.assertIsNone(parse_itemized_row("SALARY DEBIT"))
        self.assertIsNone(parse_itemized_row("5000 DEBIT"))


class TestParseItemizedRows(unittest.TestCase):

    def test_all_rows(self):
        rows = parse_itemized_rows("UPI-SALARY-HONORARIUM 50000 DEBIT\n\nNEFT GRANT CREDIT 1200000\n")
        self.assertEqual([row.narration for row in rows], ["UPI-SALARY-HONORARIUM", "NEFT GRANT"])

    def test_one_unparseable_line_rejects_all(self):
        text = "STATE BANK OF INDIA\nUPI-SALARY-HONORARIUM 50000 DEBIT"
        self.assertIsNone(parse_itemized_rows(text))

    def test_statement_with_balance_column_is_not_itemized(self):
        text = (
            "01/04/2024 NEFT GRANT 1,200,000.00 1,200,000.00 Cr\n"
            "05/06/2024 LAPTOP PURCHASE 65,000.00 1,135,000.00 Cr\n"
        )
        self.assertIsNone(parse_itemized_rows(text))

    def test_blank_text(self):
        self.assertIsNone(parse_itemized_rows("\n  \n"))


if __name__ == "__main__":
    unittest.main()
