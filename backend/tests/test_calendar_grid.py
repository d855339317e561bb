import unittest
from datetime import date

from app.core.errors import ValidationError
from app.services.calendar_grid import add_months, grid_weeks, month_label, parse_day, parse_month


class TestCalendarGrid(unittest.TestCase):
    def test_weeks_run_sunday_to_saturday(self):
        weeks = grid_weeks(date(2024, 3, 1))
        self.assertEqual(weeks[0][0], date(2024, 2, 25))
        self.assertEqual(weeks[-1][-1], date(2024, 4, 6))
        self.assertTrue(all(len(week) == 7 for week in weeks))
        self.assertTrue(all(week[0].weekday() == 6 for week in weeks))

    def test_month_starting_on_sunday_has_no_leading_days(self):
        # September 2024 starts on a Sunday and ends on a Monday.
        weeks = grid_weeks(date(2024, 9, 1))
        self.assertEqual(weeks[0][0], date(2024, 9, 1))
        self.assertEqual(weeks[-1][-1], date(2024, 10, 5))

    def test_add_months_wraps_years(self):
        self.assertEqual(add_months(date(2024, 1, 31), -1), date(2023, 12, 1))
        self.assertEqual(add_months(date(2024, 12, 5), 1), date(2025, 1, 1))

    def test_parse_month(self):
        self.assertEqual(parse_month("2024-03", default=date(2000, 1, 1)), date(2024, 3, 1))
        self.assertEqual(parse_month(None, default=date(2024, 5, 17)), date(2024, 5, 1))
        with self.assertRaises(ValidationError):
            parse_month("2024-13", default=date(2024, 1, 1))

    def test_parse_day(self):
        self.assertEqual(parse_day("2024-03-15"), date(2024, 3, 15))
        with self.assertRaises(ValidationError):
            parse_day("15/03/2024")

    def test_month_label(self):
        self.assertEqual(month_label(date(2024, 3, 1)), "March 2024")


if __name__ == "__main__":
    unittest.main()
