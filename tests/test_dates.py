from __future__ import annotations

from datetime import date, datetime

import pytest

from bugsheet_sort.dates import extract_date, infer_year


def _ms(year: int, month: int, day: int) -> int:
    return int(datetime(year, month, day).timestamp() * 1000)


def test_embedded_token_uses_current_year(february: date) -> None:
    assert extract_date("reported 09/01 by QA", february) == _ms(2026, 1, 9)


def test_december_entry_early_in_year_rolls_back(february: date) -> None:
    assert extract_date("16/12", february) == _ms(2025, 12, 16)


def test_december_entry_late_in_year_stays_in_year() -> None:
    assert extract_date("16/12", date(2026, 7, 1)) == _ms(2026, 12, 16)


def test_january_entry_late_in_year_is_not_moved_forward() -> None:
    assert extract_date("03/01", date(2026, 12, 20)) == _ms(2026, 1, 3)


@pytest.mark.parametrize(("month", "expected"), [(12, 2025), (11, 2026), (1, 2026)])
def test_infer_year_june_boundary(month: int, expected: int) -> None:
    assert infer_year(month, date(2026, 6, 30)) == expected


def test_single_digit_parts_and_first_match_wins(february: date) -> None:
    assert extract_date("seen 1/2, again 20/01", february) == _ms(2026, 2, 1)


@pytest.mark.parametrize("text", [None, "", "no date here", "2026-01-09", "12-01"])
def test_no_token_returns_none(text: object, february: date) -> None:
    assert extract_date(text, february) is None


def test_out_of_range_day_rolls_over(february: date) -> None:
    assert extract_date("31/04", february) == _ms(2026, 5, 1)


def test_out_of_range_month_rolls_over(february: date) -> None:
    assert extract_date("05/13", february) == _ms(2027, 1, 5)


def test_day_zero_is_last_day_of_previous_month(february: date) -> None:
    assert extract_date("0/03", february) == _ms(2026, 2, 28)


def test_later_dates_compare_greater(february: date) -> None:
    later = extract_date("10/01", february)
    earlier = extract_date("09/01", february)

    assert later is not None and earlier is not None
    assert later > earlier


def test_defaults_to_today() -> None:
    today = date.today()
    expected_year = today.year - 1 if today.month <= 6 else today.year

    assert extract_date("01/12") == _ms(expected_year, 12, 1)


def test_only_ascii_digits_form_a_token(february: date) -> None:
    assert extract_date("reported ٩/٠١", february) is None
    assert extract_date("reported ０９/０１", february) is None
