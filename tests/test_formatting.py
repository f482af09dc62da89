from datetime import datetime, timedelta, timezone

from dashboard.utils.formatting import format_brl, format_date, format_percent, month_label


def test_format_brl():
    assert format_brl(1234.5) == "R$ 1.234,50"
    assert format_brl(0) == "R$ 0,00"
    assert format_brl(-10) == "-R$ 10,00"


def test_format_percent():
    assert format_percent(23.456) == "23.5%"


def test_month_label():
    assert month_label("2024-03") == "Mar/24"
    assert month_label("2023-12") == "Dez/23"


def test_format_date_is_utc_calendar_date():
    midnight_brt = datetime(2024, 3, 5, 0, 0, tzinfo=timezone(timedelta(hours=-3)))
    assert format_date(midnight_brt) == "05/03/2024"
    assert format_date(datetime(2024, 3, 5, tzinfo=timezone.utc)) == "05/03/2024"


def test_format_date_missing():
    assert format_date(None) == "Data Inválida"
