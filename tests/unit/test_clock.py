from datetime import UTC, date, datetime

from atacado.utils.clock import BRASILIA_TZ, as_utc, brasilia_midnight_utc, days_between, to_brasilia


def test_brasilia_midnight_is_three_am_utc():
    midnight = brasilia_midnight_utc(date(2024, 3, 10))
    assert midnight == datetime(2024, 3, 10, 3, 0, tzinfo=UTC)


def test_as_utc_attaches_utc_to_naive():
    naive = datetime(2024, 1, 1, 12, 0)
    assert as_utc(naive).tzinfo is UTC
    assert as_utc(None) is None


def test_to_brasilia_shifts_three_hours():
    local = to_brasilia(datetime(2024, 1, 1, 2, 0, tzinfo=UTC))
    assert local.tzinfo == BRASILIA_TZ
    assert (local.day, local.hour) == (31, 23)


def test_days_between():
    assert days_between(date(2024, 1, 1), date(2024, 1, 31)) == 30
