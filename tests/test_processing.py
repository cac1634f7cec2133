from datetime import datetime, timedelta, timezone

from palmeiras_calendar.processing import process_matches

from conftest import NOW, make_match


def test_past_and_present_matches_are_dropped():
    past = make_match(opponent="Santos", date=NOW - timedelta(days=1))
    exactly_now = make_match(opponent="São Paulo", date=NOW)
    upcoming = make_match(opponent="Corinthians", date=NOW + timedelta(minutes=1))

    assert process_matches([past, exactly_now, upcoming], now=NOW) == [upcoming]


def test_duplicates_keep_the_earliest_date():
    later = make_match(date=datetime(2026, 4, 12, 19, 0, tzinfo=timezone.utc), source="home")
    earlier = make_match(date=datetime(2026, 4, 10, 19, 0, tzinfo=timezone.utc), source="table")

    result = process_matches([later, earlier], now=NOW)

    assert result == [earlier]


def test_output_is_sorted_and_idempotent():
    matches = [
        make_match(opponent="Santos", date=datetime(2026, 5, 3, 19, 0, tzinfo=timezone.utc)),
        make_match(opponent="Grêmio", date=datetime(2026, 2, 1, 19, 0, tzinfo=timezone.utc)),
        make_match(opponent="Flamengo", date=datetime(2026, 3, 8, 19, 0, tzinfo=timezone.utc)),
        make_match(opponent="Santos", competition="Paulista 2026",
                   date=datetime(2026, 1, 20, 19, 0, tzinfo=timezone.utc)),
    ]

    first = process_matches(matches, now=NOW)
    second = process_matches(first, now=NOW)

    assert [match.opponent for match in first] == ["Santos", "Grêmio", "Flamengo", "Santos"]
    assert [match.date for match in first] == sorted(match.date for match in first)
    assert second == first


def test_empty_input():
    assert process_matches([], now=NOW) == []
