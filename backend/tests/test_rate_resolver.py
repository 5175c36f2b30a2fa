import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from tourquote.errors import InvalidStay
from tourquote.services.interval_store import HotelSnapshot, RateSnapshot, SeasonSnapshot
from tourquote.services.rate_resolver import (
    UNRESOLVED_NO_RATE,
    UNRESOLVED_NO_SEASON,
    Resolved,
    Unresolved,
    nightly_rate_resolver,
)
from tourquote.services.validity import ValidityWindow

HOTEL = uuid.uuid4()
DOUBLE = uuid.uuid4()
TRIPLE = uuid.uuid4()


def make_season(start, end, amount, room_type=DOUBLE, created_at=None, rate_window=None, extra_rates=()):
    season_id = uuid.uuid4()
    window = ValidityWindow(start, end)
    rate = RateSnapshot(
        id=uuid.uuid4(),
        season_id=season_id,
        room_type_id=room_type,
        window=rate_window or window,
        amount=Decimal(amount),
        follows_season=rate_window is None,
    )
    return SeasonSnapshot(
        id=season_id,
        hotel_id=HOTEL,
        window=window,
        created_at=created_at,
        rates=(rate, *extra_rates),
    )


class TestResolveNights:
    def test_nights_exclude_departure(self):
        nights = nightly_rate_resolver.resolve_nights(date(2025, 12, 29), date(2026, 1, 3))
        assert nights == [
            date(2025, 12, 29),
            date(2025, 12, 30),
            date(2025, 12, 31),
            date(2026, 1, 1),
            date(2026, 1, 2),
        ]

    @pytest.mark.parametrize("departure", [date(2025, 5, 1), date(2025, 4, 30)])
    def test_departure_not_after_arrival_rejected(self, departure):
        with pytest.raises(InvalidStay) as exc:
            nightly_rate_resolver.resolve_nights(date(2025, 5, 1), departure)
        assert exc.value.code == "invalid_stay"

    @pytest.mark.parametrize(
        "arrival,length",
        [
            (date(2025, 1, 1), 1),
            (date(2024, 2, 27), 4),
            (date(2025, 12, 30), 3),
            (date(2025, 6, 15), 45),
            (date(2023, 3, 1), 400),
        ],
    )
    def test_night_count_matches_stay_length(self, arrival, length):
        nights = nightly_rate_resolver.resolve_nights(arrival, arrival + timedelta(days=length))
        assert len(nights) == length
        assert nights[0] == arrival
        assert all(b - a == timedelta(days=1) for a, b in zip(nights, nights[1:]))


class TestPriceStay:
    def test_stay_across_two_seasons(self):
        december = make_season(date(2025, 12, 1), date(2025, 12, 31), "100")
        january = make_season(date(2026, 1, 1), date(2026, 1, 31), "120")
        snapshot = HotelSnapshot(hotel_id=HOTEL, seasons=(december, january))

        result = nightly_rate_resolver.price_stay(snapshot, date(2025, 12, 29), date(2026, 1, 3), DOUBLE)

        assert result.total == Decimal("540")
        assert result.unresolved_count == 0
        assert [r.season_id for r in result.per_night] == [december.id] * 3 + [january.id] * 2

    def test_gap_night_counts_as_zero(self):
        december = make_season(date(2025, 12, 1), date(2025, 12, 30), "100")
        snapshot = HotelSnapshot(hotel_id=HOTEL, seasons=(december,))

        result = nightly_rate_resolver.price_stay(snapshot, date(2025, 12, 29), date(2026, 1, 1), DOUBLE)

        assert result.total == Decimal("200")
        assert len(result.per_night) == 3
        assert result.unresolved_count == 1
        missing = [r for r in result.per_night if r.missing]
        assert [r.night for r in missing] == [date(2025, 12, 31)]
        assert all(r.reason == UNRESOLVED_NO_SEASON and r.amount == 0 for r in missing)

    def test_room_type_without_rate_is_unresolved(self):
        season = make_season(date(2025, 12, 1), date(2025, 12, 31), "100")
        snapshot = HotelSnapshot(hotel_id=HOTEL, seasons=(season,))

        result = nightly_rate_resolver.price_stay(snapshot, date(2025, 12, 10), date(2025, 12, 12), TRIPLE)

        assert result.total == 0
        assert result.unresolved_count == 2
        assert {r.reason for r in result.per_night} == {UNRESOLVED_NO_RATE}
        assert {r.season_id for r in result.per_night} == {season.id}

    def test_to_dict_shape(self):
        season = make_season(date(2025, 12, 1), date(2025, 12, 31), "99.50")
        snapshot = HotelSnapshot(hotel_id=HOTEL, seasons=(season,))

        payload = nightly_rate_resolver.price_stay(snapshot, date(2025, 12, 1), date(2025, 12, 3), DOUBLE).to_dict()

        assert payload["nights"] == 2
        assert payload["total"] == 199.0
        assert payload["per_night"][0]["night"] == "2025-12-01"
        assert payload["per_night"][0]["missing"] is False


class TestSeasonTieBreak:
    def test_latest_start_wins(self):
        broad = make_season(date(2025, 6, 1), date(2025, 9, 30), "100")
        peak = make_season(date(2025, 8, 1), date(2025, 8, 31), "180")

        chosen = nightly_rate_resolver.select_season(date(2025, 8, 15), [peak, broad])
        assert chosen.id == peak.id
        chosen = nightly_rate_resolver.select_season(date(2025, 7, 15), [peak, broad])
        assert chosen.id == broad.id

    def test_equal_start_prefers_most_recently_created(self):
        older = make_season(
            date(2025, 6, 1), date(2025, 6, 30), "100", created_at=datetime(2025, 1, 1, tzinfo=timezone.utc)
        )
        newer = make_season(date(2025, 6, 1), date(2025, 6, 20), "110", created_at=datetime(2025, 2, 1))

        resolution = nightly_rate_resolver.resolve_night_rate(date(2025, 6, 10), [newer, older], DOUBLE)

        assert isinstance(resolution, Resolved)
        assert resolution.season.id == newer.id
        assert resolution.amount == Decimal("110")

    def test_selection_ignores_input_order(self):
        a = make_season(date(2025, 6, 1), date(2025, 6, 30), "100")
        b = make_season(date(2025, 6, 5), date(2025, 6, 30), "120")
        night = date(2025, 6, 10)
        assert nightly_rate_resolver.select_season(night, [a, b]) == nightly_rate_resolver.select_season(night, [b, a])


class TestRateSelection:
    def test_narrowest_rate_window_wins(self):
        season_start, season_end = date(2025, 6, 1), date(2025, 6, 30)
        season = make_season(season_start, season_end, "100")
        promo = RateSnapshot(
            id=uuid.uuid4(),
            season_id=season.id,
            room_type_id=DOUBLE,
            window=ValidityWindow(date(2025, 6, 10), date(2025, 6, 12)),
            amount=Decimal("80"),
        )
        season = SeasonSnapshot(
            id=season.id, hotel_id=HOTEL, window=season.window, rates=(*season.rates, promo)
        )

        inside = nightly_rate_resolver.resolve_night_rate(date(2025, 6, 11), [season], DOUBLE)
        outside = nightly_rate_resolver.resolve_night_rate(date(2025, 6, 20), [season], DOUBLE)

        assert inside.rate.id == promo.id
        assert outside.amount == Decimal("100")

    def test_explicit_rate_window_leaves_rest_of_season_unresolved(self):
        season = make_season(
            date(2025, 6, 1), date(2025, 6, 30), "100", rate_window=ValidityWindow(date(2025, 6, 1), date(2025, 6, 15))
        )
        resolution = nightly_rate_resolver.resolve_night_rate(date(2025, 6, 20), [season], DOUBLE)
        assert isinstance(resolution, Unresolved)
        assert resolution.reason == UNRESOLVED_NO_RATE


class TestAggregateStay:
    def test_length_mismatch_rejected(self):
        with pytest.raises(ValueError):
            nightly_rate_resolver.aggregate_stay([date(2025, 1, 1)], [])

    def test_only_resolved_nights_contribute(self):
        season = make_season(date(2025, 1, 1), date(2025, 1, 1), "75")
        nights = [date(2025, 1, 1), date(2025, 1, 2)]
        resolutions = [nightly_rate_resolver.resolve_night_rate(n, [season], DOUBLE) for n in nights]

        result = nightly_rate_resolver.aggregate_stay(nights, resolutions)

        assert result.total == Decimal("75")
        assert result.unresolved_count == 1
