"""Nightly rate resolver — maps each night of a stay to the season/rate that prices it.

A night with no matching season or rate is reported as ``Unresolved`` and
priced at zero; resolution never raises for missing data.
"""

import logging
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from tourquote.errors import InvalidStay
from tourquote.services.interval_store import HotelSnapshot, RateSnapshot, SeasonSnapshot

logger = logging.getLogger(__name__)

# Seasons of one hotel may overlap. When several contain the same night the
# season with the latest start wins; equal starts go to the most recently
# created, then the highest id. Pending product confirmation.
SEASON_TIE_BREAK = "latest_start_then_most_recent"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)

UNRESOLVED_NO_SEASON = "no_season"
UNRESOLVED_NO_RATE = "no_rate"


@dataclass(frozen=True)
class Resolved:
    night: date
    season: SeasonSnapshot
    rate: RateSnapshot
    amount: Decimal

    resolved = True


@dataclass(frozen=True)
class Unresolved:
    night: date
    reason: str = UNRESOLVED_NO_SEASON
    season: SeasonSnapshot | None = None

    resolved = False
    amount = Decimal("0")


NightResolution = Resolved | Unresolved


@dataclass
class PerNightResult:
    night: date
    season_id: uuid.UUID | None
    rate_id: uuid.UUID | None
    amount: Decimal
    missing: bool
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "night": self.night.isoformat(),
            "season_id": str(self.season_id) if self.season_id else None,
            "rate_id": str(self.rate_id) if self.rate_id else None,
            "amount": float(self.amount),
            "missing": self.missing,
            "reason": self.reason,
        }


@dataclass
class StayAggregate:
    per_night: list[PerNightResult] = field(default_factory=list)
    total: Decimal = Decimal("0")
    unresolved_count: int = 0

    def to_dict(self) -> dict:
        return {
            "nights": len(self.per_night),
            "per_night": [r.to_dict() for r in self.per_night],
            "total": float(self.total),
            "unresolved_count": self.unresolved_count,
        }


def _aware(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _season_priority(season: SeasonSnapshot) -> tuple:
    return (season.window.start, _aware(season.created_at), str(season.id))


def _rate_priority(rate: RateSnapshot) -> tuple:
    # Narrowest window first, then most recently created
    return (-rate.window.days, _aware(rate.created_at), str(rate.id))


class NightlyRateResolver:
    """Pure night-by-night resolution over an immutable hotel snapshot."""

    def resolve_nights(self, arrival: date, departure: date) -> list[date]:
        """Nights of a stay: ``arrival`` up to, but excluding, ``departure``."""
        if departure <= arrival:
            raise InvalidStay(arrival, departure)
        count = (departure - arrival).days
        return [arrival + timedelta(days=i) for i in range(count)]

    def select_season(self, night: date, seasons: Iterable[SeasonSnapshot]) -> SeasonSnapshot | None:
        candidates = [s for s in seasons if s.window.contains(night)]
        if not candidates:
            return None
        if len(candidates) > 1:
            logger.debug(f"{len(candidates)} seasons overlap on {night}, applying {SEASON_TIE_BREAK}")
        return max(candidates, key=_season_priority)

    def resolve_night_rate(
        self,
        night: date,
        seasons: Sequence[SeasonSnapshot],
        room_type_id: uuid.UUID,
    ) -> NightResolution:
        season = self.select_season(night, seasons)
        if season is None:
            return Unresolved(night=night, reason=UNRESOLVED_NO_SEASON)

        rates = [
            r for r in season.rates
            if r.room_type_id == room_type_id and r.window.contains(night)
        ]
        if not rates:
            return Unresolved(night=night, reason=UNRESOLVED_NO_RATE, season=season)

        rate = max(rates, key=_rate_priority)
        return Resolved(night=night, season=season, rate=rate, amount=rate.amount)

    def aggregate_stay(
        self, nights: Sequence[date], resolutions: Sequence[NightResolution]
    ) -> StayAggregate:
        if len(nights) != len(resolutions):
            raise ValueError("nights and resolutions must have the same length")

        aggregate = StayAggregate()
        for night, resolution in zip(nights, resolutions):
            if isinstance(resolution, Resolved):
                row = PerNightResult(
                    night=night,
                    season_id=resolution.season.id,
                    rate_id=resolution.rate.id,
                    amount=resolution.amount,
                    missing=False,
                )
            else:
                row = PerNightResult(
                    night=night,
                    season_id=resolution.season.id if resolution.season else None,
                    rate_id=None,
                    amount=Decimal("0"),
                    missing=True,
                    reason=resolution.reason,
                )
                aggregate.unresolved_count += 1
            aggregate.total += row.amount
            aggregate.per_night.append(row)
        return aggregate

    def price_stay(
        self,
        snapshot: HotelSnapshot,
        arrival: date,
        departure: date,
        room_type_id: uuid.UUID,
    ) -> StayAggregate:
        """Resolve and total every night of a stay for one room type."""
        nights = self.resolve_nights(arrival, departure)
        resolutions = [self.resolve_night_rate(n, snapshot.seasons, room_type_id) for n in nights]
        result = self.aggregate_stay(nights, resolutions)
        if result.unresolved_count:
            logger.warning(
                f"Hotel {snapshot.hotel_id}: {result.unresolved_count}/{len(nights)} nights "
                f"between {arrival} and {departure} have no matching season/rate"
            )
        return result


nightly_rate_resolver = NightlyRateResolver()
