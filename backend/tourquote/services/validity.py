"""Validity window checks applied before contracting records are written.

Contracts of one hotel must never overlap. Seasons of one hotel are allowed to
overlap: this asymmetry is deliberate, and the nightly resolver carries an
explicit tie-break for it (see ``rate_resolver.SEASON_TIE_BREAK``).
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Protocol

from tourquote.errors import ExpiredSeason, InvalidWindow, OverlappingContract, RateOutsideSeason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidityWindow:
    """Closed date interval ``[start, end]``."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def covers(self, other: "ValidityWindow") -> bool:
        return self.start <= other.start and other.end <= self.end

    def intersects(self, other: "ValidityWindow") -> bool:
        return self.start <= other.end and other.start <= self.end

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def __iter__(self):
        day = self.start
        while day <= self.end:
            yield day
            day += timedelta(days=1)


class Windowed(Protocol):
    id: uuid.UUID
    window: ValidityWindow


class ValidityValidator:
    """Window and overlap invariants for contracts, seasons and rates."""

    def validate_window(self, window: ValidityWindow) -> ValidityWindow:
        if window.start > window.end:
            raise InvalidWindow(window.start, window.end)
        return window

    def validate_contract_non_overlap(
        self,
        hotel_id: uuid.UUID,
        candidate: ValidityWindow,
        existing: Iterable[Windowed],
        exclude_id: uuid.UUID | None = None,
    ) -> None:
        """Reject ``candidate`` if it intersects any other contract of the hotel.

        ``existing`` must already be scoped to ``hotel_id``; ``exclude_id`` is the
        contract being edited, which may of course overlap its own old window.
        """
        self.validate_window(candidate)
        for contract in existing:
            if exclude_id is not None and contract.id == exclude_id:
                continue
            if contract.window.intersects(candidate):
                logger.info(
                    f"Contract window {candidate.start}..{candidate.end} for hotel {hotel_id} "
                    f"overlaps contract {contract.id}"
                )
                raise OverlappingContract(contract.id)

    def validate_rate_within_season(
        self, season: Windowed, rate_window: ValidityWindow | None = None
    ) -> ValidityWindow:
        """Return the effective rate window, which is the season window when omitted."""
        if rate_window is None:
            return season.window
        self.validate_window(rate_window)
        if not season.window.covers(rate_window):
            raise RateOutsideSeason(season.id, season.window.start, season.window.end)
        return rate_window

    def validate_season_not_expired(self, season: Windowed, as_of: date | datetime) -> None:
        """Rates of a season are frozen once the season's last day has fully passed."""
        as_of_day = as_of.date() if isinstance(as_of, datetime) else as_of
        if as_of_day > season.window.end:
            raise ExpiredSeason(season.id, season.window.end)


validity_validator = ValidityValidator()
