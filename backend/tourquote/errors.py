"""Domain errors raised by the contracting and quotation services.

Every error carries a machine-readable ``code`` so API clients can tell the
validation kinds apart without parsing messages.
"""

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    status_code: int
    code: str
    message: str
    details: dict[str, Any] | None = None

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        return error_response(self.code, self.message, self.details)


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        }
    }


class InvalidWindow(AppError):
    def __init__(self, start, end):
        super().__init__(
            400,
            "invalid_window",
            f"Start date {start} is after end date {end}",
            {"start": str(start), "end": str(end)},
        )


class InvalidStay(AppError):
    def __init__(self, arrival, departure):
        super().__init__(
            400,
            "invalid_stay",
            "departure_date must be after arrival_date",
            {"arrival_date": str(arrival), "departure_date": str(departure)},
        )


class InvalidPayload(AppError):
    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(400, "invalid_payload", message, details)


class OverlappingContract(AppError):
    def __init__(self, conflicting_id):
        self.conflicting_id = conflicting_id
        super().__init__(
            409,
            "overlapping_contract",
            "Contract dates overlap an existing contract for this hotel",
            {"conflicting_id": str(conflicting_id)},
        )


class RateOutsideSeason(AppError):
    def __init__(self, season_id, start, end):
        super().__init__(
            409,
            "rate_outside_season",
            f"Rate dates must fall within the season ({start} - {end})",
            {"conflicting_id": str(season_id), "season_start": str(start), "season_end": str(end)},
        )


class ExpiredSeason(AppError):
    def __init__(self, season_id, end):
        super().__init__(
            409,
            "expired_season",
            f"Season ended on {end}; its rates can no longer be changed",
            {"conflicting_id": str(season_id), "season_end": str(end)},
        )


class NotFound(AppError):
    entity = "Record"

    def __init__(self, record_id=None):
        details = {"id": str(record_id)} if record_id is not None else None
        super().__init__(404, "not_found", f"{self.entity} not found", details)


class QuotationNotFound(NotFound):
    entity = "Quotation"


class HotelNotFound(NotFound):
    entity = "Hotel"


class SeasonNotFound(NotFound):
    entity = "Season"


class RateNotFound(NotFound):
    entity = "Rate"


class ContractNotFound(NotFound):
    entity = "Contract"


class QuotationExtraServiceNotFound(NotFound):
    entity = "Quotation extra service"


class PersistenceError(AppError):
    def __init__(self, operation: str):
        super().__init__(500, "persistence_error", f"Failed to {operation}")
