from tourquote.models.user import User
from tourquote.models.catalog import (
    Client,
    EntranceFee,
    ExtraService,
    Hotel,
    ListItem,
    Place,
    Restaurant,
    RestaurantMeal,
    Route,
    RoutePlace,
    TransportationFee,
)
from tourquote.models.contracting import HotelContract, HotelSeason, HotelSeasonRate
from tourquote.models.quotation import (
    AccommodationOption,
    AccommodationRoom,
    Quotation,
    QuotationExtraService,
    QuotationMeal,
    QuotationPlace,
    QuotationRoute,
)

__all__ = [
    "AccommodationOption",
    "AccommodationRoom",
    "Client",
    "EntranceFee",
    "ExtraService",
    "Hotel",
    "HotelContract",
    "HotelSeason",
    "HotelSeasonRate",
    "ListItem",
    "Place",
    "Quotation",
    "QuotationExtraService",
    "QuotationMeal",
    "QuotationPlace",
    "QuotationRoute",
    "Restaurant",
    "RestaurantMeal",
    "Route",
    "RoutePlace",
    "TransportationFee",
    "User",
]
