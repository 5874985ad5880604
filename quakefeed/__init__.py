"""
quakefeed — country-aware queries against the USGS earthquake feed.

Usage:
    from quakefeed import USGSClient, OrderBy

    with USGSClient() as client:
        result = (
            client.query()
            .start_time(2023, 2, 6)
            .end_time(2023, 2, 7)
            .min_magnitude(6.0)
            .order_by(OrderBy.MAGNITUDE)
            .country("TR")
            .fetch()
        )
"""

from quakefeed.core.errors import (
    DecodeError,
    FeedTimeoutError,
    InvalidTimeError,
    LimitRangeError,
    MagnitudeRangeError,
    QueryError,
    QueryValidationError,
    StartTimeInFutureError,
    TimeRangeError,
    TransportError,
    UnknownCountryError,
)
from quakefeed.ingestion.usgs_client import FetchResult, USGSClient
from quakefeed.query.builder import EarthquakeQuery
from quakefeed.query.models import (
    AlertLevel,
    EarthquakeRecord,
    OrderBy,
    QueryDescriptor,
    ResultSet,
)
from quakefeed.query.validation import ValidationResult, validate
from quakefeed.spatial.boundaries import BoundaryIndex, get_boundary_index
from quakefeed.spatial.country_filter import CountryFilter, filter_by_country
from quakefeed.spatial.geometry import Coordinate

__version__ = "0.1.0"

__all__ = [
    "AlertLevel",
    "BoundaryIndex",
    "Coordinate",
    "CountryFilter",
    "DecodeError",
    "EarthquakeQuery",
    "EarthquakeRecord",
    "FeedTimeoutError",
    "FetchResult",
    "InvalidTimeError",
    "LimitRangeError",
    "MagnitudeRangeError",
    "OrderBy",
    "QueryDescriptor",
    "QueryError",
    "QueryValidationError",
    "ResultSet",
    "StartTimeInFutureError",
    "TimeRangeError",
    "TransportError",
    "USGSClient",
    "UnknownCountryError",
    "ValidationResult",
    "filter_by_country",
    "get_boundary_index",
    "validate",
]
