"""
country_filter.py — Narrow a ResultSet to events inside one country.

The feed itself has no notion of countries; the filter runs client-side on
decoded records, using the epicentre of each event and the polygons of the
``BoundaryIndex``. Record order is preserved, so a result ordered by
magnitude stays ordered by magnitude.
"""

from __future__ import annotations

import logging
from typing import Optional

from quakefeed.query.models import ResultSet
from quakefeed.spatial.boundaries import (
    BoundaryIndex,
    get_boundary_index,
    normalize_country_code,
)

logger = logging.getLogger(__name__)


class CountryFilter:
    """
    Keep the records whose epicentre falls inside a country.

    Usage:
        kept = CountryFilter().apply(result_set, "TR")
    """

    def __init__(self, index: Optional[BoundaryIndex] = None):
        self._index = index

    @property
    def index(self) -> BoundaryIndex:
        if self._index is None:
            self._index = get_boundary_index()
        return self._index

    def apply(self, result_set: ResultSet, country_code: str) -> ResultSet:
        """
        Parameters
        ----------
        result_set : ResultSet
            Decoded feed records.
        country_code : str
            ISO-3166 alpha-2 code (case-insensitive).

        Returns
        -------
        ResultSet
            New set holding only the matching records, same order.

        Raises
        ------
        UnknownCountryError
            If a non-empty set is filtered on a code the index lacks.
        """
        if not result_set.records:
            return result_set

        code = normalize_country_code(country_code)
        polygons = self.index.polygons_for(code)
        kept = tuple(
            record for record in result_set.records
            if any(poly.contains(record.latitude, record.longitude) for poly in polygons)
        )

        logger.debug(
            "Country filter %s: kept %d of %d events",
            code, len(kept), len(result_set.records),
            extra={"country_code": code, "count": len(result_set.records), "kept": len(kept)},
        )
        return result_set.with_records(kept)


def filter_by_country(
    result_set: ResultSet,
    country_code: str,
    index: Optional[BoundaryIndex] = None,
) -> ResultSet:
    """Functional shortcut for ``CountryFilter(index).apply(...)``."""
    return CountryFilter(index).apply(result_set, country_code)
