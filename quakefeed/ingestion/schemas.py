"""
Pydantic schemas for the USGS GeoJSON response.

Only the fields the codec relies on are typed; everything else on a
feature's ``properties`` is carried through untouched (``extra="allow"``).

USGS GeoJSON format:
    {
        "type": "FeatureCollection",
        "metadata": {"generated": 1733011200000, "url": "...", "title": "...",
                     "status": 200, "api": "1.14.1", "count": 2},
        "features": [
            {
                "type": "Feature",
                "properties": {"mag": 5.2, "place": "...", "time": 1733011200000, ...},
                "geometry": {"type": "Point", "coordinates": [lon, lat, depth_km]},
                "id": "us7000m..."
            }
        ],
        "bbox": [min_lon, min_lat, min_depth, max_lon, max_lat, max_depth]
    }
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FeedMetadataSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    generated: Optional[int] = None
    url: Optional[str] = None
    title: Optional[str] = None
    status: Optional[int] = None
    api: Optional[str] = None
    count: Optional[int] = None


class PointGeometrySchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "Point"
    coordinates: List[Optional[float]] = Field(..., min_length=2)

    @field_validator("coordinates")
    @classmethod
    def _lat_lon_present(cls, value: List[Optional[float]]) -> List[Optional[float]]:
        lon, lat = value[0], value[1]
        if lon is None or lat is None:
            raise ValueError("longitude and latitude are required")
        if not (-90.0 <= lat <= 90.0):
            raise ValueError(f"latitude out of range: {lat}")
        if not (-180.0 <= lon <= 180.0):
            raise ValueError(f"longitude out of range: {lon}")
        return value


class FeaturePropertiesSchema(BaseModel):
    model_config = ConfigDict(extra="allow")

    mag: Optional[float] = None
    place: Optional[str] = None
    time: int
    alert: Optional[str] = None


class FeatureSchema(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "Feature"
    id: str
    properties: FeaturePropertiesSchema
    geometry: PointGeometrySchema


class FeatureCollectionSchema(BaseModel):
    """
    Envelope only — features are kept raw and validated one by one so a
    single malformed event does not sink the whole response.
    """
    model_config = ConfigDict(extra="ignore")

    type: str = "FeatureCollection"
    metadata: Optional[FeedMetadataSchema] = None
    features: List[Any]
    bbox: Optional[List[float]] = None
