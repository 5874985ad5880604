"""
USGS feed ingestion.

Modules:
    schemas      — pydantic models of the GeoJSON response
    codec        — descriptor → query string, bytes → ResultSet
    transport    — httpx GET with error mapping
    usgs_client  — USGSClient and FetchResult
"""
