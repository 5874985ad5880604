"""
test_boundaries.py — BoundaryIndex over the packaged country dataset.

Covers:
    • Country membership for well-known epicentres
    • Multi-polygon countries (islands) and holes (enclaves)
    • Borders between neighbours (Hatay, the Aegean islands, Tijuana)
    • Anti-meridian polygons (Fiji, Aleutians, Chukotka)
    • Unknown codes, case-insensitive lookup
    • GeoJSONBoundarySource parsing (Natural Earth properties, splitting
      at ±180°) and the shared default index

Run with:
    pytest tests/test_boundaries.py -v
"""

from __future__ import annotations

import json

import pytest

from quakefeed.core.errors import UnknownCountryError
from quakefeed.spatial import boundaries as boundaries_module
from quakefeed.spatial.boundaries import (
    BoundaryIndex,
    BoundaryPolygon,
    GeoJSONBoundarySource,
    get_boundary_index,
)
from quakefeed.spatial.geometry import Coordinate


@pytest.fixture(scope="module")
def index() -> BoundaryIndex:
    return BoundaryIndex.from_source(GeoJSONBoundarySource())


def _make_feature(code: str, geometry: dict, name: str = "Somewhere") -> dict:
    return {
        "type": "Feature",
        "properties": {"iso_a2": code, "name": name},
        "geometry": geometry,
    }


def _write_collection(path, features) -> str:
    path.write_text(json.dumps({"type": "FeatureCollection", "features": features}))
    return str(path)


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Packaged dataset
# ═══════════════════════════════════════════════════════════════════════════

class TestPackagedDataset:

    @pytest.mark.parametrize("lat, lon", [
        (39.93, 32.85),   # Ankara
        (41.01, 28.97),   # Istanbul
        (37.17, 37.04),   # Kahramanmaraş
        (38.39, 39.06),   # Elazığ
        (36.20, 36.16),   # Antakya
        (41.68, 26.56),   # Edirne
        (38.42, 27.14),   # İzmir
    ])
    def test_inside_turkey(self, index, lat, lon):
        assert index.contains(Coordinate(lat, lon), "TR")

    @pytest.mark.parametrize("lat, lon", [
        (37.98, 23.70),   # Athens
        (35.17, 33.36),   # Nicosia
        (35.70, 51.40),   # Tehran
    ])
    def test_outside_turkey(self, index, lat, lon):
        assert not index.contains(Coordinate(lat, lon), "TR")

    def test_tehran_in_iran(self, index):
        assert index.contains((35.69, 51.39), "IR")

    def test_hatay_is_not_syria(self, index):
        assert not index.contains((36.20, 36.16), "SY")
        assert index.contains((36.20, 37.16), "SY")   # Aleppo

    @pytest.mark.parametrize("lat, lon", [
        (39.10, 26.55),   # Mytilene, Lesbos
        (38.37, 26.14),   # Chios
        (37.75, 26.98),   # Samos
        (36.20, 27.95),   # Rhodes
    ])
    def test_aegean_islands_are_greek(self, index, lat, lon):
        assert index.contains((lat, lon), "GR")
        assert not index.contains((lat, lon), "TR")

    def test_tijuana(self, index):
        assert index.contains((32.50, -117.00), "MX")
        assert not index.contains((32.50, -117.00), "US")

    def test_san_diego(self, index):
        assert index.contains((32.72, -117.16), "US")
        assert not index.contains((32.72, -117.16), "MX")

    def test_mexico_city(self, index):
        assert index.contains((19.43, -99.13), "MX")
        assert not index.contains((19.43, -99.13), "US")

    def test_any_polygon_matches(self, index):
        # Sicily is a separate polygon from the mainland
        assert index.contains((37.5, 14.0), "IT")
        assert len(index.polygons_for("IT")) == 3

    def test_known_codes(self, index):
        codes = index.country_codes()
        for code in ("TR", "GR", "IR", "IT", "JP", "US", "MX", "CL", "NZ", "FJ"):
            assert code in codes
        assert list(codes) == sorted(codes)

    @pytest.mark.parametrize("code, lat, lon", [
        ("DE", 52.52, 13.40),     # Berlin
        ("CN", 30.67, 104.07),    # Chengdu
        ("ID", -6.20, 106.85),    # Jakarta
        ("PE", -12.05, -77.04),   # Lima
        ("PH", 14.60, 120.98),    # Manila
        ("IN", 28.61, 77.21),     # Delhi
        ("AF", 34.53, 69.17),     # Kabul
        ("NP", 27.70, 85.32),     # Kathmandu
        ("FR", 48.86, 2.35),      # Paris
        ("NO", 59.91, 10.75),     # Oslo
    ])
    def test_capitals(self, index, code, lat, lon):
        assert index.contains((lat, lon), code)

    def test_neighbours_do_not_claim_capitals(self, index):
        assert not index.contains((27.70, 85.32), "IN")
        assert not index.contains((27.70, 85.32), "CN")
        assert not index.contains((34.53, 69.17), "PK")
        assert not index.contains((-33.45, -70.67), "AR")   # Santiago

    def test_names_behind_unassigned_codes(self, index):
        assert index.name_for("FR") == "France"
        assert index.name_for("NO") == "Norway"

    def test_name_for(self, index):
        assert index.name_for("TR") == "Turkey"

    def test_case_insensitive(self, index):
        assert "tr" in index
        assert index.contains((39.93, 32.85), "tr")

    def test_unknown_code(self, index):
        assert "ZZ" not in index
        with pytest.raises(UnknownCountryError) as exc_info:
            index.contains((0.0, 0.0), "ZZ")
        assert exc_info.value.country_code == "ZZ"

    def test_lookup_is_repeatable(self, index):
        point = Coordinate(37.17, 37.04)
        assert all(index.contains(point, "TR") for _ in range(10))


class TestHoles:

    def test_vatican_interior(self, index):
        assert index.contains((41.903, 12.452), "VA")
        assert not index.contains((41.903, 12.452), "IT")

    def test_hole_edge_counts_for_both(self, index):
        assert index.contains((41.900, 12.450), "VA")
        assert index.contains((41.900, 12.450), "IT")

    def test_rome_outside_hole(self, index):
        assert index.contains((41.89, 12.49), "IT")

    def test_san_marino(self, index):
        assert index.contains((43.94, 12.46), "SM")
        assert not index.contains((43.94, 12.46), "IT")


class TestAntiMeridian:

    @pytest.mark.parametrize("lat, lon", [(-18.14, 178.44), (-17.5, -179.0)])
    def test_fiji(self, index, lat, lon):
        assert index.contains((lat, lon), "FJ")

    def test_east_of_fiji(self, index):
        assert not index.contains((-17.5, -177.0), "FJ")

    @pytest.mark.parametrize("lat, lon", [(51.9, 179.5), (51.9, -179.5), (51.9, 180.0)])
    def test_aleutians(self, index, lat, lon):
        assert index.contains((lat, lon), "US")

    @pytest.mark.parametrize("lat, lon", [
        (67.0, -176.0),   # Chukotka
        (64.73, 177.5),   # Anadyr
        (55.75, 37.62),   # Moscow
    ])
    def test_russia(self, index, lat, lon):
        assert index.contains((lat, lon), "RU")

    @pytest.mark.parametrize("code", ["FJ", "RU", "US"])
    def test_packaged_rings_are_split(self, index, code):
        for poly in index.polygons_for(code):
            lons = [lon for _, lon in poly.ring]
            assert max(lons) - min(lons) < 180.0


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Construction
# ═══════════════════════════════════════════════════════════════════════════

class TestBoundaryPolygon:

    def test_needs_three_vertices(self):
        with pytest.raises(ValueError):
            BoundaryPolygon("XX", ((0.0, 0.0), (1.0, 1.0)))

    def test_latitude_band(self):
        poly = BoundaryPolygon("XX", ((0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)))
        assert poly.min_lat == 0.0
        assert poly.max_lat == 10.0
        assert not poly.contains(10.5, 5.0)

    def test_band_keeps_points_within_edge_tolerance(self):
        poly = BoundaryPolygon("XX", ((0.0, 0.0), (0.0, 10.0), (10.0, 5.0)))
        assert poly.contains(10.0 + 5e-10, 5.0)
        assert poly.contains(-5e-10, 2.0)
        assert not poly.contains(10.0 + 1e-6, 5.0)


class TestGeoJSONBoundarySource:

    def test_polygon_and_multipolygon(self, tmp_path):
        path = _write_collection(tmp_path / "b.geojson", [
            _make_feature("AA", {"type": "Polygon", "coordinates": [
                [[0, 0], [10, 0], [10, 10], [0, 10], [0, 0]],
            ]}, name="Alpha"),
            _make_feature("BB", {"type": "MultiPolygon", "coordinates": [
                [[[20, 0], [30, 0], [30, 10], [20, 0]]],
                [[[40, 0], [50, 0], [50, 10], [40, 0]]],
            ]}),
        ])
        countries = GeoJSONBoundarySource(path).load()
        assert set(countries) == {"AA", "BB"}
        assert countries["AA"].name == "Alpha"
        assert len(countries["BB"].polygons) == 2

    def test_positions_are_lon_lat(self, tmp_path):
        path = _write_collection(tmp_path / "b.geojson", [
            _make_feature("AA", {"type": "Polygon", "coordinates": [
                [[100, 0], [110, 0], [110, 5], [100, 5], [100, 0]],
            ]}),
        ])
        index = BoundaryIndex.from_source(GeoJSONBoundarySource(path))
        assert index.contains((2.5, 105.0), "AA")
        ring = index.polygons_for("AA")[0].ring
        assert ring[0] == (0.0, 100.0)
        assert len(ring) == 4

    def test_unassigned_code_skipped(self, tmp_path):
        square = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]}
        path = _write_collection(tmp_path / "b.geojson", [
            _make_feature("-99", square),
            _make_feature("", square),
            _make_feature("cc", square),
        ])
        assert set(GeoJSONBoundarySource(path).load()) == {"CC"}

    def test_features_with_same_code_merged(self, tmp_path):
        square = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]}
        path = _write_collection(tmp_path / "b.geojson", [
            _make_feature("DD", square),
            _make_feature("DD", square),
        ])
        assert len(GeoJSONBoundarySource(path).load()["DD"].polygons) == 2

    def test_natural_earth_properties(self, tmp_path):
        square = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]}
        path = _write_collection(tmp_path / "ne.geojson", [
            {"type": "Feature", "geometry": square,
             "properties": {"ISO_A2": "-99", "ISO_A2_EH": "FR", "NAME": "France"}},
            {"type": "Feature", "geometry": square,
             "properties": {"ISO_A2": "-99", "ISO_A2_EH": "-99", "NAME": "Somaliland"}},
            {"type": "Feature", "geometry": square,
             "properties": {"ISO_A2": "NP", "ADMIN": "Nepal"}},
        ])
        countries = GeoJSONBoundarySource(path).load()
        assert set(countries) == {"FR", "NP"}
        assert countries["FR"].name == "France"
        assert countries["NP"].name == "Nepal"

    def test_ring_across_antimeridian_is_split(self, tmp_path):
        path = _write_collection(tmp_path / "b.geojson", [
            _make_feature("FJ", {"type": "Polygon", "coordinates": [
                [[177, -19], [177, -16], [-179, -16], [-179, -19], [177, -19]],
            ]}),
        ])
        index = BoundaryIndex.from_source(GeoJSONBoundarySource(path))
        assert len(index.polygons_for("FJ")) == 2
        assert index.contains((-17.5, 179.9), "FJ")
        assert index.contains((-17.5, -179.5), "FJ")
        assert index.contains((-17.5, 180.0), "FJ")
        assert not index.contains((-17.5, -178.0), "FJ")

    def test_hole_stays_with_its_half(self, tmp_path):
        path = _write_collection(tmp_path / "b.geojson", [
            _make_feature("KI", {"type": "Polygon", "coordinates": [
                [[170, -20], [170, -10], [-170, -10], [-170, -20], [170, -20]],
                [[-175, -16], [-173, -16], [-173, -14], [-175, -14], [-175, -16]],
            ]}),
        ])
        index = BoundaryIndex.from_source(GeoJSONBoundarySource(path))
        west, east = index.polygons_for("KI")
        assert west.holes == ()
        assert len(east.holes) == 1
        assert not index.contains((-15.0, -174.0), "KI")
        assert index.contains((-16.0, -174.0), "KI")
        assert index.contains((-15.0, 175.0), "KI")

    def test_unsupported_geometry(self, tmp_path):
        path = _write_collection(tmp_path / "b.geojson", [
            _make_feature("EE", {"type": "Point", "coordinates": [0, 0]}),
        ])
        with pytest.raises(ValueError, match="Unsupported geometry"):
            GeoJSONBoundarySource(path).load()


class TestBoundaryIndex:

    def test_from_polygons(self):
        index = BoundaryIndex.from_polygons({
            "xx": [[(0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (10.0, 0.0)]],
        })
        assert len(index) == 1
        assert index.contains((5.0, 5.0), "XX")
        assert index.contains((0.0, 5.0), "XX")

    def test_unknown_code_in_polygons_for(self):
        with pytest.raises(UnknownCountryError):
            BoundaryIndex.from_polygons({}).polygons_for("TR")

    def test_shared_default_is_singleton(self, monkeypatch):
        monkeypatch.setattr(boundaries_module, "_default_index", None)
        first = get_boundary_index()
        assert get_boundary_index() is first
        assert "TR" in first
