"""End-to-end tests for the text route pipeline with fake collaborators."""

import math
from unittest.mock import patch

import numpy as np
import pytest
import responses

from algo import (
    InvalidRouteRequest,
    NoGlyphCoverage,
    NoStreetDataFound,
    StreetDataUnavailable,
    TextRoutePlanner,
    synthesize_text_route,
)
from algo.context import Options
from algo.errors import StitchFailure
from algo.geo import GeoPoint, path_length_km
from algo.planner import default_connector, default_street_source, estimate_running_time
from algo.connector import GraphConnector, OsrmConnector
from algo.regulator import RegulationOutcome
from algo.segments import RawWay
from algo.street_data import OsmnxStreetSource, OverpassStreetSource

from conftest import FailingConnector, FakeStreetSource, StraightConnector, make_eight_pool

OVERPASS = "https://overpass.test/api/interpreter"


def test_eight_builds_route_in_window():
    streets = FakeStreetSource(make_eight_pool())
    conn = StraightConnector()
    result = synthesize_text_route("8", 0.0, 0.0, 1.0, 3.0, street_source=streets, connector=conn,
                                   rng=np.random.default_rng(0))

    assert result.segments_used == 7
    assert len(result.match.used_ids) == 7
    assert result.in_range(1.0, 3.0)
    assert 1.0 <= result.distance_km <= 3.0
    assert result.distance_km == pytest.approx(path_length_km(result.coordinates))
    assert result.regulation.outcome in (RegulationOutcome.IN_RANGE, RegulationOutcome.EXTENDED)
    # 검색 반경 = max(500, 2 km * 250)
    assert streets.calls == [(0.0, 0.0, 500.0)]


def test_path_starts_at_first_stroke():
    result = synthesize_text_route("8", 0.0, 0.0, 1.0, 3.0,
                                   street_source=FakeStreetSource(make_eight_pool()),
                                   connector=StraightConnector(), rng=np.random.default_rng(0))
    assert result.stitch.order[0] == 0
    assert result.coordinates[0] == result.match.matched[0].start_point


def test_unsupported_text_never_touches_connector():
    conn = StraightConnector()
    with pytest.raises(NoGlyphCoverage) as exc_info:
        synthesize_text_route("Z", 0.0, 0.0, 1.0, 3.0,
                              street_source=FakeStreetSource(make_eight_pool()), connector=conn)

    assert exc_info.value.text == "Z"
    assert conn.calls == []


def test_no_streets():
    conn = StraightConnector()
    with pytest.raises(NoStreetDataFound) as exc_info:
        synthesize_text_route("8", 25.0, 121.5, 3.0, 5.0, street_source=FakeStreetSource([]), connector=conn)

    assert exc_info.value.radius_m == pytest.approx(1000.0)
    assert "121.50000" in str(exc_info.value)
    assert conn.calls == []


def test_only_degenerate_ways_counts_as_no_streets():
    ways = [RawWay(1, (GeoPoint(25.0, 121.5),))]
    with pytest.raises(NoStreetDataFound):
        synthesize_text_route("8", 25.0, 121.5, 3.0, 5.0, street_source=FakeStreetSource(ways),
                              connector=StraightConnector())


def test_connector_failures_still_produce_route():
    conn = FailingConnector()
    result = synthesize_text_route("8", 0.0, 0.0, 4.0, 6.0, street_source=FakeStreetSource(make_eight_pool()),
                                   connector=conn, rng=np.random.default_rng(0))

    assert result.segments_used == 7
    assert len(result.stitch.gaps) == 6
    assert result.coordinates
    # 우회 왕복도 실패 → 짧은 채로 반환
    assert result.regulation.outcome is RegulationOutcome.SHORTFALL
    assert result.regulation.missing_legs == 2
    assert not result.in_range(4.0, 6.0)


def test_partial_match_keeps_going():
    # "8R": R의 대각 획은 매칭 못 해도 나머지는 진행
    ways = make_eight_pool() + make_eight_pool(offset_x_m=200, id_prefix="b-")
    result = synthesize_text_route("8R", 0.0, 0.0, 1.0, 3.0, street_source=FakeStreetSource(ways),
                                   connector=StraightConnector(), rng=np.random.default_rng(0))

    assert result.segments_used == 12
    assert [s.reason.value for s in result.match.skipped] == ["no-eligible-segment"]


@responses.activate
def test_rate_limited_street_query_surfaces_after_three_attempts():
    responses.add(responses.POST, OVERPASS, status=429)
    conn = StraightConnector()
    streets = OverpassStreetSource(OVERPASS, ["residential"], max_attempts=3, retry_delay_s=2.0)

    with patch("algo.street_data.time.sleep") as mock_sleep:
        with pytest.raises(StreetDataUnavailable) as exc_info:
            synthesize_text_route("8", 0.0, 0.0, 1.0, 3.0, street_source=streets, connector=conn)

    assert exc_info.value.attempts == 3
    assert len(responses.calls) == 3
    assert mock_sleep.call_count == 2
    assert conn.calls == []


@pytest.mark.parametrize(
    "text, lat, lng, min_km, max_km",
    [
        ("", 0.0, 0.0, 1.0, 3.0),
        ("   ", 0.0, 0.0, 1.0, 3.0),
        ("8", 91.0, 0.0, 1.0, 3.0),
        ("8", 0.0, -181.0, 1.0, 3.0),
        ("8", 0.0, 0.0, 0.0, 3.0),
        ("8", 0.0, 0.0, 3.0, 3.0),
        ("8", 0.0, 0.0, 4.0, 3.0),
        ("8", 0.0, 0.0, math.nan, 3.0),
        ("8", 0.0, 0.0, 1.0, math.nan),
        ("8", 0.0, 0.0, 1.0, math.inf),
        ("8", math.nan, 0.0, 1.0, 3.0),
        ("8", 0.0, math.inf, 1.0, 3.0),
    ],
)
def test_invalid_requests_fail_before_any_query(text, lat, lng, min_km, max_km):
    streets = FakeStreetSource(make_eight_pool())
    with pytest.raises(InvalidRouteRequest):
        synthesize_text_route(text, lat, lng, min_km, max_km, street_source=streets, connector=StraightConnector())
    assert streets.calls == []


def test_options_seed_makes_extension_reproducible():
    opt = Options(seed=7)
    planner = TextRoutePlanner(opt, street_source=FakeStreetSource(make_eight_pool()), connector=StraightConnector())
    a = planner.synthesize("8", 0.0, 0.0, 4.0, 6.0)
    b = planner.synthesize("8", 0.0, 0.0, 4.0, 6.0)

    assert a.regulation.outcome is RegulationOutcome.EXTENDED
    assert a.coordinates == b.coordinates


def test_planner_holds_no_per_call_state():
    planner = TextRoutePlanner(street_source=FakeStreetSource(make_eight_pool()), connector=StraightConnector())
    first = planner.synthesize("8", 0.0, 0.0, 1.0, 3.0, rng=np.random.default_rng(1))
    second = planner.synthesize("8", 0.0, 0.0, 1.0, 3.0, rng=np.random.default_rng(1))

    # 두 번째 호출도 같은 세그먼트를 다시 쓸 수 있어야 함
    assert second.segments_used == 7
    assert first.coordinates == second.coordinates


def test_default_collaborators_follow_options():
    assert isinstance(default_street_source(Options()), OverpassStreetSource)
    assert isinstance(default_street_source(Options(street_source="osmnx")), OsmnxStreetSource)
    assert isinstance(default_connector(Options(), 0.0, 0.0), OsrmConnector)
    assert isinstance(default_connector(Options(connector="graph"), 0.0, 0.0), GraphConnector)


class ClosingStreetSource(FakeStreetSource):
    def __init__(self, ways):
        super().__init__(ways)
        self.closed = 0

    def close(self):
        self.closed += 1


class ClosingConnector(StraightConnector):
    def __init__(self):
        super().__init__()
        self.closed = 0

    def close(self):
        self.closed += 1


def test_built_collaborators_are_closed_after_each_call():
    streets = ClosingStreetSource(make_eight_pool())
    conn = ClosingConnector()
    with patch("algo.planner.default_street_source", return_value=streets), \
            patch("algo.planner.default_connector", return_value=conn):
        TextRoutePlanner().synthesize("8", 0.0, 0.0, 1.0, 3.0, rng=np.random.default_rng(0))

    assert streets.closed == 1
    assert conn.closed == 1


def test_built_street_source_closed_on_failure():
    streets = ClosingStreetSource(make_eight_pool())
    with patch("algo.planner.default_street_source", return_value=streets), \
            patch("algo.planner.default_connector") as mock_connector:
        with pytest.raises(NoGlyphCoverage):
            TextRoutePlanner().synthesize("Z", 0.0, 0.0, 1.0, 3.0)

    assert streets.closed == 1
    mock_connector.assert_not_called()


def test_injected_collaborators_are_left_open():
    streets = ClosingStreetSource(make_eight_pool())
    conn = ClosingConnector()
    TextRoutePlanner(street_source=streets, connector=conn).synthesize(
        "8", 0.0, 0.0, 1.0, 3.0, rng=np.random.default_rng(0))

    assert streets.closed == 0
    assert conn.closed == 0


def test_stitch_failure_message():
    err = StitchFailure(3)
    assert err.segment_count == 3
    assert "3 matched" in str(err)


@pytest.mark.parametrize(
    "km, label",
    [
        (0.0, "0 min"),
        (2.5, "15 min"),
        (10.0, "1 h 0 min"),
        (10.84, "1 h 5 min"),
    ],
)
def test_estimate_running_time(km, label):
    assert estimate_running_time(km)[2] == label
