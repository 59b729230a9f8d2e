from __future__ import annotations

import json

import pytest

from roadrisk.exceptions import ParseError
from roadrisk.ingestion.normalize import safe_float, safe_int
from roadrisk.ingestion.parsers import parse_congestion, parse_geometry, parse_volumes, parse_weather_code


def _json(value: object) -> bytes:
    return json.dumps(value).encode()


def _overpass(ways: int, points: int) -> bytes:
    return _json(
        {
            "elements": [
                {
                    "type": "way",
                    "id": 1000 + w,
                    "geometry": [{"lat": 41.87 + p * 0.001, "lon": -87.62 - w * 0.001} for p in range(points)],
                }
                for w in range(ways)
            ]
        }
    )


def test_geometry_keeps_point_order_as_lon_lat() -> None:
    payload = _json(
        {
            "elements": [
                {"geometry": [{"lat": 41.8781, "lon": -87.6298}, {"lat": 41.879, "lon": -87.6301}]},
                {"geometry": [{"lat": 41.87, "lon": -87.62}]},
            ]
        }
    )

    table = parse_geometry(payload)

    assert table.num_segments == 2
    assert [p.as_position() for p in table[0].points] == [[-87.6298, 41.8781], [-87.6301, 41.879]]
    assert len(table[1]) == 1


def test_geometry_truncates_ways_and_points() -> None:
    table = parse_geometry(_overpass(5, 10), max_segments=3, max_points=4)

    assert table.num_segments == 3
    assert all(len(segment) == 4 for segment in table.segments)


def test_geometry_way_without_points_is_kept_empty() -> None:
    table = parse_geometry(_json({"elements": [{"type": "way"}, {"geometry": [{"lat": 1, "lon": 2}]}]}))

    assert table.num_segments == 2
    assert len(table[0]) == 0


@pytest.mark.parametrize(
    "payload",
    [b"not json", _json([1, 2]), _json({"remark": "runtime error"}), _json({"elements": [{"geometry": [{"lat": 1}]}]})],
)
def test_geometry_rejects_malformed_payloads(payload: bytes) -> None:
    with pytest.raises(ParseError) as info:
        parse_geometry(payload)
    assert info.value.feed == "geometry"


def test_weather_adverse_code_maps_to_one() -> None:
    payload = _json({"current_weather": {"temperature": 8.1, "weathercode": 61}})

    assert parse_weather_code(payload) == 1


def test_weather_clear_code_maps_to_zero() -> None:
    payload = _json({"current_weather": {"temperature": 21.0, "weathercode": 0}})

    assert parse_weather_code(payload) == 0


def test_weather_rain_reading_counts_as_adverse() -> None:
    payload = _json({"current": {"weather_code": 3, "rain": 0.4}})

    assert parse_weather_code(payload) == 1


def test_weather_custom_codes() -> None:
    payload = _json({"current_weather": {"weathercode": 95}})

    assert parse_weather_code(payload) == 0
    assert parse_weather_code(payload, adverse_codes={95}) == 1


@pytest.mark.parametrize("payload", [b"<html>", _json([]), _json({"hourly": {}}), _json({"current_weather": {}})])
def test_weather_rejects_malformed_payloads(payload: bytes) -> None:
    with pytest.raises(ParseError):
        parse_weather_code(payload)


def test_volumes_accept_numbers_and_numeric_strings() -> None:
    payload = _json(
        [
            {"total_passing_vehicle_volume": 40000},
            {"total_passing_vehicle_volume": "25100"},
            {"total_passing_vehicle_volume": "31000.5"},
        ]
    )

    assert parse_volumes(payload) == [40000.0, 25100.0, 31000.5]


def test_volumes_non_numeric_fails_payload() -> None:
    payload = _json([{"total_passing_vehicle_volume": "n/a"}])

    with pytest.raises(ParseError):
        parse_volumes(payload)


def test_volumes_limit_ignores_records_past_segments() -> None:
    seen: list[int] = []
    payload = _json(
        [
            {"total_passing_vehicle_volume": "1"},
            {"total_passing_vehicle_volume": 2},
            {"street": "no volume here"},
        ]
    )

    assert parse_volumes(payload, limit=2, on_truncate=seen.append) == [1.0, 2.0]
    assert seen == [3]


def test_congestion_accepts_numbers_or_objects() -> None:
    assert parse_congestion(_json([1, "8", {"congestion": 9.5}])) == [1.0, 8.0, 9.5]

    with pytest.raises(ParseError):
        parse_congestion(_json([{"level": 3}]))


def test_safe_float_handles_strings_and_rejects_junk() -> None:
    assert safe_float("12.5") == 12.5
    assert safe_float(7) == 7.0
    assert safe_float("") is None
    assert safe_float("abc") is None
    assert safe_float(float("nan")) is None
    assert safe_float(True) is None
    assert safe_int("61") == 61


def test_safe_float_rejects_integers_too_large_for_a_float() -> None:
    assert safe_float(10**400) is None
    assert safe_int(10**400) is None


@pytest.mark.parametrize(
    "payload",
    [
        b"[" + b"1" * 5000 + b"]",
        b"[" * 100_000 + b"]" * 100_000,
    ],
)
def test_congestion_oversized_payloads_fail_as_parse_errors(payload: bytes) -> None:
    with pytest.raises(ParseError) as info:
        parse_congestion(payload)
    assert info.value.feed == "congestion"


def test_volumes_number_beyond_float_range_fails_payload() -> None:
    payload = b'[{"total_passing_vehicle_volume": 1' + b"0" * 400 + b"}]"

    with pytest.raises(ParseError) as info:
        parse_volumes(payload)
    assert info.value.feed == "volume"


@pytest.mark.parametrize("literal", [b"NaN", b"Infinity", b"-Infinity"])
def test_geometry_rejects_non_finite_coordinates(literal: bytes) -> None:
    payload = b'{"elements":[{"geometry":[{"lat":' + literal + b',"lon":1},{"lat":2,"lon":3}]}]}'

    with pytest.raises(ParseError) as info:
        parse_geometry(payload)
    assert info.value.feed == "geometry"
