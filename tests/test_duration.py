from datetime import timedelta

import pytest

from mediapipeline.schemas.duration import (
    duration_from_json,
    duration_to_json,
    format_duration,
    parse_duration,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("1h30m", timedelta(minutes=90)),
        ("01:02:03", timedelta(hours=1, minutes=2, seconds=3)),
        ("00:00:01.5", timedelta(milliseconds=1500)),
        ("PT1H30M", timedelta(minutes=90)),
    ],
)
def test_parse_duration_source_cases(text, expected):
    assert parse_duration(text) == expected


def test_parse_duration_invalid():
    with pytest.raises(ValueError, match="invalid duration format: nope"):
        parse_duration("nope")


def test_json_round_trip():
    value = duration_from_json('"00:01:30"')
    assert value == timedelta(seconds=90)
    encoded = duration_to_json(value)
    assert encoded == '"1m30s"'
    assert duration_from_json(encoded) == timedelta(seconds=90)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("90s", timedelta(seconds=90)),
        ("1.5h", timedelta(minutes=90)),
        ("300ms", timedelta(milliseconds=300)),
        ("-2m", timedelta(minutes=-2)),
        ("0", timedelta(0)),
        ("00:05:30.500", timedelta(minutes=5, seconds=30, milliseconds=500)),
        ("PT45S", timedelta(seconds=45)),
        ("  5m  ", timedelta(minutes=5)),
    ],
)
def test_parse_other_forms(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "1:2:3", "5x", "h", "12:00"])
def test_parse_rejects_malformed(text):
    with pytest.raises(ValueError):
        parse_duration(text)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (timedelta(0), "0s"),
        (timedelta(seconds=90), "1m30s"),
        (timedelta(hours=1), "1h0m0s"),
        (timedelta(milliseconds=1500), "1.5s"),
        (timedelta(milliseconds=250), "250ms"),
        (timedelta(microseconds=1500), "1.5ms"),
        (timedelta(seconds=-30), "-30s"),
    ],
)
def test_format_duration(value, expected):
    assert format_duration(value) == expected


@pytest.mark.parametrize(
    "value",
    [
        timedelta(seconds=1),
        timedelta(hours=26, minutes=3, seconds=7, microseconds=25),
        timedelta(microseconds=7),
        timedelta(minutes=-90),
    ],
)
def test_format_parse_round_trip(value):
    assert parse_duration(format_duration(value)) == value


def test_from_json_rejects_non_string():
    with pytest.raises(ValueError):
        duration_from_json("90")