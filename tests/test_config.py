"""Tests for config.PipelineSettings."""

import math

import pytest

from config import (
    DEFAULT_CONTRAST_FACTOR,
    DEFAULT_DARK_COLOR,
    DEFAULT_LIGHT_COLOR,
    PipelineSettings,
)

pytestmark = pytest.mark.smoke


def test_defaults():
    s = PipelineSettings()
    assert s.max_longest_edge == 1000
    assert s.min_shortest_edge == 300
    assert s.contrast_factor == DEFAULT_CONTRAST_FACTOR == 1.5
    assert s.dark_color == DEFAULT_DARK_COLOR == "#1b602f"
    assert s.light_color == DEFAULT_LIGHT_COLOR == "#f784c5"
    assert s.validate() == []


def test_from_env_reads_prefixed_variables():
    s = PipelineSettings.from_env(
        {
            "DUOTONE_MAX_LONGEST_EDGE": "800",
            "DUOTONE_MIN_SHORTEST_EDGE": " 200 ",
            "DUOTONE_CONTRAST_FACTOR": "2.0",
            "DUOTONE_DARK_COLOR": "#000",
            "DUOTONE_LIGHT_COLOR": "ffffff",
        }
    )
    assert s == PipelineSettings(800, 200, 2.0, "#000", "ffffff")


def test_from_env_bad_value_falls_back(caplog):
    s = PipelineSettings.from_env({"DUOTONE_MAX_LONGEST_EDGE": "huge"})
    assert s.max_longest_edge == 1000
    assert "DUOTONE_MAX_LONGEST_EDGE" in caplog.text


def test_from_env_empty_ignored():
    assert PipelineSettings.from_env({"DUOTONE_CONTRAST_FACTOR": ""}) == PipelineSettings()


def test_from_env_uses_os_environ(monkeypatch):
    monkeypatch.setenv("DUOTONE_CONTRAST_FACTOR", "1.25")
    assert PipelineSettings.from_env().contrast_factor == 1.25


def test_with_overrides_replaces_known_keys():
    s = PipelineSettings().with_overrides(
        {"contrast_factor": 3, "dark_color": "#123456", "bogus": 1}
    )
    assert s.contrast_factor == 3.0
    assert s.dark_color == "#123456"
    assert s.max_longest_edge == 1000


def test_with_overrides_none_values_ignored():
    assert PipelineSettings().with_overrides({"dark_color": None}) == PipelineSettings()


def test_with_overrides_rejects_fractional_edge():
    with pytest.raises(ValueError):
        PipelineSettings().with_overrides({"max_longest_edge": 12.5})


def test_with_overrides_rejects_wrong_type():
    with pytest.raises(ValueError):
        PipelineSettings().with_overrides({"contrast_factor": [1, 2]})


def test_with_overrides_rejects_non_mapping():
    with pytest.raises(ValueError, match="object"):
        PipelineSettings().with_overrides([1])


@pytest.mark.parametrize("value", [123, ["#000000"], 1.5])
def test_with_overrides_rejects_non_string_color(value):
    with pytest.raises(ValueError, match="hex string"):
        PipelineSettings().with_overrides({"dark_color": value})


def test_overrides_do_not_mutate_original():
    base = PipelineSettings()
    base.with_overrides({"contrast_factor": 2.0})
    assert base.contrast_factor == 1.5


def test_reset_colors():
    s = PipelineSettings(dark_color="#000", light_color="#fff").reset_colors()
    assert (s.dark_color, s.light_color) == ("#1b602f", "#f784c5")


@pytest.mark.parametrize(
    "kwargs,fragment",
    [
        ({"max_longest_edge": 0}, "max_longest_edge"),
        ({"min_shortest_edge": -1}, "min_shortest_edge"),
        ({"contrast_factor": 0.0}, "contrast_factor"),
        ({"contrast_factor": math.nan}, "contrast_factor"),
        ({"dark_color": "#12"}, "dark_color"),
        ({"light_color": "pink"}, "light_color"),
    ],
)
def test_validate_reports_errors(kwargs, fragment):
    errors = PipelineSettings(**kwargs).validate()
    assert len(errors) == 1
    assert fragment in errors[0]


def test_to_dict():
    assert PipelineSettings().to_dict()["dark_color"] == "#1b602f"
