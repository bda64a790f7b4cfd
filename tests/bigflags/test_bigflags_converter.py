"""Unit tests for bigflags.converter (pytest)."""

from __future__ import annotations

import logging

import pytest

from bigflags.converter import FlagSetConverter
from bigflags.flagset import FlagSet, define_flag_set


@pytest.fixture
def robots() -> type[FlagSet]:
    """Robots-tag style flags with aliases.

    Returns:
        FlagSet subclass.
    """
    return define_flag_set(
        "RobotsTag",
        [
            "Default",
            "NoIndex",
            "NoFollow",
            {"Private": "NoIndex | NoFollow"},
            "NoArchive",
            "NoSnippet",
            {"All": "Private | NoArchive | NoSnippet"},
        ],
    )


def test_can_convert(robots: type[FlagSet]) -> None:
    """Only string targets are supported; any source is accepted."""
    conv = FlagSetConverter(robots)
    assert conv.can_convert_to(str)
    assert not conv.can_convert_to(int)
    assert conv.can_convert_from(int)


def test_convert_to_string(robots: type[FlagSet]) -> None:
    """convert_to uses the name-list form."""
    conv = FlagSetConverter(robots)
    assert conv.convert_to(robots.Private) == "NoIndex, NoFollow"
    assert conv.convert_to(robots.zero()) == "Default"
    assert conv.convert_to(robots.Private, int) is None
    assert conv.convert_to("NoIndex") is None


def test_convert_from_string(robots: type[FlagSet]) -> None:
    """convert_from parses names and aliases."""
    conv = FlagSetConverter(robots)
    assert conv.convert_from("all") == robots.All
    expected = robots.NoArchive | robots.NoSnippet
    assert conv.convert_from("noarchive, NOSNIPPET") == expected
    assert conv.convert_from(None) == robots.zero()


def test_convert_from_falls_back_to_zero(
    robots: type[FlagSet], caplog: pytest.LogCaptureFixture
) -> None:
    """Unknown names degrade to zero and log a warning."""
    conv = FlagSetConverter(robots)
    with caplog.at_level(logging.WARNING, logger="bigflags.converter"):
        out = conv.convert_from("NoIndex, NoCache")
    assert out == robots.zero()
    assert "NoCache" in caplog.text
