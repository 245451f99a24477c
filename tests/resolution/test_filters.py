"""Unit tests for the exact-match and version filter strategies.

Tests cover:
- Exact match beats wildcard, wildcard beats nothing
- Exact and wildcard rows never mixed in one result
- Closest version at or below the request, ties kept together
- Wildcard fallback below the lowest stored version
- Malformed versions raise instead of being skipped
"""

import pytest

from smartconfig.resolution import (
    CandidateRecord,
    InvalidVersionFormatError,
    filter_by_string,
    filter_by_version,
    get_strategy,
    register_strategy,
)
from smartconfig.resolution.filters import FILTER_STRATEGIES


def values(records):
    return [r.value for r in records]


@pytest.mark.unit
class TestFilterByString:
    """Tests for exact-match-with-wildcard-fallback."""

    def test_exact_match(self, candidate_records):
        result = filter_by_string(candidate_records, "Environment", "ABC")
        assert values(result) == ["v1"]

    def test_exact_match_is_case_insensitive(self, candidate_records):
        result = filter_by_string(candidate_records, "Environment", "jkl")
        assert values(result) == ["v4"]

    def test_falls_back_to_wildcards(self, candidate_records):
        result = filter_by_string(candidate_records, "Environment", "QRS")
        assert values(result) == ["v0", "v3"]

    def test_never_mixes_exact_and_wildcard(self, candidate_records):
        for requested in ["ABC", "XYZ", "JKL", "QRS", "*"]:
            result = filter_by_string(candidate_records, "Environment", requested)
            stored = {r.dimension("Environment").casefold() for r in result}
            assert stored in ({requested.casefold()}, {"*"})

    def test_no_match_and_no_wildcard_is_empty(self):
        records = [
            CandidateRecord("Timeout", "a", {"Environment": "ABC"}),
            CandidateRecord("Timeout", "b", {"Environment": "XYZ"}),
        ]
        assert filter_by_string(records, "Environment", "QRS") == []

    def test_rows_without_the_dimension_never_match(self):
        records = [CandidateRecord("Timeout", "a", {})]
        assert filter_by_string(records, "Environment", "ABC") == []

    def test_dimension_name_is_case_insensitive(self):
        records = [
            CandidateRecord("Timeout", "a", {"environment": "PROD"}),
            CandidateRecord("Timeout", "b", {"ENVIRONMENT": "*"}),
        ]
        assert values(filter_by_string(records, "Environment", "PROD")) == ["a"]
        assert values(filter_by_string(records, "Environment", "TEST")) == ["b"]

    def test_never_adds_records(self, candidate_records):
        result = filter_by_string(candidate_records[:2], "Environment", "QRS")
        assert values(result) == ["v0"]


@pytest.mark.unit
class TestFilterByVersion:
    """Tests for version-upper-bound-with-wildcard-fallback."""

    @pytest.mark.parametrize(("requested", "expected"), [
        ("2.4.1", ["v2"]),
        ("2.4.0", ["v2"]),
        ("1.4.0", ["v1"]),
        ("3.9.9", ["v3"]),
        ("10.0.0", ["v4"]),
    ])
    def test_closest_version_at_or_below(self, candidate_records, requested, expected):
        assert values(filter_by_version(candidate_records, "Version", requested)) == expected

    def test_below_lowest_version_falls_back_to_wildcards(self, candidate_records):
        assert values(filter_by_version(candidate_records, "Version", "1.1.3")) == ["v0"]

    def test_below_lowest_version_without_wildcard_is_empty(self):
        records = [CandidateRecord("Timeout", "a", {"Version": "2.0.0"})]
        assert filter_by_version(records, "Version", "1.0.0") == []

    def test_ties_are_all_returned(self):
        records = [
            CandidateRecord("Timeout", "a", {"Version": "2.0.0", "Region": "EU"}),
            CandidateRecord("Timeout", "b", {"Version": "2.0.0", "Region": "US"}),
            CandidateRecord("Timeout", "c", {"Version": "1.0.0", "Region": "EU"}),
        ]
        assert values(filter_by_version(records, "Version", "2.5.0")) == ["a", "b"]

    def test_build_metadata_does_not_break_ties(self):
        records = [
            CandidateRecord("Timeout", "a", {"Version": "1.0.0+build.1"}),
            CandidateRecord("Timeout", "b", {"Version": "1.0.0+build.2"}),
        ]
        assert values(filter_by_version(records, "Version", "1.0.0")) == ["a", "b"]

    def test_prerelease_is_below_release(self):
        records = [
            CandidateRecord("Timeout", "beta", {"Version": "2.0.0-beta"}),
            CandidateRecord("Timeout", "release", {"Version": "2.0.0"}),
        ]
        assert values(filter_by_version(records, "Version", "2.0.0-rc.1")) == ["beta"]
        assert values(filter_by_version(records, "Version", "2.0.0")) == ["release"]

    def test_invalid_requested_version_raises(self, candidate_records):
        with pytest.raises(InvalidVersionFormatError) as exc_info:
            filter_by_version(candidate_records, "Version", "1.2")
        assert exc_info.value.value == "1.2"
        assert exc_info.value.dimension == "Version"

    def test_invalid_stored_version_raises(self):
        records = [
            CandidateRecord("Timeout", "a", {"Version": "1.0.0"}),
            CandidateRecord("Timeout", "b", {"Version": "latest"}),
        ]
        with pytest.raises(InvalidVersionFormatError):
            filter_by_version(records, "Version", "2.0.0")


@pytest.mark.unit
def test_string_then_version():
    """Filters compose: the version filter only sees what the environment filter kept."""
    records = [
        CandidateRecord("Timeout", "a", {"Environment": "ABC", "Version": "*"}),
        CandidateRecord("Timeout", "b", {"Environment": "XYZ", "Version": "1.3.0"}),
        CandidateRecord("Timeout", "c", {"Environment": "XYZ", "Version": "2.4.0"}),
    ]
    result = filter_by_string(records, "Environment", "XYZ")
    result = filter_by_version(result, "Version", "1.4.0")
    assert values(result) == ["b"]


@pytest.mark.unit
def test_register_custom_strategy():
    """Custom strategies are looked up by name."""

    def prefix_strategy(records, dimension, requested_value):
        return [r for r in records if (r.dimension(dimension) or "").startswith(requested_value)]

    try:
        register_strategy("prefix", prefix_strategy)
        assert get_strategy("prefix") is prefix_strategy
    finally:
        FILTER_STRATEGIES.pop("prefix", None)


@pytest.mark.unit
def test_unknown_strategy_raises():
    with pytest.raises(ValueError):
        get_strategy("does-not-exist")
