"""Unit tests for dotnet_check_updates.core.filters."""

from __future__ import annotations

import pytest

from dotnet_check_updates.core.filters import Filter, is_included, split_filters

PACKAGES = ["Package1.Include", "Package2.Include", "Package3.Exclude", "Other"]


def included(include, exclude):
    inc = split_filters(include)
    exc = split_filters(exclude)
    return [name for name in PACKAGES if is_included(name, inc, exc)]


@pytest.mark.unit
class TestFilter:
    """Tests for a single Filter."""

    def test_substring_ignores_case(self) -> None:
        assert Filter("include").is_match("Package1.Include")
        assert not Filter("Exclude").is_match("Package1.Include")

    def test_glob_is_anchored(self) -> None:
        assert Filter("Package*").is_match("Package1.Include")
        assert not Filter("Include*").is_match("Package1.Include")
        assert Filter("*include").is_match("Package1.Include")

    def test_glob_escapes_other_characters(self) -> None:
        """Test dots in a glob are literal."""
        assert not Filter("Package1?Include*").is_match("Package1.Include")
        assert Filter("Package1.*").is_match("package1.include")
        assert not Filter("Package1.*").is_match("Package1xInclude")

    def test_equality_by_pattern(self) -> None:
        assert Filter("a*") == Filter("a*")
        assert len({Filter("a"), Filter("a")}) == 1


@pytest.mark.unit
class TestSplitFilters:
    """Tests for split_filters."""

    def test_empty(self) -> None:
        assert split_filters(None) == []
        assert split_filters([]) == []

    def test_comma_and_space_separated(self) -> None:
        filters = split_filters(["b, a", "c  a", ",,"])

        assert [f.pattern for f in filters] == ["a", "b", "c"]

    def test_sorted_case_insensitively(self) -> None:
        filters = split_filters(["beta Alpha"])

        assert [f.pattern for f in filters] == ["Alpha", "beta"]


@pytest.mark.unit
class TestIsIncluded:
    """Tests for combining include and exclude filters."""

    def test_no_filters(self) -> None:
        assert included([], []) == PACKAGES

    def test_include_only(self) -> None:
        assert included(["Include"], []) == ["Package1.Include", "Package2.Include"]

    def test_exclude_only(self) -> None:
        assert included([], ["*Exclude*"]) == ["Package1.Include", "Package2.Include", "Other"]

    def test_every_include_filter_must_match(self) -> None:
        assert included(["Package", "2"], []) == ["Package2.Include"]

    def test_comma_separated_includes_are_and_ed(self) -> None:
        """Test one comma separated value does not widen the selection."""
        assert included(["Package1,Package2"], []) == []
        assert included(["Package,Include"], []) == ["Package1.Include", "Package2.Include"]

    def test_include_and_exclude(self) -> None:
        assert included(["Package2.Include"], ["*Exclude* Package1.Include"]) == ["Package2.Include"]

    def test_exclude_wins(self) -> None:
        assert included(["Package*"], ["Package2"]) == ["Package1.Include", "Package3.Exclude"]

    def test_include_and_exclude_across_families(self) -> None:
        names = ["Package1.Include", "Package1.Exclude", "Package2.Include", "Package2.Exclude"]
        include = split_filters(["Package2.Include"])
        exclude = split_filters(["*Exclude* Package1.Include"])

        assert [n for n in names if is_included(n, include, exclude)] == ["Package2.Include"]
