"""
NuGet version and version range model.

NuGet versions differ from PEP 440 versions in a handful of ways that
matter for upgrade resolution: up to four numeric parts, dot separated
release labels compared part by part (numeric labels below alphanumeric
ones, alphanumeric labels compared case-insensitively), and build
metadata that never takes part in comparisons. Version ranges use the
interval notation ``[1.0,2.0)`` together with floating forms such as
``1.*`` or ``1.0.0-beta*``.

Example:
    >>> NuGetVersion.parse("1.0") == NuGetVersion.parse("1.0.0.0")
    True
    >>> VersionRange.parse("[1.0,)").to_normalized_string()
    '[1.0.0, )'
"""

from __future__ import annotations

import re
from enum import Enum
from functools import total_ordering
from typing import Optional, Tuple

from dotnet_check_updates.exceptions import InvalidVersionError

_VERSION_RE = re.compile(
    r"^\s*"
    r"(?P<major>\d+)"
    r"(?:\.(?P<minor>\d+))?"
    r"(?:\.(?P<patch>\d+))?"
    r"(?:\.(?P<revision>\d+))?"
    r"(?:-(?P<release>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<metadata>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"\s*$"
)


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def _compare_label(left: str, right: str) -> int:
    left_numeric = left.isdigit()
    right_numeric = right.isdigit()

    if left_numeric and right_numeric:
        return _cmp(int(left), int(right))
    if left_numeric:
        return -1
    if right_numeric:
        return 1
    return _cmp(left.upper(), right.upper())


def _compare_labels(left: Tuple[str, ...], right: Tuple[str, ...]) -> int:
    for a, b in zip(left, right):
        result = _compare_label(a, b)
        if result:
            return result
    return _cmp(len(left), len(right))


# ---------------------------------------------------------------------------
# NuGetVersion
# ---------------------------------------------------------------------------


@total_ordering
class NuGetVersion:
    """A single NuGet package version.

    Args:
        major: Major component.
        minor: Minor component.
        patch: Patch component.
        revision: Fourth (legacy) component.
        release_labels: Pre-release labels, e.g. ``("alpha", "1")``.
        metadata: Build metadata after ``+``; ignored when comparing.
        original_string: The text the version was parsed from.
    """

    __slots__ = (
        "major",
        "minor",
        "patch",
        "revision",
        "release_labels",
        "metadata",
        "original_string",
    )

    def __init__(
        self,
        major: int,
        minor: int = 0,
        patch: int = 0,
        revision: int = 0,
        release_labels: Tuple[str, ...] = (),
        metadata: Optional[str] = None,
        original_string: Optional[str] = None,
    ) -> None:
        self.major = major
        self.minor = minor
        self.patch = patch
        self.revision = revision
        self.release_labels = tuple(release_labels)
        self.metadata = metadata
        self.original_string = original_string

    @classmethod
    def parse(cls, value: str) -> "NuGetVersion":
        """Parse a version string.

        Raises:
            InvalidVersionError: ``value`` is not a valid NuGet version.
        """
        version = cls.try_parse(value)
        if version is None:
            raise InvalidVersionError(f"'{value}' is not a valid version string", value=value)
        return version

    @classmethod
    def try_parse(cls, value: Optional[str]) -> Optional["NuGetVersion"]:
        """Parse a version string, returning ``None`` when it is invalid."""
        if not value:
            return None

        match = _VERSION_RE.match(value)
        if match is None:
            return None

        release = match.group("release")
        return cls(
            int(match.group("major")),
            int(match.group("minor") or 0),
            int(match.group("patch") or 0),
            int(match.group("revision") or 0),
            tuple(release.split(".")) if release else (),
            match.group("metadata"),
            value.strip(),
        )

    def with_release(self, label: str) -> "NuGetVersion":
        """Return the same numeric version carrying the given release label."""
        return NuGetVersion(
            self.major,
            self.minor,
            self.patch,
            self.revision,
            tuple(label.split(".")) if label else (),
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def release(self) -> str:
        return ".".join(self.release_labels)

    @property
    def is_prerelease(self) -> bool:
        return bool(self.release_labels)

    @property
    def numbers(self) -> Tuple[int, int, int, int]:
        return (self.major, self.minor, self.patch, self.revision)

    def to_normalized_string(self) -> str:
        """Return ``major.minor.patch[.revision][-release]``.

        The revision is included only when it is non-zero; metadata is
        dropped.
        """
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.revision > 0:
            text += f".{self.revision}"
        if self.release_labels:
            text += "-" + self.release
        return text

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def compare_to(self, other: "NuGetVersion") -> int:
        """Compare with ``other``; negative, zero or positive."""
        result = _cmp(self.numbers, other.numbers)
        if result:
            return result

        if self.is_prerelease and not other.is_prerelease:
            return -1
        if not self.is_prerelease and other.is_prerelease:
            return 1

        return _compare_labels(self.release_labels, other.release_labels)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.compare_to(other) == 0

    def __lt__(self, other: "NuGetVersion") -> bool:
        if not isinstance(other, NuGetVersion):
            return NotImplemented
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        return hash((self.numbers, tuple(label.upper() for label in self.release_labels)))

    def __str__(self) -> str:
        return self.to_normalized_string()

    def __repr__(self) -> str:
        return f"NuGetVersion({self.to_normalized_string()!r})"


# ---------------------------------------------------------------------------
# Floating ranges
# ---------------------------------------------------------------------------


class FloatBehavior(Enum):
    """Position a floating range resolves the newest version at."""

    NONE = "none"
    PRERELEASE = "prerelease"
    REVISION = "revision"
    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"
    ABSOLUTE_LATEST = "absolute-latest"
    PRERELEASE_REVISION = "prerelease-revision"
    PRERELEASE_PATCH = "prerelease-patch"
    PRERELEASE_MINOR = "prerelease-minor"
    PRERELEASE_MAJOR = "prerelease-major"


#: Behaviours under which pre-release candidates may be considered.
PRERELEASE_FLOATS = frozenset(
    {
        FloatBehavior.PRERELEASE,
        FloatBehavior.PRERELEASE_REVISION,
        FloatBehavior.PRERELEASE_PATCH,
        FloatBehavior.PRERELEASE_MINOR,
        FloatBehavior.PRERELEASE_MAJOR,
        FloatBehavior.ABSOLUTE_LATEST,
    }
)

_PRERELEASE_FLOAT_BY_PARTS = {
    1: FloatBehavior.PRERELEASE_MAJOR,
    2: FloatBehavior.PRERELEASE_MINOR,
    3: FloatBehavior.PRERELEASE_PATCH,
    4: FloatBehavior.PRERELEASE_REVISION,
}

_STABLE_FLOAT_BY_PARTS = {
    2: FloatBehavior.MINOR,
    3: FloatBehavior.PATCH,
    4: FloatBehavior.REVISION,
}


class FloatRange:
    """Floating part of a version range such as ``1.*`` or ``*-rc*``.

    When no release prefix is given and ``min_version`` is a pre-release,
    the prefix defaults to the minimum version's release label. Absolute
    latest floats always carry a (possibly empty) prefix.
    """

    __slots__ = ("behavior", "min_version", "release_prefix")

    def __init__(
        self,
        behavior: FloatBehavior,
        min_version: Optional[NuGetVersion] = None,
        release_prefix: Optional[str] = None,
    ) -> None:
        if release_prefix is None and min_version is not None and min_version.is_prerelease:
            release_prefix = min_version.release
        if behavior is FloatBehavior.ABSOLUTE_LATEST and release_prefix is None:
            release_prefix = ""

        self.behavior = behavior
        self.min_version = min_version
        self.release_prefix = release_prefix

    @classmethod
    def try_parse(cls, value: str) -> Optional["FloatRange"]:
        """Parse a floating version string, ``None`` when invalid."""
        text = value.strip()
        if not text:
            return None

        first_star = text.find("*")
        last_star = text.rfind("*")

        if text == "*":
            return cls(FloatBehavior.MAJOR, NuGetVersion(0, 0))

        if text == "*-*":
            return cls(
                FloatBehavior.ABSOLUTE_LATEST,
                NuGetVersion(0, 0, 0, 0, ("0",)),
                release_prefix="",
            )

        if first_star != last_star and last_star != -1 and "+" not in text:
            dash = text.find("-")
            if dash == -1 or last_star != len(text) - 1 or first_star != dash - 1:
                return None

            stable_part = text[: dash - 1] + "0"
            behavior = _PRERELEASE_FLOAT_BY_PARTS.get(len(stable_part.split(".")))
            if behavior is None:
                return None

            prefix = text[dash + 1 : -1]
            release_part = prefix + "0" if not prefix or prefix.endswith(".") else prefix
            version = NuGetVersion.try_parse(f"{stable_part}-{release_part}")
            return cls(behavior, version, prefix) if version else None

        if last_star == len(text) - 1 and "+" not in text:
            actual = text[:-1]
            prefix: Optional[str] = None

            if "-" not in text:
                actual += "0"
                behavior = _STABLE_FLOAT_BY_PARTS.get(len(actual.split(".")), FloatBehavior.NONE)
            else:
                behavior = FloatBehavior.PRERELEASE
                if text.find("-") == text.rfind("-"):
                    prefix = actual[text.rfind("-") + 1 :]
                    if not prefix or actual.endswith("."):
                        actual += "0"
                    elif actual.endswith("-"):
                        actual += "-"

            version = NuGetVersion.try_parse(actual)
            return cls(behavior, version, prefix) if version else None

        if "*" in text:
            return None

        version = NuGetVersion.try_parse(text)
        return cls(FloatBehavior.NONE, version) if version else None

    # ------------------------------------------------------------------

    def _prefix_matches(self, version: NuGetVersion) -> bool:
        if not version.is_prerelease:
            return True
        prefix = (self.release_prefix or "").upper()
        return version.release.upper().startswith(prefix)

    def satisfies(self, version: NuGetVersion) -> bool:
        """Return ``True`` if ``version`` lies in the floating window."""
        behavior = self.behavior
        low = self.min_version or NuGetVersion(0, 0)

        same_major = low.major == version.major
        same_minor = same_major and low.minor == version.minor
        same_patch = same_minor and low.patch == version.patch

        if behavior is FloatBehavior.ABSOLUTE_LATEST:
            return self._prefix_matches(version)
        if behavior is FloatBehavior.PRERELEASE:
            return low.numbers == version.numbers and self._prefix_matches(version)
        if behavior is FloatBehavior.REVISION:
            return same_patch and not version.is_prerelease
        if behavior is FloatBehavior.PATCH:
            return same_minor and not version.is_prerelease
        if behavior is FloatBehavior.MINOR:
            return same_major and not version.is_prerelease
        if behavior is FloatBehavior.MAJOR:
            return not version.is_prerelease
        if behavior is FloatBehavior.PRERELEASE_REVISION:
            return same_patch and self._prefix_matches(version)
        if behavior is FloatBehavior.PRERELEASE_PATCH:
            return same_minor and self._prefix_matches(version)
        if behavior is FloatBehavior.PRERELEASE_MINOR:
            return same_major and self._prefix_matches(version)
        if behavior is FloatBehavior.PRERELEASE_MAJOR:
            return self._prefix_matches(version)
        return False

    def __str__(self) -> str:
        low = self.min_version or NuGetVersion(0, 0)
        prefix = self.release_prefix or ""
        behavior = self.behavior

        if behavior is FloatBehavior.NONE:
            return low.to_normalized_string()
        if behavior is FloatBehavior.PRERELEASE:
            return f"{low.major}.{low.minor}.{low.patch}-{prefix}*"
        if behavior is FloatBehavior.REVISION:
            return f"{low.major}.{low.minor}.{low.patch}.*"
        if behavior is FloatBehavior.PATCH:
            return f"{low.major}.{low.minor}.*"
        if behavior is FloatBehavior.MINOR:
            return f"{low.major}.*"
        if behavior is FloatBehavior.MAJOR:
            return "*"
        if behavior is FloatBehavior.PRERELEASE_REVISION:
            return f"{low.major}.{low.minor}.{low.patch}.*-{prefix}*"
        if behavior is FloatBehavior.PRERELEASE_PATCH:
            return f"{low.major}.{low.minor}.*-{prefix}*"
        if behavior is FloatBehavior.PRERELEASE_MINOR:
            return f"{low.major}.*-{prefix}*"
        if behavior is FloatBehavior.PRERELEASE_MAJOR:
            return f"*-{prefix}*"
        return "*-*"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FloatRange):
            return NotImplemented
        return (
            self.behavior is other.behavior
            and self.min_version == other.min_version
            and (self.release_prefix or "").upper() == (other.release_prefix or "").upper()
        )

    def __hash__(self) -> int:
        return hash((self.behavior, self.min_version))

    def __repr__(self) -> str:
        return f"FloatRange({self.behavior.name}, {str(self)!r})"


# ---------------------------------------------------------------------------
# VersionRange
# ---------------------------------------------------------------------------


class VersionRange:
    """A NuGet version constraint.

    Instances are immutable; every "change" produces a new range. Two
    ranges compare equal when their bounds, inclusivity and floating
    behaviour match, whatever their original spelling.

    Attributes:
        min_version: Lower bound, or ``None``.
        is_min_inclusive: Whether the lower bound is inclusive.
        max_version: Upper bound, or ``None``.
        is_max_inclusive: Whether the upper bound is inclusive.
        float_range: Optional floating behaviour.
        original_string: The text the range was parsed from.
    """

    __slots__ = (
        "min_version",
        "is_min_inclusive",
        "max_version",
        "is_max_inclusive",
        "float_range",
        "original_string",
    )

    #: Sentinel for references without a usable version.
    NONE: "VersionRange"

    def __init__(
        self,
        min_version: Optional[NuGetVersion] = None,
        is_min_inclusive: bool = True,
        max_version: Optional[NuGetVersion] = None,
        is_max_inclusive: bool = False,
        float_range: Optional[FloatRange] = None,
        original_string: Optional[str] = None,
    ) -> None:
        self.min_version = min_version
        self.is_min_inclusive = is_min_inclusive if min_version is not None else False
        self.max_version = max_version
        self.is_max_inclusive = is_max_inclusive if max_version is not None else False
        self.float_range = float_range
        self.original_string = original_string

    def with_float(self, float_range: Optional[FloatRange]) -> "VersionRange":
        """Return a copy of this range using ``float_range``."""
        return VersionRange(
            self.min_version,
            self.is_min_inclusive,
            self.max_version,
            self.is_max_inclusive,
            float_range,
            self.original_string,
        )

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @classmethod
    def parse(cls, value: str, allow_floating: bool = True) -> "VersionRange":
        """Parse NuGet range notation.

        Raises:
            InvalidVersionError: ``value`` is not a valid range.
        """
        parsed = cls.try_parse(value, allow_floating)
        if parsed is None:
            raise InvalidVersionError(f"'{value}' is not a valid version range", value=value)
        return parsed

    @classmethod
    def try_parse(
        cls,
        value: Optional[str],
        allow_floating: bool = True,
    ) -> Optional["VersionRange"]:
        """Parse NuGet range notation, returning ``None`` when invalid."""
        if value is None or not value.strip():
            return None

        original = value
        text = value.strip()

        if text[0] not in "[(":
            if "*" in text:
                if not allow_floating:
                    return None
                float_range = FloatRange.try_parse(text)
                if float_range is None or float_range.min_version is None:
                    return None
                return cls(float_range.min_version, True, None, False, float_range, original)

            version = NuGetVersion.try_parse(text)
            if version is None:
                return None
            return cls(version, True, None, False, None, original)

        if len(text) < 3 or text[-1] not in "])":
            return None

        min_inclusive = text[0] == "["
        max_inclusive = text[-1] == "]"
        inner = text[1:-1]
        parts = inner.split(",")

        if len(parts) > 2 or all(not part.strip() for part in parts):
            return None

        min_text = parts[0].strip()
        max_text = parts[1].strip() if len(parts) == 2 else min_text

        if len(parts) == 1 and not (min_inclusive and max_inclusive):
            return None

        float_range: Optional[FloatRange] = None
        min_version: Optional[NuGetVersion] = None
        max_version: Optional[NuGetVersion] = None

        if min_text:
            if "*" in min_text:
                if not allow_floating or len(parts) == 1:
                    return None
                float_range = FloatRange.try_parse(min_text)
                if float_range is None:
                    return None
                min_version = float_range.min_version
            else:
                min_version = NuGetVersion.try_parse(min_text)
            if min_version is None:
                return None

        if max_text:
            max_version = NuGetVersion.try_parse(max_text)
            if max_version is None:
                return None

        if min_version is not None and max_version is not None:
            if min_version > max_version:
                return None
            if min_version == max_version and not (min_inclusive and max_inclusive):
                return None

        return cls(
            min_version,
            min_inclusive,
            max_version,
            max_inclusive,
            float_range,
            original,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def has_lower_bound(self) -> bool:
        return self.min_version is not None

    @property
    def has_upper_bound(self) -> bool:
        return self.max_version is not None

    @property
    def has_lower_and_upper_bounds(self) -> bool:
        return self.has_lower_bound and self.has_upper_bound

    @property
    def is_floating(self) -> bool:
        return (
            self.float_range is not None
            and self.float_range.behavior is not FloatBehavior.NONE
        )

    @property
    def has_prerelease_bounds(self) -> bool:
        return bool(
            (self.min_version is not None and self.min_version.is_prerelease)
            or (self.max_version is not None and self.max_version.is_prerelease)
        )

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def satisfies(self, version: NuGetVersion) -> bool:
        """Return ``True`` if ``version`` lies within the bounds."""
        if self.min_version is not None:
            result = self.min_version.compare_to(version)
            if result > 0 or (result == 0 and not self.is_min_inclusive):
                return False

        if self.max_version is not None:
            result = self.max_version.compare_to(version)
            if result < 0 or (result == 0 and not self.is_max_inclusive):
                return False

        return True

    def is_better(
        self,
        current: Optional[NuGetVersion],
        considering: Optional[NuGetVersion],
    ) -> bool:
        """Decide whether ``considering`` should replace ``current``.

        Pre-release candidates are only eligible when the bounds are
        pre-release themselves or the float admits pre-releases. Without
        floating behaviour the version closest to the lower bound wins;
        with it, the newest version inside the floating window wins.
        """
        if considering is None or current is considering:
            return False

        if (
            considering.is_prerelease
            and not self.has_prerelease_bounds
            and (self.float_range is None or self.float_range.behavior not in PRERELEASE_FLOATS)
        ):
            return False

        if not self.satisfies(considering):
            return False

        if current is None:
            return True

        if self.is_floating:
            assert self.float_range is not None
            current_in_range = self.float_range.satisfies(current)
            considering_in_range = self.float_range.satisfies(considering)

            if current_in_range and not considering_in_range:
                return False
            if considering_in_range and not current_in_range:
                return True
            if current_in_range and considering_in_range:
                return current < considering

            float_min = self.float_range.min_version or NuGetVersion(0, 0)
            current_below = current < float_min
            considering_below = considering < float_min

            if current_below and not considering_below:
                return True
            if considering_below and not current_below:
                return False
            if not current_below and not considering_below:
                return current > considering
            return current < considering

        return current > considering

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    def to_normalized_string(self) -> str:
        """Return the interval form, e.g. ``[1.0.0, 2.0.0)``."""
        text = "[" if self.has_lower_bound and self.is_min_inclusive else "("
        if self.min_version is not None:
            if self.is_floating:
                text += str(self.float_range)
            else:
                text += self.min_version.to_normalized_string()
        text += ", "
        if self.max_version is not None:
            text += self.max_version.to_normalized_string()
        text += "]" if self.has_upper_bound and self.is_max_inclusive else ")"
        return text

    def to_short_string(self) -> str:
        """Return the shortest equivalent spelling of this range."""
        if self.has_lower_bound and self.is_min_inclusive and not self.has_upper_bound:
            assert self.min_version is not None
            if self.is_floating:
                return str(self.float_range)
            return self.min_version.to_normalized_string()

        if (
            self.has_lower_and_upper_bounds
            and self.is_min_inclusive
            and self.is_max_inclusive
            and self.min_version == self.max_version
        ):
            assert self.min_version is not None
            return f"[{self.min_version.to_normalized_string()}]"

        return self.to_normalized_string()

    def __str__(self) -> str:
        return self.to_normalized_string()

    def __repr__(self) -> str:
        return f"VersionRange({self.to_normalized_string()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return (
            self.min_version == other.min_version
            and self.is_min_inclusive == other.is_min_inclusive
            and self.max_version == other.max_version
            and self.is_max_inclusive == other.is_max_inclusive
            and self.float_range == other.float_range
        )

    def __hash__(self) -> int:
        return hash(
            (
                self.min_version,
                self.is_min_inclusive,
                self.max_version,
                self.is_max_inclusive,
            )
        )


VersionRange.NONE = VersionRange(
    NuGetVersion(0, 0, 0),
    False,
    NuGetVersion(0, 0, 0),
    False,
    original_string="(0.0.0, 0.0.0)",
)
