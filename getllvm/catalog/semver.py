"""Semantic versions and version ranges for release tags.

Release tags are not always strict semver ("v20.1.6", "llvmorg-19.1.0",
"20250717-163129"), so parsing happens in two steps: parse_version() accepts
strict semver with an optional leading "v", coerce_version() pulls the first
"major[.minor[.patch]]" run out of arbitrary text.

Ranges follow the npm grammar that workflow authors already know:
"^20.0.0", "~19.1", "20.x", ">=18 <20", "1.2.3 - 1.4", "17 || 19".
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

__all__ = [
    "SemVer",
    "Comparator",
    "VersionRange",
    "parse_version",
    "coerce_version",
    "parse_tag",
    "parse_range",
    "max_satisfying",
]

MAX_LENGTH = 256
MAX_SAFE_INTEGER = 2**53 - 1

_NUM = r"0|[1-9]\d*"
_PRE_ID = r"(?:0|[1-9]\d*|\d*[a-zA-Z-][a-zA-Z0-9-]*)"
_PRE = rf"{_PRE_ID}(?:\.{_PRE_ID})*"
_BUILD = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_XID = rf"{_NUM}|x|X|\*"
_PARTIAL = rf"[v=\s]*({_XID})(?:\.({_XID})(?:\.({_XID})(?:-({_PRE}))?(?:\+{_BUILD})?)?)?"

_FULL_RE = re.compile(rf"^v?({_NUM})\.({_NUM})\.({_NUM})(?:-({_PRE}))?(?:\+({_BUILD}))?$")
_COERCE_RE = re.compile(r"(?:^|[^\d])(\d{1,16})(?:\.(\d{1,16}))?(?:\.(\d{1,16}))?(?:$|[^\d])")
_PRIMITIVE_RE = re.compile(rf"^(<=|>=|<|>|=)?{_PARTIAL}$")
_TILDE_RE = re.compile(rf"^~>?{_PARTIAL}$")
_CARET_RE = re.compile(rf"^\^{_PARTIAL}$")
_HYPHEN_RE = re.compile(rf"^{_PARTIAL}\s+-\s+{_PARTIAL}$")
_OP_SPACE_RE = re.compile(r"(<=|>=|<|>|=|~>?|\^)\s+")

type Identifier = int | str


def _parse_identifiers(text: str | None) -> tuple[Identifier, ...]:
    if not text:
        return ()
    return tuple(int(part) if part.isdigit() else part for part in text.split("."))


@dataclass(frozen=True, slots=True, eq=False)
class SemVer:
    """A parsed semantic version.

    Equality and ordering ignore build metadata, as semver precedence does.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[Identifier, ...] = ()
    build: tuple[str, ...] = field(default=())

    @property
    def version(self) -> str:
        """Canonical string form without build metadata (e.g. "20.1.6-rc1")."""
        core = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{core}-{'.'.join(str(p) for p in self.prerelease)}"
        return core

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def release_tuple(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def sort_key(self) -> tuple[int, int, int, int, tuple[tuple[int, int | str], ...]]:
        """Key implementing semver precedence.

        A version without prerelease sorts after the same version with one.
        Numeric identifiers sort before alphanumeric ones, and a shorter
        identifier list sorts first when all shared fields are equal.
        """
        pre = tuple((0, p) if isinstance(p, int) else (1, p) for p in self.prerelease)
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, pre)

    def compare(self, other: SemVer) -> int:
        """Return -1, 0 or 1."""
        a, b = self.sort_key(), other.sort_key()
        return (a > b) - (a < b)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self.sort_key() == other.sort_key()

    def __hash__(self) -> int:
        return hash(self.sort_key())

    def __lt__(self, other: SemVer) -> bool:
        return self.sort_key() < other.sort_key()

    def __le__(self, other: SemVer) -> bool:
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: SemVer) -> bool:
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: SemVer) -> bool:
        return self.sort_key() >= other.sort_key()

    def __str__(self) -> str:
        return self.version


def parse_version(text: str) -> SemVer | None:
    """Strictly parse a semantic version; a leading "v" is allowed."""
    text = text.strip()
    if len(text) > MAX_LENGTH:
        return None
    m = _FULL_RE.match(text)
    if m is None:
        return None
    major, minor, patch = int(m.group(1)), int(m.group(2)), int(m.group(3))
    if max(major, minor, patch) > MAX_SAFE_INTEGER:
        return None
    build = tuple(m.group(5).split(".")) if m.group(5) else ()
    return SemVer(major, minor, patch, _parse_identifiers(m.group(4)), build)


def coerce_version(text: str) -> SemVer | None:
    """Best-effort version from arbitrary text.

    Takes the first "major[.minor[.patch]]" run and drops everything else,
    prerelease included: "llvmorg-19.1.0-rc2" -> 19.1.0, "v20" -> 20.0.0.
    """
    if len(text) > MAX_LENGTH:
        return None
    m = _COERCE_RE.search(text)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2) or 0), int(m.group(3) or 0))


def parse_tag(tag: str) -> SemVer | None:
    """Parse a release tag: strict first, then lenient coercion."""
    return parse_version(tag) or coerce_version(tag)


# -----------------------------------------------------------------------------
# Ranges
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Comparator:
    """A single "<op><version>" test. version None matches anything."""

    operator: str
    version: SemVer | None

    def test(self, candidate: SemVer) -> bool:
        if self.version is None:
            return True
        c = candidate.compare(self.version)
        match self.operator:
            case "<":
                return c < 0
            case "<=":
                return c <= 0
            case ">":
                return c > 0
            case ">=":
                return c >= 0
            case _:
                return c == 0

    def __str__(self) -> str:
        return "*" if self.version is None else f"{self.operator}{self.version}"


ANY = Comparator("", None)
NOTHING = Comparator("<", SemVer(0, 0, 0, (0,)))


@dataclass(frozen=True, slots=True)
class VersionRange:
    """Union ("||") of comparator sets; every comparator in a set must match."""

    raw: str
    sets: tuple[tuple[Comparator, ...], ...]

    def test(self, candidate: SemVer) -> bool:
        return any(_test_set(comparators, candidate) for comparators in self.sets)

    def __str__(self) -> str:
        return " || ".join(" ".join(str(c) for c in s) for s in self.sets)


def _test_set(comparators: tuple[Comparator, ...], candidate: SemVer) -> bool:
    if not all(c.test(candidate) for c in comparators):
        return False
    if not candidate.is_prerelease:
        return True
    # A prerelease only satisfies a set that names a prerelease of the same
    # major.minor.patch, so "^1.0.0" never picks up "1.1.0-rc1".
    return any(
        c.version is not None
        and c.version.is_prerelease
        and c.version.release_tuple == candidate.release_tuple
        for c in comparators
    )


def _is_x(part: str | None) -> bool:
    return part is None or part in ("x", "X", "*")


def _v(major: int, minor: int, patch: int, pre: tuple[Identifier, ...] = ()) -> SemVer:
    return SemVer(major, minor, patch, pre)


_LOWEST_PRE: tuple[Identifier, ...] = (0,)


def _caret(major: str, minor: str | None, patch: str | None, pre: str | None) -> list[Comparator]:
    if _is_x(major):
        return [ANY]
    mj = int(major)
    if _is_x(minor):
        return [Comparator(">=", _v(mj, 0, 0)), Comparator("<", _v(mj + 1, 0, 0, _LOWEST_PRE))]
    mn = int(minor)  # type: ignore[arg-type]
    if _is_x(patch):
        upper = _v(mj, mn + 1, 0, _LOWEST_PRE) if mj == 0 else _v(mj + 1, 0, 0, _LOWEST_PRE)
        return [Comparator(">=", _v(mj, mn, 0)), Comparator("<", upper)]
    pt = int(patch)  # type: ignore[arg-type]
    lower = _v(mj, mn, pt, _parse_identifiers(pre))
    if mj == 0 and mn == 0:
        upper = _v(0, 0, pt + 1, _LOWEST_PRE)
    elif mj == 0:
        upper = _v(0, mn + 1, 0, _LOWEST_PRE)
    else:
        upper = _v(mj + 1, 0, 0, _LOWEST_PRE)
    return [Comparator(">=", lower), Comparator("<", upper)]


def _tilde(major: str, minor: str | None, patch: str | None, pre: str | None) -> list[Comparator]:
    if _is_x(major):
        return [ANY]
    mj = int(major)
    if _is_x(minor):
        return [Comparator(">=", _v(mj, 0, 0)), Comparator("<", _v(mj + 1, 0, 0, _LOWEST_PRE))]
    mn = int(minor)  # type: ignore[arg-type]
    upper = _v(mj, mn + 1, 0, _LOWEST_PRE)
    if _is_x(patch):
        return [Comparator(">=", _v(mj, mn, 0)), Comparator("<", upper)]
    lower = _v(mj, mn, int(patch), _parse_identifiers(pre))  # type: ignore[arg-type]
    return [Comparator(">=", lower), Comparator("<", upper)]


def _primitive(
    op: str, major: str, minor: str | None, patch: str | None, pre: str | None
) -> list[Comparator]:
    x_major = _is_x(major)
    x_minor = x_major or _is_x(minor)
    x_patch = x_minor or _is_x(patch)

    if op == "=" and x_patch:
        op = ""

    if x_major:
        return [NOTHING] if op in (">", "<") else [ANY]

    mj = int(major)
    if op and x_patch:
        mn = 0 if x_minor else int(minor)  # type: ignore[arg-type]
        pt = 0
        if op == ">":
            op = ">="
            if x_minor:
                mj, mn = mj + 1, 0
            else:
                mn += 1
        elif op == "<=":
            op = "<"
            if x_minor:
                mj += 1
            else:
                mn += 1
        return [Comparator(op, _v(mj, mn, pt, _LOWEST_PRE if op == "<" else ()))]

    if x_minor:
        return [Comparator(">=", _v(mj, 0, 0)), Comparator("<", _v(mj + 1, 0, 0, _LOWEST_PRE))]
    mn = int(minor)  # type: ignore[arg-type]
    if x_patch:
        return [Comparator(">=", _v(mj, mn, 0)), Comparator("<", _v(mj, mn + 1, 0, _LOWEST_PRE))]
    return [Comparator(op or "=", _v(mj, mn, int(patch), _parse_identifiers(pre)))]  # type: ignore[arg-type]


def _hyphen(groups: tuple[str | None, ...]) -> list[Comparator]:
    f_major, f_minor, f_patch, f_pre, t_major, t_minor, t_patch, t_pre = groups
    out: list[Comparator] = []

    if not _is_x(f_major):
        fm = int(f_major)  # type: ignore[arg-type]
        if _is_x(f_minor):
            out.append(Comparator(">=", _v(fm, 0, 0)))
        elif _is_x(f_patch):
            out.append(Comparator(">=", _v(fm, int(f_minor), 0)))  # type: ignore[arg-type]
        else:
            lower = _v(fm, int(f_minor), int(f_patch), _parse_identifiers(f_pre))  # type: ignore[arg-type]
            out.append(Comparator(">=", lower))

    if not _is_x(t_major):
        tm = int(t_major)  # type: ignore[arg-type]
        if _is_x(t_minor):
            out.append(Comparator("<", _v(tm + 1, 0, 0, _LOWEST_PRE)))
        elif _is_x(t_patch):
            out.append(Comparator("<", _v(tm, int(t_minor) + 1, 0, _LOWEST_PRE)))  # type: ignore[arg-type]
        else:
            upper = _v(tm, int(t_minor), int(t_patch), _parse_identifiers(t_pre))  # type: ignore[arg-type]
            out.append(Comparator("<=", upper))

    return out or [ANY]


def _parse_comparator(token: str) -> list[Comparator] | None:
    if m := _CARET_RE.match(token):
        return _caret(*m.groups())
    if m := _TILDE_RE.match(token):
        return _tilde(*m.groups())
    if m := _PRIMITIVE_RE.match(token):
        op, major, minor, patch, pre = m.groups()
        return _primitive(op or "", major, minor, patch, pre)
    return None


def _parse_set(text: str) -> tuple[Comparator, ...] | None:
    text = text.strip()
    if not text:
        return (ANY,)
    if m := _HYPHEN_RE.match(text):
        return tuple(_hyphen(m.groups()))

    comparators: list[Comparator] = []
    for token in _OP_SPACE_RE.sub(r"\1", text).split():
        parsed = _parse_comparator(token)
        if parsed is None:
            return None
        comparators.extend(parsed)
    return tuple(comparators)


def parse_range(text: str) -> VersionRange | None:
    """Parse an npm-style range, or return None if it is not one."""
    if len(text) > MAX_LENGTH:
        return None
    sets: list[tuple[Comparator, ...]] = []
    for part in re.split(r"\s*\|\|\s*", text.strip()):
        parsed = _parse_set(part)
        if parsed is None:
            return None
        sets.append(parsed)
    return VersionRange(raw=text, sets=tuple(sets))


def max_satisfying(versions: list[SemVer], range_: VersionRange) -> SemVer | None:
    """Highest version in versions that satisfies range_, if any."""
    best: SemVer | None = None
    for candidate in versions:
        if range_.test(candidate) and (best is None or candidate > best):
            best = candidate
    return best
