"""
Pathwatch Path Value Type.

An immutable path with POSIX semantics: standardization, relationship
queries and composition. Nothing in this module touches the file system
except home-directory expansion; I/O lives in ``paths.filesystem``.
Requires Python 3.11+.
"""

import os
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Any

from paths.filesystem import PathIOMixin

SEPARATOR = "/"
_IDENTITY_OPERANDS = ("", ".")


def _normalize(raw: str) -> str:
    """Collapse repeated separators and ``.`` segments, drop a trailing separator."""
    if not raw:
        return ""

    segments = [segment for segment in raw.split(SEPARATOR) if segment not in ("", ".")]
    if raw.startswith(SEPARATOR):
        return SEPARATOR + SEPARATOR.join(segments)
    return SEPARATOR.join(segments) or "."


def _expand_home(normalized: str) -> str:
    """Expand a leading ``~`` or ``~user`` component."""
    if not normalized.startswith("~"):
        return normalized

    head, _, rest = normalized.partition(SEPARATOR)
    home = os.path.expanduser(head)
    if home == head:
        # Unknown user, leave the text alone
        return normalized
    return _normalize(f"{home}{SEPARATOR}{rest}" if rest else home)


def _split(normalized: str) -> list[str]:
    """Split a normalized path into its components."""
    if normalized in _IDENTITY_OPERANDS:
        return []
    if normalized == SEPARATOR:
        return [SEPARATOR]

    parts = normalized.split(SEPARATOR)
    if normalized.startswith(SEPARATOR):
        parts[0] = SEPARATOR
    return parts


def _join(components: list[str]) -> str:
    """Inverse of ``_split``."""
    if not components:
        return ""
    if components[0] == SEPARATOR:
        return SEPARATOR + SEPARATOR.join(components[1:])
    return SEPARATOR.join(components)


def _raw(value: Any) -> str:
    """Extract raw text from anything accepted as a path operand."""
    if isinstance(value, Path):
        return value.raw_value
    if isinstance(value, os.PathLike):
        value = os.fspath(value)
    if isinstance(value, bytes):
        return os.fsdecode(value)
    if not isinstance(value, str):
        raise TypeError(f"expected str or os.PathLike, not {type(value).__name__}")
    return value


@total_ordering
@dataclass(frozen=True, eq=False, slots=True)
class Path(PathIOMixin):
    """
    A file system path.

    ``raw_value`` keeps the text exactly as given. Equality, hashing and
    ordering use the standardized form, so ``Path("~")``, ``Path("~/")``,
    ``Path("~//")`` and ``Path("~/./")`` are all equal.

    Standardizing collapses repeated separators, drops ``.`` segments and
    expands a leading ``~``. It does not resolve ``..`` or symbolic links;
    that needs the file system, see ``resolve()``.
    """

    raw_value: str = ""
    _normal: str = field(init=False, repr=False)
    _standard: str = field(init=False, repr=False)

    def __post_init__(self) -> None:
        raw = _raw(self.raw_value)
        object.__setattr__(self, "raw_value", raw)
        object.__setattr__(self, "_normal", _normalize(raw))
        object.__setattr__(self, "_standard", _expand_home(_normalize(raw)))

    @classmethod
    def root(cls) -> "Path":
        """The file system root."""
        return cls(SEPARATOR)

    # ------------------------------------------------------------------
    # Standardization and components
    # ------------------------------------------------------------------

    @property
    def standardized(self) -> "Path":
        """This path in standardized form. Never fails."""
        return Path(self._standard)

    @property
    def components(self) -> list["Path"]:
        """
        The components of this path.

        The root of an absolute path is component 0. A leading ``~`` stays
        unexpanded so results keep the caller's spelling.
        """
        return [Path(component) for component in _split(self._normal)]

    @property
    def _standard_parts(self) -> list[str]:
        return _split(self._standard)

    @property
    def is_root(self) -> bool:
        return self._standard == SEPARATOR

    @property
    def is_absolute(self) -> bool:
        return self._standard.startswith(SEPARATOR)

    @property
    def name(self) -> str:
        """The last component, empty for the root and the empty path."""
        parts = _split(self._normal)
        if not parts or parts[-1] == SEPARATOR:
            return ""
        return parts[-1]

    @property
    def suffix(self) -> str:
        """The extension of the last component, without the dot."""
        name = self.name
        stem, dot, extension = name.rpartition(".")
        if not dot or not stem:
            return ""
        return extension

    path_extension = suffix

    def with_extension(self, extension: str) -> "Path":
        """Return a path whose last component has ``extension`` instead."""
        name = self.name
        if not name:
            return self

        extension = extension.lstrip(".")
        stem = name[: -(len(self.suffix) + 1)] if self.suffix else name
        new_name = f"{stem}.{extension}" if extension else stem
        return Path(_join(_split(self._normal)[:-1] + [new_name]))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def parent(self) -> "Path":
        """
        This path with its last component removed.

        The root is its own parent. A path with a single relative component
        has the root as its parent, except ``~`` whose parent is the parent
        of the home directory.
        """
        if self.is_root:
            return self

        parts = _split(self._normal)
        if len(parts) <= 1:
            if parts and parts[0].startswith("~") and self._standard != self._normal:
                return self.standardized.parent
            return Path.root()
        return Path(_join(parts[:-1]))

    def __getitem__(self, index: int) -> "Path":
        """
        Return the path made of the first ``index + 1`` components.

        Out-of-range indices clamp to the valid range instead of raising:
        anything past the last component returns the full path.
        """
        if not isinstance(index, int):
            raise TypeError(f"path indices must be integers, not {type(index).__name__}")

        parts = _split(self._normal)
        if not parts:
            return self
        index = min(max(index, 0), len(parts) - 1)
        if index == len(parts) - 1:
            return self
        return Path(_join(parts[: index + 1]))

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def is_ancestor_of(self, other: "Path | str") -> bool:
        """True if this path is a strict prefix of ``other``."""
        other = other if isinstance(other, Path) else Path(other)
        mine = self._standard_parts
        theirs = other._standard_parts
        if not mine or len(mine) >= len(theirs):
            return False
        return theirs[: len(mine)] == mine

    def is_child_of(self, other: "Path | str", recursive: bool = True) -> bool:
        """
        True if ``other`` contains this path.

        With ``recursive=False`` only ``self.parent`` counts, so a single
        relative component is a direct child of the root. The root and the
        empty path are nobody's child.
        """
        other = other if isinstance(other, Path) else Path(other)
        if self.is_root or not self._standard_parts:
            return False
        if other == self.parent:
            return True
        return recursive and other.is_ancestor_of(self)

    def common_ancestor(self, other: "Path | str") -> "Path":
        """
        The longest shared prefix of this path and ``other``.

        Two home-relative paths are compared before expansion, so the
        result keeps its ``~``. Returns the root when nothing is shared.
        """
        other = other if isinstance(other, Path) else Path(other)
        mine = _split(self._normal)
        theirs = _split(other._normal)
        if not (mine and theirs and mine[0] == theirs[0] and mine[0].startswith("~")):
            mine = self._standard_parts
            theirs = other._standard_parts

        shared: list[str] = []
        for left, right in zip(mine, theirs):
            if left != right:
                break
            shared.append(left)

        if not shared:
            return Path.root()
        return Path(_join(shared))

    # ------------------------------------------------------------------
    # Operators and protocols
    # ------------------------------------------------------------------

    def __add__(self, other: Any) -> "Path":
        """Join two paths with exactly one separator."""
        try:
            right = _raw(other)
        except TypeError:
            return NotImplemented

        left = self.raw_value
        if left in _IDENTITY_OPERANDS:
            return Path(right)
        if right in _IDENTITY_OPERANDS:
            return self

        head = left.rstrip(SEPARATOR) or SEPARATOR
        tail = right.lstrip(SEPARATOR)
        if head == SEPARATOR:
            return Path(SEPARATOR + tail)
        return Path(head + SEPARATOR + tail)

    def __radd__(self, other: Any) -> "Path":
        try:
            return Path(_raw(other)) + self
        except TypeError:
            return NotImplemented

    def __and__(self, other: Any) -> "Path":
        if not isinstance(other, (Path, str)):
            return NotImplemented
        return self.common_ancestor(other)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self._standard == other._standard

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self._standard < other._standard

    def __hash__(self) -> int:
        return hash(self._standard)

    def __str__(self) -> str:
        return self.raw_value

    def __fspath__(self) -> str:
        return self._standard


__all__ = ["Path", "SEPARATOR"]
