"""Same-value equality plan data classes.

Frozen dataclasses describing how two instances of a class are compared
field by field. Nested plans form a finite tree: cycles in the type graph
are cut by IDENTITY entries.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from matchkit.core.enums import ComparisonStrategy
from matchkit.core.registry import MatcherTarget


@dataclass(frozen=True)
class EqualityEntry:
    """Comparison of one field."""

    field: str
    accessor: str
    strategy: ComparisonStrategy
    nested: EqualityPlan | None = None
    target: MatcherTarget | None = None
    excluded: frozenset[str] = frozenset()  # sub-paths skipped below this field
    optional: bool = False  # value may be None on either side


@dataclass(frozen=True)
class SupertypeCheck:
    """How the fields inherited from the supertype are compared."""

    type_name: str
    verified: bool
    nested: EqualityPlan | None = None
    target: MatcherTarget | None = None


@dataclass(frozen=True)
class EqualityPlan:
    """Compiled same-value comparison for one class."""

    class_name: str
    entries: tuple[EqualityEntry, ...]
    ownership_path: tuple[str, ...] = ()
    excluded: frozenset[str] = frozenset()
    supertype: SupertypeCheck | None = None
    unapplied_exclusions: tuple[str, ...] = ()

    @property
    def weak(self) -> bool:
        """True if some inherited fields, here or below, cannot be verified."""
        if self.supertype is not None:
            if not self.supertype.verified:
                return True
            if self.supertype.nested is not None and self.supertype.nested.weak:
                return True
        return any(entry.nested is not None and entry.nested.weak for entry in self.entries)

    def entry(self, field: str) -> EqualityEntry | None:
        for candidate in self.entries:
            if candidate.field == field:
                return candidate
        return None

    def walk(self, prefix: str = "") -> Iterator[tuple[str, EqualityEntry]]:
        """Yield ``(dotted_path, entry)`` for every entry, depth first."""
        if self.supertype is not None and self.supertype.nested is not None:
            yield from self.supertype.nested.walk(prefix)
        for entry in self.entries:
            path = f"{prefix}{entry.field}"
            yield path, entry
            if entry.nested is not None:
                yield from entry.nested.walk(f"{path}.")

    def degraded_fields(self) -> list[str]:
        """Dotted paths compared by identity because of a cycle."""
        return [
            path for path, entry in self.walk() if entry.strategy is ComparisonStrategy.IDENTITY
        ]
