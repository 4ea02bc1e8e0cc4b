"""Capability lookup protocol.

Every component that needs to know about other matchers receives an
object implementing this interface; nothing is looked up globally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from matchkit.core.descriptor import ClassDescriptor
    from matchkit.core.registry import MatcherTarget


@runtime_checkable
class Capabilities(Protocol):
    """Read-only view of the matchers known to a generation run."""

    def has_extension(self, name: str) -> bool:
        """Whether an optional matcher extension is available."""
        ...

    def has_matcher_for(self, type_name: str, context_package: str = "") -> bool:
        """Whether a matcher already exists outside this run for the type."""
        ...

    def is_being_generated(self, type_name: str, context_package: str = "") -> bool:
        """Whether the type is declared for generation in this run."""
        ...

    def target_for(self, type_name: str, context_package: str = "") -> MatcherTarget | None:
        """The matcher a type links to, preferring ones generated in this run."""
        ...

    def is_value_type(self, type_name: str, context_package: str = "") -> bool:
        """Whether the type is compared by plain equality and never linked."""
        ...

    def descriptor(self, qualified_name: str) -> ClassDescriptor:
        """The descriptor of a class declared in this run."""
        ...
