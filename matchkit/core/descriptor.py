"""Structural class descriptors.

Immutable inputs supplied by the reflection collaborator (or built by
``matchkit.introspect.describe_class``). One ClassDescriptor per class to
generate matchers for; field order is declaration order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from matchkit.core.enums import AccessorKind


@dataclass(frozen=True)
class FieldDescriptor:
    """Raw description of one structural member of a class."""

    name: str
    signature: str
    accessor: str = ""
    generic: str = ""  # concrete binding of a class type parameter, "" if none
    kind: AccessorKind = AccessorKind.FIELD

    @property
    def accessor_name(self) -> str:
        """Name used to read the value, defaulting to the field name."""
        return self.accessor or self.name


@dataclass(frozen=True)
class ClassDescriptor:
    """Raw description of a class: name, package, generics and fields."""

    name: str
    package: str = ""
    generic_parameters: tuple[str, ...] = ()
    fields: tuple[FieldDescriptor, ...] = ()
    supertype: str | None = None

    @property
    def qualified_name(self) -> str:
        return f"{self.package}.{self.name}" if self.package else self.name

    @property
    def snake_name(self) -> str:
        return to_snake_case(self.name)

    def field_named(self, name: str) -> FieldDescriptor | None:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        return None


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def to_snake_case(name: str) -> str:
    """``LinkedNode`` -> ``linked_node``; ``HTTPServer`` -> ``http_server``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()
