"""Field description variants.

A tagged union of frozen dataclasses: exactly one variant describes each
field. ``kind`` is the tag; the variant carries the shape data.

A description refers to its containing class by qualified name (``owner``),
which is a key into the CapabilityRegistry, never the descriptor itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Union

from matchkit.core.descriptor import FieldDescriptor
from matchkit.core.enums import FieldKind
from matchkit.core.types import TypeRef


@dataclass(frozen=True)
class _FieldDescriptionBase:
    owner: str
    descriptor: FieldDescriptor
    type_ref: TypeRef
    open_generic: bool = False

    kind: ClassVar[FieldKind]

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def accessor(self) -> str:
        return self.descriptor.accessor_name

    @property
    def type_name(self) -> str:
        return str(self.type_ref)


@dataclass(frozen=True)
class ScalarField(_FieldDescriptionBase):
    """A plain value compared as a whole."""

    orderable: bool = False
    textual: bool = False
    date_like: bool = False

    kind: ClassVar[FieldKind] = FieldKind.SCALAR


@dataclass(frozen=True)
class CollectionField(_FieldDescriptionBase):
    """A list, set, frozenset, homogeneous tuple or similar."""

    element: TypeRef | None = None
    element_open: bool = False
    element_linked: bool = False

    kind: ClassVar[FieldKind] = FieldKind.COLLECTION


@dataclass(frozen=True)
class MapField(_FieldDescriptionBase):
    """A mapping with key and value types."""

    key: TypeRef | None = None
    value: TypeRef | None = None
    key_open: bool = False
    value_open: bool = False
    value_linked: bool = False

    kind: ClassVar[FieldKind] = FieldKind.MAP

    @property
    def concrete(self) -> bool:
        """Key and value types are both known and not open generics."""
        return (
            self.key is not None
            and self.value is not None
            and not self.key_open
            and not self.value_open
        )


@dataclass(frozen=True)
class OptionalField(_FieldDescriptionBase):
    """A value that may be None."""

    wrapped: TypeRef | None = None
    wrapped_open: bool = False
    wrapped_linked: bool = False

    kind: ClassVar[FieldKind] = FieldKind.OPTIONAL


@dataclass(frozen=True)
class LinkedObjectField(_FieldDescriptionBase):
    """A value whose type has, or is getting, its own matchers."""

    target: str = ""  # qualified name of the linked type

    kind: ClassVar[FieldKind] = FieldKind.LINKED_OBJECT


FieldDescription = Union[ScalarField, CollectionField, MapField, OptionalField, LinkedObjectField]
