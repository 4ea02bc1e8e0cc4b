"""Enumerations shared across matchkit."""

from __future__ import annotations

from enum import Enum


class AccessorKind(Enum):
    """How a field value is read from an instance."""

    FIELD = "field"
    GETTER = "getter"
    IS_GETTER = "is-getter"


class FieldKind(Enum):
    """Structural shape of a classified field."""

    SCALAR = "scalar"
    COLLECTION = "collection"
    MAP = "map"
    OPTIONAL = "optional"
    LINKED_OBJECT = "linked-object"


class LinkKind(Enum):
    """Resolution result of the type linker."""

    NONE = "none"
    SIBLING = "sibling"
    EXISTING = "existing"
    CONTAINER = "container"


class ComparisonStrategy(Enum):
    """Per-field strategy of a same-value equality plan."""

    VALUE = "value"
    IDENTITY = "identity"
    NESTED = "nested"
    MATCHER = "matcher"


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class ExpositionMethod(Enum):
    """Additional class-level entry methods a matchers class may expose."""

    CONTAINS = "contains"
    HAS_ITEMS = "has_items"
    ANY_OF = "any_of"
    NONE_OF = "none_of"
