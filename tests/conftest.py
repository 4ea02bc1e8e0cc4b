"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping

import pytest

from matchkit.core.descriptor import ClassDescriptor, FieldDescriptor
from matchkit.core.registry import CapabilityRegistry


def _fields(**signatures: str) -> tuple[FieldDescriptor, ...]:
    """Field descriptors in keyword order: ``_fields(x="int", y="int")``."""
    return tuple(FieldDescriptor(name, signature) for name, signature in signatures.items())


@pytest.fixture
def point() -> ClassDescriptor:
    """Point{x: int, y: int}."""
    return ClassDescriptor("Point", "geo", fields=_fields(x="int", y="int"))


@pytest.fixture
def node() -> ClassDescriptor:
    """Node{value: int, next: Node}, a self-referencing type."""
    return ClassDescriptor("Node", "graph", fields=_fields(value="int", next="Node"))


@pytest.fixture
def cycle_pair() -> tuple[ClassDescriptor, ClassDescriptor]:
    """A{b: B} and B{a: A}, a two-class cycle."""
    a = ClassDescriptor("A", "cyc", fields=_fields(name="str", b="B"))
    b = ClassDescriptor("B", "cyc", fields=_fields(size="int", a="A"))
    return a, b


@pytest.fixture
def bag() -> ClassDescriptor:
    """Bag{items: list[str], counts: dict[str, int], label: Optional[str]}."""
    return ClassDescriptor(
        "Bag",
        "store",
        fields=_fields(items="list[str]", counts="dict[str, int]", label="Optional[str]"),
    )


@pytest.fixture
def make_registry() -> Callable[..., CapabilityRegistry]:
    """Build a frozen registry declaring the given descriptors.

    Usage:
        registry = make_registry(point, node, extensions=["date"])
    """

    def _make(
        *descriptors: ClassDescriptor,
        extensions: Iterable[str] = (),
        existing: Iterable[str] | Mapping[str, str] = (),
        value_types: Iterable[str] = (),
    ) -> CapabilityRegistry:
        registry = CapabilityRegistry(extensions, existing, value_types)
        for descriptor in descriptors:
            registry.declare(descriptor)
        registry.freeze()
        return registry

    return _make
