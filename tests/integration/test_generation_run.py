"""Integration tests: generate, render, compile and exercise matchers."""

from __future__ import annotations

import dataclasses
from typing import Any, Optional

import pytest

from matchkit.core.config import GenerationSettings, MatcherConfig
from matchkit.core.descriptor import ClassDescriptor
from matchkit.core.enums import ExpositionMethod
from matchkit.generator import MatcherGenerator
from matchkit.introspect import describe_class
from matchkit.render import render_factory, render_module, render_result


@dataclasses.dataclass
class Point:
    x: int
    y: int


@dataclasses.dataclass
class Node:
    value: int
    next: Optional[Node] = None


@dataclasses.dataclass
class Bag:
    items: list[str]
    counts: dict[str, int]
    label: Optional[str] = None


@dataclasses.dataclass
class Owner:
    name: str
    pet: Optional[Pet] = None


@dataclasses.dataclass
class Pet:
    name: str
    owner: Optional[Owner] = None


@dataclasses.dataclass
class Document:
    title: str
    body: str


def _load(classes, **kwargs) -> dict[str, Any]:
    """Run the generator over ``classes`` and exec the rendered module."""
    result = MatcherGenerator(**kwargs).run(classes)
    result.raise_for_errors()
    source = render_module(result.artifacts)
    namespace: dict[str, Any] = {"__name__": "generated_matchers"}
    exec(compile(source, "<generated>", "exec"), namespace)
    return namespace


class TestPoint:
    @pytest.fixture
    def matchers(self) -> Any:
        return _load([describe_class(Point)])["PointMatchers"]

    def test_field_predicates(self, matchers: Any) -> None:
        matcher = matchers.point_with().x_value(1).y_greater_than(0)
        assert matcher.matches(Point(1, 2))
        assert not matcher.matches(Point(2, 2))
        assert not matcher.matches(None)

    def test_describe_mismatch(self, matchers: Any) -> None:
        matcher = matchers.point_with().x_less_than(0).y_value(2)
        assert matcher.describe_mismatch(Point(1, 2)) == "mismatch on x"
        assert matcher.describe_mismatch(None) == "was None"

    def test_generic_predicate_and_call(self, matchers: Any) -> None:
        matcher = matchers.point_with().x(lambda x: x % 2 == 0)
        assert matcher(Point(4, 0))
        assert not matcher(Point(3, 0))

    def test_same_value(self, matchers: Any) -> None:
        matcher = matchers.point_with_same_value(Point(1, 2))
        assert matcher.matches(Point(1, 2))
        assert not matcher.matches(Point(1, 3))

    def test_same_value_needs_reference(self, matchers: Any) -> None:
        with pytest.raises(ValueError):
            matchers.point_with_same_value(None)


class TestCycles:
    def test_node_chain(self) -> None:
        matchers = _load([describe_class(Node)])["NodeMatchers"]
        expected = Node(1, Node(2))
        assert matchers.node_with_same_value(expected).matches(Node(1, Node(2)))
        assert not matchers.node_with_same_value(expected).matches(Node(1, Node(3)))
        assert not matchers.node_with_same_value(expected).matches(Node(1))

    def test_self_loop_terminates(self) -> None:
        matchers = _load([describe_class(Node)])["NodeMatchers"]
        node = Node(1)
        node.next = node
        assert matchers.node_with_same_value(node).matches(node)

    def test_linked_field_delegates(self) -> None:
        matchers = _load([describe_class(Node)])["NodeMatchers"]
        matcher = matchers.node_with().next_with_same_value(Node(2))
        assert matcher.matches(Node(1, Node(2)))
        assert not matcher.matches(Node(1, Node(5)))
        assert matchers.node_with().next_is_absent().matches(Node(1))

    def test_two_class_cycle(self) -> None:
        namespace = _load([describe_class(Owner), describe_class(Pet)])
        owner = Owner("ann")
        owner.pet = Pet("rex", owner)
        assert namespace["OwnerMatchers"].owner_with_same_value(owner).matches(owner)
        assert namespace["PetMatchers"].pet_with_same_value(owner.pet).matches(owner.pet)

        other = Owner("ann")
        other.pet = Pet("rex", other)
        # the back reference is compared by identity
        assert not namespace["OwnerMatchers"].owner_with_same_value(owner).matches(other)


class TestBag:
    def test_exclusion_only_affects_same_value(self) -> None:
        config = MatcherConfig(excluded_fields=["items"])
        matchers = _load(
            [(describe_class(Bag), config)], extensions=["collection"]
        )["BagMatchers"]
        reference = Bag(["a"], {"k": 1})
        assert matchers.bag_with_same_value(reference).matches(Bag(["b", "c"], {"k": 1}))
        assert not matchers.bag_with_same_value(reference).matches(Bag(["a"], {"k": 2}))
        assert matchers.bag_with().items_has_size(2).matches(Bag(["b", "c"], {}))

    def test_collection_and_map_methods(self) -> None:
        matchers = _load([describe_class(Bag)], extensions=["collection"])["BagMatchers"]
        bag = Bag(["a", "b"], {"k": 1}, "big")
        assert matchers.bag_with().items_contains_in_any_order("b", "a").matches(bag)
        assert matchers.bag_with().counts_has_same_values({"k": 1}).matches(bag)
        assert matchers.bag_with().counts_has_key("k").label_is_present_and(
            lambda label: label.startswith("b")
        ).matches(bag)
        assert not matchers.bag_with().items_is_empty().matches(bag)


class TestExtrasAndOutputs:
    def test_json_extension(self) -> None:
        config = MatcherConfig(extensions=["json"])
        namespace = _load([(describe_class(Document), config)], extensions=["json"])
        matcher = namespace["DocumentMatchers"].document_with().body_is_json()
        assert matcher.matches(Document("t", '{"a": 1}'))
        assert not matcher.matches(Document("t", "{not json"))

    def test_exposition_methods(self) -> None:
        config = MatcherConfig(more_methods=[ExpositionMethod.ANY_OF, ExpositionMethod.HAS_ITEMS])
        matchers = _load([(describe_class(Point), config)])["PointMatchers"]
        is_origin = matchers.point_with().x_value(0).y_value(0)
        assert matchers.any_of_point(is_origin, lambda p: p.x == 5)(Point(5, 1))
        assert matchers.has_items_point(is_origin)([Point(1, 1), Point(0, 0)])

    def test_weak_class_has_no_same_value_entry(self) -> None:
        child = ClassDescriptor("Child", "pkg", supertype="lib.Base")
        result = MatcherGenerator().run([child])
        source = render_module(result.artifacts)
        assert "def child_with(" in source
        assert "child_with_same_value" not in source

    def test_render_result_modules(self) -> None:
        settings = GenerationSettings(factory_name="geo.AllMatchers")
        point = ClassDescriptor("Point", "geo")
        node = describe_class(Node)
        result = MatcherGenerator(settings).run([point, node])
        sources = render_result(result)
        assert set(sources) == {
            "geo.point_matchers",
            f"{__name__}.node_matchers",
            "geo.all_matchers",
        }
        for name, source in sources.items():
            compile(source, name, "exec")

    def test_factory_source(self) -> None:
        settings = GenerationSettings(factory_name="geo.AllMatchers")
        result = MatcherGenerator(settings).run([ClassDescriptor("Point", "geo")])
        source = render_factory(result.factory)
        assert "from geo.point_matchers import PointMatchers" in source
        assert "point_with = staticmethod(PointMatchers.point_with)" in source
        assert "class AllMatchers:" in source

    def test_rendering_is_stable(self) -> None:
        classes = [describe_class(Owner), describe_class(Pet)]
        first = render_module(MatcherGenerator().run(classes).artifacts)
        second = render_module(MatcherGenerator().run(classes).artifacts)
        assert first == second
