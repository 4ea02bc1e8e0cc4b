"""Unit tests for the cycle-safe equality planner."""

from __future__ import annotations

import pytest

from matchkit.core.descriptor import ClassDescriptor, FieldDescriptor
from matchkit.core.diagnostics import DiagnosticLog
from matchkit.core.enums import ComparisonStrategy, Severity
from matchkit.core.exceptions import (
    ClassificationError,
    CycleDetectedNotice,
    UnresolvedLinkWarning,
)
from matchkit.equality.planner import EqualityPlanner, build_equality_plan


def _strategies(plan) -> dict[str, ComparisonStrategy]:
    return {path: entry.strategy for path, entry in plan.walk()}


class TestValuePlans:
    def test_point(self, point: ClassDescriptor, make_registry) -> None:
        plan = build_equality_plan(point, registry=make_registry(point))
        assert [e.field for e in plan.entries] == ["x", "y"]
        assert all(e.strategy is ComparisonStrategy.VALUE for e in plan.entries)
        assert plan.degraded_fields() == []
        assert plan.supertype is None
        assert not plan.weak

    def test_collection_of_linked_type_is_compared_by_value(self, make_registry) -> None:
        item = ClassDescriptor("Item", "pkg", fields=(FieldDescriptor("n", "int"),))
        holder = ClassDescriptor("Holder", "pkg", fields=(FieldDescriptor("items", "list[Item]"),))
        plan = build_equality_plan(holder, registry=make_registry(holder, item))
        assert plan.entry("items").strategy is ComparisonStrategy.VALUE

    def test_optional_entry_is_flagged(self, bag: ClassDescriptor, make_registry) -> None:
        plan = build_equality_plan(bag, registry=make_registry(bag))
        assert plan.entry("label").optional
        assert not plan.entry("items").optional


class TestCycles:
    def test_node_recurses_once_then_degrades(self, node: ClassDescriptor, make_registry) -> None:
        diagnostics = DiagnosticLog("graph.Node")
        plan = build_equality_plan(node, registry=make_registry(node), diagnostics=diagnostics)
        assert _strategies(plan) == {
            "value": ComparisonStrategy.VALUE,
            "next": ComparisonStrategy.NESTED,
            "next.value": ComparisonStrategy.VALUE,
            "next.next": ComparisonStrategy.IDENTITY,
        }
        assert plan.entry("next").nested.ownership_path == ("graph.Node",)
        assert len(diagnostics.of_category(CycleDetectedNotice)) == 1

    def test_two_class_cycle_degrades_exactly_one_leg(self, cycle_pair, make_registry) -> None:
        a, b = cycle_pair
        plan = build_equality_plan(a, registry=make_registry(a, b))
        assert plan.degraded_fields() == ["b.a"]
        assert plan.entry("b").strategy is ComparisonStrategy.NESTED

    def test_cycle_from_the_other_side(self, cycle_pair, make_registry) -> None:
        a, b = cycle_pair
        plan = build_equality_plan(b, registry=make_registry(a, b))
        assert plan.degraded_fields() == ["a.b"]

    def test_ownership_path_is_not_mutated(self, cycle_pair, make_registry) -> None:
        a, b = cycle_pair
        path = ("outer.Root",)
        plan = build_equality_plan(a, ownership_path=path, registry=make_registry(a, b))
        assert path == ("outer.Root",)
        assert plan.ownership_path == ("outer.Root",)
        assert plan.entry("b").nested.ownership_path == ("outer.Root", "cyc.A")

    def test_diamond_is_not_a_cycle(self, make_registry) -> None:
        leaf = ClassDescriptor("Leaf", "d", fields=(FieldDescriptor("n", "int"),))
        root = ClassDescriptor(
            "Root", "d", fields=(FieldDescriptor("left", "Leaf"), FieldDescriptor("right", "Leaf"))
        )
        plan = build_equality_plan(root, registry=make_registry(root, leaf))
        assert plan.degraded_fields() == []
        assert plan.entry("left").nested is plan.entry("right").nested


class TestExclusions:
    def test_excluded_field_is_omitted(self, bag: ClassDescriptor, make_registry) -> None:
        plan = build_equality_plan(bag, ["items"], registry=make_registry(bag))
        assert [e.field for e in plan.entries] == ["counts", "label"]
        assert plan.unapplied_exclusions == ()

    def test_sub_path_exclusion_suppresses_descent(self, cycle_pair, make_registry) -> None:
        a, b = cycle_pair
        plan = build_equality_plan(a, ["b.size"], registry=make_registry(a, b))
        nested = plan.entry("b").nested
        assert [e.field for e in nested.entries] == ["a"]
        assert plan.entry("b").excluded == frozenset({"size"})

    @pytest.mark.parametrize("path", ["nope", "nope.deeper", "x.y"])
    def test_unknown_paths_are_no_ops(
        self, path: str, point: ClassDescriptor, make_registry
    ) -> None:
        registry = make_registry(point)
        plain = build_equality_plan(point, registry=registry)
        plan = build_equality_plan(point, [path], registry=registry)
        assert [(e.field, e.strategy) for e in plan.entries] == [
            (e.field, e.strategy) for e in plain.entries
        ]
        assert path in plan.unapplied_exclusions

    def test_unknown_nested_path_reaches_the_top_plan(self, cycle_pair, make_registry) -> None:
        a, b = cycle_pair
        plan = build_equality_plan(a, ["b.nope", "b.size"], registry=make_registry(a, b))
        assert plan.entry("b").nested.unapplied_exclusions == ("nope",)
        assert plan.unapplied_exclusions == ("b.nope",)

    def test_inherited_field_exclusion_is_applied(self, make_registry) -> None:
        base = ClassDescriptor("Base", "pkg", fields=(FieldDescriptor("id", "int"),))
        child = ClassDescriptor(
            "Child", "pkg", fields=(FieldDescriptor("name", "str"),), supertype="Base"
        )
        plan = build_equality_plan(child, ["id", "nope"], registry=make_registry(base, child))
        assert plan.supertype.nested.entries == ()
        assert plan.unapplied_exclusions == ("nope",)

    def test_sub_path_on_external_matcher_is_unapplied(self, make_registry) -> None:
        order = ClassDescriptor("Order", "shop", fields=(FieldDescriptor("total", "money.Money"),))
        registry = make_registry(order, existing=["money.Money"])
        plan = build_equality_plan(order, ["total.currency"], registry=registry)
        assert plan.entry("total").strategy is ComparisonStrategy.MATCHER
        assert plan.unapplied_exclusions == ("total.currency",)


class TestSupertypes:
    def test_generated_supertype_is_verified_by_nested_plan(self, make_registry) -> None:
        base = ClassDescriptor("Base", "pkg", fields=(FieldDescriptor("id", "int"),))
        child = ClassDescriptor(
            "Child", "pkg", fields=(FieldDescriptor("name", "str"),), supertype="Base"
        )
        plan = build_equality_plan(child, registry=make_registry(base, child))
        assert plan.supertype is not None
        assert plan.supertype.verified
        assert [e.field for e in plan.supertype.nested.entries] == ["id"]
        assert [path for path, _ in plan.walk()] == ["id", "name"]
        assert not plan.weak

    def test_existing_supertype_is_verified_by_its_matcher(self, make_registry) -> None:
        child = ClassDescriptor("Child", "pkg", supertype="lib.Base")
        plan = build_equality_plan(child, registry=make_registry(child, existing=["lib.Base"]))
        assert plan.supertype.verified
        assert plan.supertype.nested is None
        assert not plan.weak

    def test_unknown_supertype_is_weak(self, make_registry) -> None:
        child = ClassDescriptor("Child", "pkg", supertype="lib.Base")
        plan = build_equality_plan(child, registry=make_registry(child))
        assert not plan.supertype.verified
        assert plan.weak

    def test_weakness_propagates_from_nested_plans(self, make_registry) -> None:
        inner = ClassDescriptor("Inner", "pkg", supertype="lib.Base")
        outer = ClassDescriptor("Outer", "pkg", fields=(FieldDescriptor("inner", "Inner"),))
        plan = build_equality_plan(outer, registry=make_registry(inner, outer))
        assert plan.supertype is None
        assert plan.weak

    @pytest.mark.parametrize("root", ["object", "Generic"])
    def test_root_supertypes_are_ignored(self, root: str, make_registry) -> None:
        child = ClassDescriptor("Child", "pkg", supertype=root)
        assert build_equality_plan(child, registry=make_registry(child)).supertype is None


class TestPlanner:
    def test_plans_are_memoized(self, node: ClassDescriptor, make_registry) -> None:
        planner = EqualityPlanner(make_registry(node))
        assert planner.build(node) is planner.build(node)
        assert planner.build(node) is not planner.build(node, ["value"])

    def test_own_classification_error_is_raised(self, make_registry) -> None:
        broken = ClassDescriptor("Broken", "pkg", fields=(FieldDescriptor("f", "list["),))
        with pytest.raises(ClassificationError):
            build_equality_plan(broken, registry=make_registry(broken))

    def test_nested_classification_error_degrades_to_value(self, make_registry) -> None:
        broken = ClassDescriptor("Broken", "pkg", fields=(FieldDescriptor("f", "list["),))
        holder = ClassDescriptor("Holder", "pkg", fields=(FieldDescriptor("b", "Broken"),))
        diagnostics = DiagnosticLog("pkg.Holder")
        plan = build_equality_plan(
            holder, registry=make_registry(broken, holder), diagnostics=diagnostics
        )
        assert plan.entry("b").strategy is ComparisonStrategy.VALUE
        [warning] = diagnostics.of_category(UnresolvedLinkWarning)
        assert warning.severity is Severity.WARNING
        assert warning.field_name == "b"
        assert "pkg.Broken" in warning.message

    def test_broken_generated_supertype_is_unverified(self, make_registry) -> None:
        base = ClassDescriptor("Base", "pkg", fields=(FieldDescriptor("f", "list["),))
        child = ClassDescriptor(
            "Child", "pkg", fields=(FieldDescriptor("x", "int"),), supertype="Base"
        )
        diagnostics = DiagnosticLog("pkg.Child")
        plan = build_equality_plan(
            child, registry=make_registry(base, child), diagnostics=diagnostics
        )
        assert plan.supertype.type_name == "pkg.Base"
        assert not plan.supertype.verified
        assert plan.supertype.nested is None
        assert plan.weak
        [warning] = diagnostics.of_category(UnresolvedLinkWarning)
        assert warning.field_name is None
