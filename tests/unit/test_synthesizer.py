"""Unit tests for DSL method synthesis."""

from __future__ import annotations

import pytest

from matchkit.core.config import COLLECTION_EXTENSION, DATE_EXTENSION, JSON_EXTENSION
from matchkit.core.descriptor import ClassDescriptor, FieldDescriptor
from matchkit.core.exceptions import MatchkitError
from matchkit.fields.classifier import classify
from matchkit.fields.dsl import DSLMethodBuilder
from matchkit.fields.linker import resolve
from matchkit.fields.synthesizer import EMPTY_TEMPLATE, synthesize

HOLDER = ClassDescriptor("Holder", "pkg")


def _names(signature: str, extensions=(), context: ClassDescriptor = HOLDER, registry=None):
    description = classify(FieldDescriptor("f", signature), context, registry)
    link = resolve(description, registry) if registry is not None else None
    return [method.name for method in synthesize(description, link, extensions)]


def _evaluate(template: str, **scope) -> bool:
    return eval(template, dict(scope))


class TestUniversalMethods:
    def test_every_field_starts_with_matcher_and_value(self) -> None:
        for signature in ["int", "bool", "list[int]", "dict[str, int]", "Optional[int]"]:
            assert _names(signature)[:2] == ["f", "f_value"]

    def test_point_methods(self, point: ClassDescriptor) -> None:
        description = classify(point.fields[0], point)
        assert [m.name for m in synthesize(description)] == [
            "x",
            "x_value",
            "x_compares_equal_to",
            "x_less_than",
            "x_less_than_or_equal_to",
            "x_greater_than",
            "x_greater_than_or_equal_to",
        ]

    def test_value_template(self) -> None:
        value = synthesize(classify(FieldDescriptor("f", "bool"), HOLDER))[1]
        assert value.parameter_names == ("value",)
        assert _evaluate(value.template, actual=True, value=True)
        assert not _evaluate(value.template, actual=True, value=False)


class TestScalarShortcuts:
    def test_unordered_scalar_has_only_universal_methods(self) -> None:
        assert _names("bool") == ["f", "f_value"]

    def test_text_shortcuts(self) -> None:
        names = _names("str")
        assert names[-4:] == [
            "f_starts_with",
            "f_ends_with",
            "f_contains_string",
            "f_equal_ignoring_case",
        ]

    def test_text_templates(self) -> None:
        description = classify(FieldDescriptor("f", "str"), HOLDER)
        methods = {m.name: m for m in synthesize(description)}
        assert _evaluate(methods["f_starts_with"].template, actual="matchkit", prefix="match")
        assert _evaluate(methods["f_equal_ignoring_case"].template, actual="ABC", value="abc")
        assert not _evaluate(methods["f_contains_string"].template, actual="abc", substring="x")

    def test_compares_equal_to_uses_ordering(self) -> None:
        description = classify(FieldDescriptor("f", "float"), HOLDER)
        method = {m.name: m for m in synthesize(description)}["f_compares_equal_to"]
        assert _evaluate(method.template, actual=1.0, value=1)
        assert not _evaluate(method.template, actual=1.5, value=1)

    def test_date_extension(self) -> None:
        assert "f_is_before" not in _names("datetime.date")
        names = _names("datetime.date", [DATE_EXTENSION])
        assert names[-3:] == ["f_is_before", "f_is_after", "f_is_same_day"]

    def test_time_has_no_same_day(self) -> None:
        names = _names("datetime.time", [DATE_EXTENSION])
        assert "f_is_after" in names
        assert "f_is_same_day" not in names

    def test_json_extension(self) -> None:
        assert "f_is_json" not in _names("str")
        assert _names("str", [JSON_EXTENSION])[-1] == "f_is_json"

    def test_open_generic_gets_only_universal_methods(self) -> None:
        box = ClassDescriptor("Box", "pkg", generic_parameters=("T",))
        assert _names("T", context=box) == ["f", "f_value"]


class TestCollectionMethods:
    def test_order(self) -> None:
        assert _names("list[int]") == ["f", "f_value", "f_is_empty", "f_has_size", "f_contains"]

    @pytest.mark.parametrize("signature", ["list[int]", "set[str]", "dict[str, int]"])
    def test_is_empty_is_len_zero(self, signature: str) -> None:
        description = classify(FieldDescriptor("f", signature), HOLDER)
        method = {m.name: m for m in synthesize(description)}["f_is_empty"]
        assert method.template == EMPTY_TEMPLATE
        assert _evaluate(method.template, actual=[])
        assert _evaluate(method.template, actual={})
        assert not _evaluate(method.template, actual=[1])

    def test_contains_in_any_order(self) -> None:
        description = classify(FieldDescriptor("f", "list[int]"), HOLDER)
        methods = synthesize(description, extensions=[COLLECTION_EXTENSION])
        method = methods[-1]
        assert method.name == "f_contains_in_any_order"
        assert method.parameter_names == ("*elements",)
        assert _evaluate(method.template, actual=[2, 1], elements=(1, 2))
        assert not _evaluate(method.template, actual=[1, 2, 3], elements=(1, 2))

    def test_linked_elements(self, make_registry) -> None:
        item = ClassDescriptor("Item", "pkg")
        registry = make_registry(HOLDER, item)
        names = _names("list[Item]", registry=registry)
        assert names[-2:] == ["f_each", "f_each_with_same_value"]

    def test_each_template(self, make_registry) -> None:
        item = ClassDescriptor("Item", "pkg")
        registry = make_registry(HOLDER, item)
        description = classify(FieldDescriptor("f", "list[Item]"), HOLDER, registry)
        each = {m.name: m for m in synthesize(description)}["f_each"]
        assert _evaluate(each.template, actual=[1, 2], matcher=lambda v: v > 0)
        assert not _evaluate(each.template, actual=[1, -2], matcher=lambda v: v > 0)


class TestMapMethods:
    def test_order(self) -> None:
        assert _names("dict[str, int]") == [
            "f",
            "f_value",
            "f_is_empty",
            "f_has_same_values",
            "f_has_key",
        ]

    def test_open_map_has_no_same_values(self) -> None:
        box = ClassDescriptor("Box", "pkg", generic_parameters=("K",))
        assert "f_has_same_values" not in _names("dict[K, int]", context=box)

    def test_has_same_values_template(self) -> None:
        description = classify(FieldDescriptor("f", "dict[str, int]"), HOLDER)
        method = {m.name: m for m in synthesize(description)}["f_has_same_values"]
        assert _evaluate(method.template, actual={"a": 1}, other={"a": 1})
        assert not _evaluate(method.template, actual={"a": 1}, other={"a": 2})
        assert not _evaluate(method.template, actual={"a": 1}, other={"a": 1, "b": 2})


class TestPresenceMethods:
    def test_optional(self) -> None:
        assert _names("Optional[int]") == ["f", "f_value", "f_is_absent", "f_is_present_and"]

    def test_linked_object_with_same_value(self, node: ClassDescriptor, make_registry) -> None:
        registry = make_registry(node)
        description = classify(node.fields[1], node, registry)
        methods = synthesize(description, resolve(description, registry))
        assert [m.name for m in methods] == [
            "next",
            "next_value",
            "next_is_absent",
            "next_is_present_and",
            "next_with_same_value",
        ]
        assert "NodeMatchers.node_with_same_value" in methods[-1].template

    def test_unlinked_object_has_no_same_value(self, node: ClassDescriptor) -> None:
        description = classify(node.fields[1], node)
        assert [m.name for m in synthesize(description)][-1] == "next_is_present_and"


class TestDeterminism:
    def test_method_order_is_stable(self, bag: ClassDescriptor) -> None:
        def run() -> list[str]:
            return [
                method.name
                for f in bag.fields
                for method in synthesize(classify(f, bag), extensions=[COLLECTION_EXTENSION])
            ]

        assert run() == run()


class TestDSLMethodBuilder:
    def test_suffix_and_signature(self) -> None:
        method = DSLMethodBuilder("age").suffix("less_than").parameter("value", "int").build("x")
        assert method.name == "age_less_than"
        assert method.signature == "age_less_than(value: int)"

    def test_default_description(self) -> None:
        assert DSLMethodBuilder("age").build("x").description == "verify the `age` field"

    def test_template_required(self) -> None:
        with pytest.raises(MatchkitError):
            DSLMethodBuilder("age").build("")
