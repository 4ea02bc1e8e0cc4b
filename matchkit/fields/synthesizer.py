"""DSL method synthesizer.

Every field gets two methods:
    <field>(matcher)        accepts any predicate over the field value
    <field>_value(value)    shortcut for an equality predicate

followed by the shortcuts of its variant. The output order is fixed so that
generated sources are diff-stable.
"""

from __future__ import annotations

from collections.abc import Iterable

from matchkit.core.config import COLLECTION_EXTENSION, DATE_EXTENSION, JSON_EXTENSION
from matchkit.core.types import TypeRef
from matchkit.fields.description import (
    CollectionField,
    FieldDescription,
    LinkedObjectField,
    MapField,
    OptionalField,
    ScalarField,
)
from matchkit.fields.dsl import DSLMethod, DSLMethodBuilder
from matchkit.fields.linker import LinkPlan

EMPTY_TEMPLATE = "len(actual) == 0"

_ORDERING = (
    ("compares_equal_to", "not actual < value and not value < actual", "equal in natural order to"),
    ("less_than", "actual < value", "less than"),
    ("less_than_or_equal_to", "actual <= value", "less than or equal to"),
    ("greater_than", "actual > value", "greater than"),
    ("greater_than_or_equal_to", "actual >= value", "greater than or equal to"),
)

_TEXT = (
    ("starts_with", "prefix", "actual.startswith(prefix)", "starts with the prefix"),
    ("ends_with", "suffix", "actual.endswith(suffix)", "ends with the suffix"),
    ("contains_string", "substring", "substring in actual", "contains the substring"),
    (
        "equal_ignoring_case",
        "value",
        "actual.casefold() == value.casefold()",
        "is equal, ignoring case, to",
    ),
)


def _type_text(ref: TypeRef | None) -> str:
    return str(ref) if ref is not None else "Any"


def _predicate_type(type_text: str) -> str:
    return f"Callable[[{type_text}], bool]"


def _common(description: FieldDescription) -> list[DSLMethod]:
    name = description.name
    type_text = description.type_name
    return [
        DSLMethodBuilder(name)
        .parameter("matcher", _predicate_type(type_text))
        .doc(f"verify that `{name}` matches the given predicate")
        .build("matcher(actual)"),
        DSLMethodBuilder(name)
        .suffix("value")
        .parameter("value", type_text)
        .doc(f"verify that `{name}` is equal to the given value")
        .build("actual == value"),
    ]


def _scalar(description: ScalarField, extensions: frozenset[str]) -> list[DSLMethod]:
    name = description.name
    type_text = description.type_name
    methods: list[DSLMethod] = []
    if description.orderable:
        for suffix, template, wording in _ORDERING:
            methods.append(
                DSLMethodBuilder(name)
                .suffix(suffix)
                .parameter("value", type_text)
                .doc(f"verify that `{name}` is {wording} the given value")
                .build(template)
            )
    if description.textual:
        for suffix, param, template, wording in _TEXT:
            methods.append(
                DSLMethodBuilder(name)
                .suffix(suffix)
                .parameter(param, "str")
                .doc(f"verify that `{name}` {wording}")
                .build(template)
            )
        if JSON_EXTENSION in extensions:
            methods.append(
                DSLMethodBuilder(name)
                .suffix("is_json")
                .doc(f"verify that `{name}` is a valid JSON document")
                .build("_parses_as_json(actual)")
            )
    if description.date_like and DATE_EXTENSION in extensions:
        methods.append(
            DSLMethodBuilder(name)
            .suffix("is_before")
            .parameter("moment", type_text)
            .doc(f"verify that `{name}` is strictly before the given moment")
            .build("actual < moment")
        )
        methods.append(
            DSLMethodBuilder(name)
            .suffix("is_after")
            .parameter("moment", type_text)
            .doc(f"verify that `{name}` is strictly after the given moment")
            .build("actual > moment")
        )
        if description.type_ref.simple_name != "time":
            methods.append(
                DSLMethodBuilder(name)
                .suffix("is_same_day")
                .parameter("day", type_text)
                .doc(f"verify that `{name}` falls on the same calendar day")
                .build(
                    "(actual.year, actual.month, actual.day) == (day.year, day.month, day.day)"
                )
            )
    return methods


def _collection(
    description: CollectionField,
    link: LinkPlan | None,
    extensions: frozenset[str],
) -> list[DSLMethod]:
    name = description.name
    element_text = _type_text(description.element)
    methods = [
        DSLMethodBuilder(name)
        .suffix("is_empty")
        .doc(f"verify that `{name}` is empty")
        .build(EMPTY_TEMPLATE),
        DSLMethodBuilder(name)
        .suffix("has_size")
        .parameter("size", "int")
        .doc(f"verify that `{name}` has the given number of elements")
        .build("len(actual) == size"),
        DSLMethodBuilder(name)
        .suffix("contains")
        .parameter("element", element_text)
        .doc(f"verify that `{name}` contains the given element")
        .build("element in actual"),
    ]
    if COLLECTION_EXTENSION in extensions:
        methods.append(
            DSLMethodBuilder(name)
            .suffix("contains_in_any_order")
            .parameter("*elements", element_text)
            .doc(f"verify that `{name}` holds exactly the given elements, in any order")
            .build(
                "len(actual) == len(elements) and "
                "all(element in actual for element in elements)"
            )
        )
    if description.element_linked:
        methods.append(
            DSLMethodBuilder(name)
            .suffix("each")
            .parameter("matcher", _predicate_type(element_text))
            .doc(f"verify that every element of `{name}` matches the given predicate")
            .build("all(matcher(item) for item in actual)")
        )
        element = link.element if link is not None else None
        if element is not None and element.linked and element.target is not None:
            entry = element.target.reference(element.target.same_value_entry_point)
            methods.append(
                DSLMethodBuilder(name)
                .suffix("each_with_same_value")
                .parameter("others", f"Sequence[{element_text}]")
                .doc(f"verify that `{name}` holds elements with the same values as the given ones")
                .build(
                    "len(actual) == len(others) and "
                    f"all({entry}(other).matches(item) for item, other in zip(actual, others))"
                )
            )
    return methods


def _map(description: MapField) -> list[DSLMethod]:
    name = description.name
    methods = [
        DSLMethodBuilder(name)
        .suffix("is_empty")
        .doc(f"verify that the map `{name}` is empty")
        .build(EMPTY_TEMPLATE),
    ]
    if description.concrete:
        methods.append(
            DSLMethodBuilder(name)
            .suffix("has_same_values")
            .parameter("other", description.type_name)
            .doc(f"verify that `{name}` holds exactly the entries of the other map")
            .build(
                "len(actual) == len(other) and "
                "all(key in actual and actual[key] == value for key, value in other.items())"
            )
        )
    methods.append(
        DSLMethodBuilder(name)
        .suffix("has_key")
        .parameter("key", _type_text(description.key))
        .doc(f"verify that the map `{name}` has the given key")
        .build("key in actual")
    )
    if description.value_linked:
        methods.append(
            DSLMethodBuilder(name)
            .suffix("each_value")
            .parameter("matcher", _predicate_type(_type_text(description.value)))
            .doc(f"verify that every value of `{name}` matches the given predicate")
            .build("all(matcher(value) for value in actual.values())")
        )
    return methods


def _presence(
    description: OptionalField | LinkedObjectField, link: LinkPlan | None
) -> list[DSLMethod]:
    name = description.name
    if isinstance(description, OptionalField):
        inner_text = _type_text(description.wrapped)
    else:
        inner_text = description.type_name
    methods = [
        DSLMethodBuilder(name)
        .suffix("is_absent")
        .doc(f"verify that `{name}` is None")
        .build("actual is None"),
        DSLMethodBuilder(name)
        .suffix("is_present_and")
        .parameter("matcher", _predicate_type(inner_text))
        .doc(f"verify that `{name}` is not None and matches the given predicate")
        .build("actual is not None and matcher(actual)"),
    ]
    if link is not None and link.linked and link.target is not None:
        entry = link.target.reference(link.target.same_value_entry_point)
        methods.append(
            DSLMethodBuilder(name)
            .suffix("with_same_value")
            .parameter("other", inner_text)
            .doc(f"verify that `{name}` has the same value as the other instance")
            .build(
                f"(actual is None and other is None) or "
                f"(actual is not None and other is not None and {entry}(other).matches(actual))"
            )
        )
    return methods


def synthesize(
    description: FieldDescription,
    link: LinkPlan | None = None,
    extensions: Iterable[str] = (),
) -> tuple[DSLMethod, ...]:
    """Produce the ordered DSL methods of one field.

    Args:
        description: The classified field.
        link: Its resolved link plan; linked variants get delegating methods.
        extensions: Names of the optional extensions active for the class.
    """
    active = frozenset(extensions)
    methods = _common(description)
    if isinstance(description, ScalarField):
        methods.extend(_scalar(description, active))
    elif isinstance(description, CollectionField):
        methods.extend(_collection(description, link, active))
    elif isinstance(description, MapField):
        methods.extend(_map(description))
    else:
        methods.extend(_presence(description, link))
    return tuple(methods)
