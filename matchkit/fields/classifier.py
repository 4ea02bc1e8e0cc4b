"""Field classifier - maps a raw field descriptor to one FieldDescription variant.

Rules, first match wins:
    1. mapping shape         -> MapField
    2. collection shape      -> CollectionField
    3. Optional / X | None   -> OptionalField
    4. type with matchers    -> LinkedObjectField
    5. anything else         -> ScalarField

Unparseable signatures raise ClassificationError; they never fall back to
ScalarField.
"""

from __future__ import annotations

import logging

from matchkit.core.descriptor import ClassDescriptor, FieldDescriptor
from matchkit.core.exceptions import ClassificationError, TypeSignatureError
from matchkit.core.protocol import Capabilities
from matchkit.core.types import ELLIPSIS, TypeRef, optional_inner, parse_type
from matchkit.fields.description import (
    CollectionField,
    FieldDescription,
    LinkedObjectField,
    MapField,
    OptionalField,
    ScalarField,
)

logger = logging.getLogger(__name__)

MAP_SHAPES = frozenset(
    {"dict", "Dict", "Mapping", "MutableMapping", "OrderedDict", "DefaultDict", "defaultdict"}
)

COLLECTION_SHAPES = frozenset(
    {
        "list",
        "List",
        "set",
        "Set",
        "frozenset",
        "FrozenSet",
        "AbstractSet",
        "MutableSet",
        "Sequence",
        "MutableSequence",
        "Collection",
        "deque",
        "Deque",
        "tuple",
        "Tuple",
    }
)

_TUPLE_SHAPES = frozenset({"tuple", "Tuple"})

ORDERABLE_SCALARS = frozenset(
    {
        "int",
        "float",
        "Decimal",
        "decimal.Decimal",
        "Fraction",
        "fractions.Fraction",
        "str",
        "bytes",
        "date",
        "datetime",
        "time",
        "timedelta",
        "datetime.date",
        "datetime.datetime",
        "datetime.time",
        "datetime.timedelta",
    }
)

TEXTUAL_SCALARS = frozenset({"str"})

DATE_SCALARS = frozenset(
    {"date", "datetime", "time", "datetime.date", "datetime.datetime", "datetime.time"}
)

# Names that never have generated matchers; the linker does not report them.
BUILTIN_TYPES = ORDERABLE_SCALARS | {
    "bool",
    "complex",
    "object",
    "Any",
    "None",
    "UUID",
    "uuid.UUID",
    "Path",
    "pathlib.Path",
    "bytearray",
    "type",
    "Type",
    "Callable",
    "Enum",
    ELLIPSIS,
}


def _fail(context: ClassDescriptor, field: FieldDescriptor, detail: str) -> ClassificationError:
    return ClassificationError(context.qualified_name, field.name, field.signature, detail)


def _is_type_parameter(ref: TypeRef, context: ClassDescriptor) -> bool:
    return not ref.args and ref.name in context.generic_parameters


def _link_target(
    ref: TypeRef | None,
    context: ClassDescriptor,
    registry: Capabilities | None,
) -> str | None:
    """Qualified name of the matchers-bearing type ``ref`` names, if any."""
    if ref is None or ref.args or _is_type_parameter(ref, context):
        return None
    if ref.name in (context.name, context.qualified_name):
        return context.qualified_name
    if registry is None or ref.shape_name in BUILTIN_TYPES:
        return None
    target = registry.target_for(ref.name, context.package)
    return target.type_name if target is not None else None


def _parse(signature: str, field: FieldDescriptor, context: ClassDescriptor) -> TypeRef:
    try:
        return parse_type(signature)
    except TypeSignatureError as e:
        raise _fail(context, field, e.detail) from e


def classify(
    field: FieldDescriptor,
    context: ClassDescriptor,
    registry: Capabilities | None = None,
) -> FieldDescription:
    """Classify one field of ``context``.

    Args:
        field: The raw field descriptor.
        context: The class the field belongs to.
        registry: Frozen capability registry used to detect linkable types.
            Without one only self-references are linked.

    Returns:
        Exactly one FieldDescription variant.

    Raises:
        ClassificationError: If the declared type (or its generic binding)
            cannot be parsed, or a container has the wrong number of
            type arguments.
    """
    ref = _parse(field.signature, field, context)
    open_generic = False
    if _is_type_parameter(ref, context):
        if field.generic:
            ref = _parse(field.generic, field, context)
        else:
            open_generic = True

    owner = context.qualified_name
    shape = ref.shape_name

    if shape in MAP_SHAPES:
        if len(ref.args) not in (0, 2):
            raise _fail(context, field, f"{shape} expects a key and a value type")
        key, value = (ref.args[0], ref.args[1]) if ref.args else (None, None)
        description: FieldDescription = MapField(
            owner,
            field,
            ref,
            open_generic,
            key=key,
            value=value,
            key_open=key is not None and _is_type_parameter(key, context),
            value_open=value is not None and _is_type_parameter(value, context),
            value_linked=_link_target(value, context, registry) is not None,
        )
    elif shape in COLLECTION_SHAPES and _is_homogeneous(ref):
        if shape not in _TUPLE_SHAPES and len(ref.args) > 1:
            raise _fail(context, field, f"{shape} expects a single element type")
        element = ref.args[0] if ref.args else None
        description = CollectionField(
            owner,
            field,
            ref,
            open_generic,
            element=element,
            element_open=element is not None and _is_type_parameter(element, context),
            element_linked=_link_target(element, context, registry) is not None,
        )
    elif (wrapped := optional_inner(ref)) is not None:
        description = OptionalField(
            owner,
            field,
            ref,
            open_generic,
            wrapped=wrapped,
            wrapped_open=_is_type_parameter(wrapped, context),
            wrapped_linked=_link_target(wrapped, context, registry) is not None,
        )
    elif not open_generic and (target := _link_target(ref, context, registry)) is not None:
        description = LinkedObjectField(owner, field, ref, open_generic, target=target)
    else:
        description = ScalarField(
            owner,
            field,
            ref,
            open_generic,
            orderable=not open_generic and shape in ORDERABLE_SCALARS,
            textual=not open_generic and shape in TEXTUAL_SCALARS,
            date_like=not open_generic and shape in DATE_SCALARS,
        )

    logger.debug(f"Classified {owner}.{field.name} ({ref}) as {description.kind.value}")
    return description


def _is_homogeneous(ref: TypeRef) -> bool:
    """Fixed-size tuples such as ``tuple[int, str]`` are compared as a whole."""
    if ref.shape_name not in _TUPLE_SHAPES or not ref.args:
        return True
    return len(ref.args) == 2 and ref.args[1].name == ELLIPSIS
