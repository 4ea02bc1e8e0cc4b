"""Reflection helper: build a ClassDescriptor from a live Python class.

Supports dataclasses, Pydantic models, and plain annotated classes. Only the
class's own members are described; inherited ones belong to the supertype,
which is named in ``ClassDescriptor.supertype``.
"""

from __future__ import annotations

import dataclasses
import enum
import inspect
import logging
import types
import typing
from collections.abc import Iterator, Mapping
from typing import Any, ForwardRef, Generic, TypeVar, Union

from pydantic import BaseModel

from matchkit.core.descriptor import ClassDescriptor, FieldDescriptor
from matchkit.core.enums import AccessorKind
from matchkit.core.exceptions import DescriptorError

logger = logging.getLogger(__name__)

# Modules whose classes are written by simple name
_SHORT_MODULES = frozenset({"builtins", "typing", "typing_extensions", "collections.abc"})

_ROOT_BASES = (object, Generic, BaseModel)


def _is_pydantic_model(cls: type) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    return isinstance(cls, type) and issubclass(cls, BaseModel)


def _class_name(cls: type) -> str:
    if cls.__module__ in _SHORT_MODULES:
        return cls.__name__
    return f"{cls.__module__}.{cls.__name__}"


def format_annotation(annotation: Any) -> str:
    """Render an annotation as a type signature string.

    ``Optional[pkg.Node]`` -> ``pkg.Node | None``; strings (postponed
    annotations) are returned unchanged.
    """
    if isinstance(annotation, str):
        return annotation
    if isinstance(annotation, ForwardRef):
        return annotation.__forward_arg__
    if annotation is None or annotation is type(None):
        return "None"
    if annotation is Ellipsis:
        return "..."
    if isinstance(annotation, TypeVar):
        return annotation.__name__
    if isinstance(annotation, list):
        return f"[{', '.join(format_annotation(arg) for arg in annotation)}]"

    origin = typing.get_origin(annotation)
    if origin is not None:
        args = typing.get_args(annotation)
        if origin is typing.Annotated:
            return format_annotation(args[0])
        if origin is typing.Literal:
            return f"Literal[{', '.join(repr(arg) for arg in args)}]"
        if origin is Union or origin is types.UnionType:
            return " | ".join(format_annotation(arg) for arg in args)
        name = _class_name(origin) if isinstance(origin, type) else str(origin)
        if not args:
            return name
        return f"{name}[{', '.join(format_annotation(arg) for arg in args)}]"
    if isinstance(annotation, type):
        return _class_name(annotation)
    return str(annotation).removeprefix("typing.")


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return typing.get_origin(annotation) is typing.ClassVar or annotation is typing.ClassVar


def _field(name: str, annotation: Any, bindings: Mapping[str, str]) -> FieldDescriptor:
    signature = format_annotation(annotation)
    return FieldDescriptor(name=name, signature=signature, generic=bindings.get(signature, ""))


def _own_fields(cls: type, bindings: Mapping[str, str]) -> list[FieldDescriptor]:
    annotations = inspect.get_annotations(cls)
    if _is_pydantic_model(cls):
        model_fields = cls.model_fields  # type: ignore[attr-defined]
        return [
            _field(name, model_fields[name].annotation, bindings)
            for name in annotations
            if name in model_fields
        ]
    if dataclasses.is_dataclass(cls):
        own = {f.name for f in dataclasses.fields(cls) if f.name in annotations}
        return [_field(name, annotations[name], bindings) for name in annotations if name in own]
    return [
        _field(name, annotation, bindings)
        for name, annotation in annotations.items()
        if not name.startswith("_") and not _is_class_var(annotation)
    ]


def _properties(cls: type) -> list[FieldDescriptor]:
    found = []
    for name, member in vars(cls).items():
        if name.startswith("_") or not isinstance(member, property) or member.fget is None:
            continue
        returns = inspect.get_annotations(member.fget).get("return", "Any")
        kind = AccessorKind.IS_GETTER if name.startswith("is_") else AccessorKind.GETTER
        found.append(FieldDescriptor(name=name, signature=format_annotation(returns), kind=kind))
    return found


def _supertype(cls: type) -> str | None:
    for base in cls.__bases__:
        if base in _ROOT_BASES:
            continue
        return _class_name(base)
    return None


def describe_class(
    cls: type,
    bindings: Mapping[str, str] | None = None,
    *,
    include_properties: bool = True,
) -> ClassDescriptor:
    """Describe a dataclass, Pydantic model or plain annotated class.

    Args:
        cls: The class to describe.
        bindings: Concrete signatures for the class type parameters, e.g.
            ``{"T": "int"}``. Unbound parameters stay open generics.
        include_properties: Also describe public properties as getters.

    Raises:
        DescriptorError: If ``cls`` is not a class.
    """
    if not isinstance(cls, type):
        raise DescriptorError(f"Cannot describe {cls!r}: not a class")
    bindings = dict(bindings or {})
    fields = _own_fields(cls, bindings)
    if include_properties:
        names = {field.name for field in fields}
        fields.extend(p for p in _properties(cls) if p.name not in names)

    parameters = tuple(
        p.__name__ for p in getattr(cls, "__parameters__", ()) if isinstance(p, TypeVar)
    )
    descriptor = ClassDescriptor(
        name=cls.__name__,
        package="" if cls.__module__ in _SHORT_MODULES else cls.__module__,
        generic_parameters=parameters,
        fields=tuple(fields),
        supertype=_supertype(cls),
    )
    logger.debug(
        f"Described {descriptor.qualified_name}: {len(fields)} field(s), "
        f"supertype {descriptor.supertype}"
    )
    return descriptor


def _walk_annotation(annotation: Any) -> Iterator[Any]:
    yield annotation
    if typing.get_origin(annotation) is typing.Literal:
        return
    for arg in typing.get_args(annotation):
        if isinstance(arg, list):
            for item in arg:
                yield from _walk_annotation(item)
        else:
            yield from _walk_annotation(arg)


def enum_types(*classes: type) -> list[str]:
    """Qualified names of the Enum types referenced by the annotations of ``classes``.

    Pass the result as ``value_types`` to the generator so enum fields are
    compared by value without an unresolved-link warning.

    Raises:
        DescriptorError: If an annotation names a type that cannot be resolved.
    """
    found: dict[str, None] = {}
    for cls in classes:
        try:
            hints = typing.get_type_hints(cls)
        except NameError as e:
            raise DescriptorError(f"Cannot resolve the annotations of {cls.__name__}: {e}") from e
        for hint in hints.values():
            for member in _walk_annotation(hint):
                if isinstance(member, type) and issubclass(member, enum.Enum):
                    found.setdefault(_class_name(member))
    return list(found)
