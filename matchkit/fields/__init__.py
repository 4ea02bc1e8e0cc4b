"""Field layer - classify fields, synthesize their DSL methods, link their types."""

from __future__ import annotations

from matchkit.fields.classifier import classify
from matchkit.fields.description import (
    CollectionField,
    FieldDescription,
    LinkedObjectField,
    MapField,
    OptionalField,
    ScalarField,
)
from matchkit.fields.dsl import DSLMethod, DSLMethodBuilder
from matchkit.fields.linker import NO_LINK, LinkPlan, resolve
from matchkit.fields.synthesizer import synthesize

__all__ = [
    "classify",
    "FieldDescription",
    "ScalarField",
    "CollectionField",
    "MapField",
    "OptionalField",
    "LinkedObjectField",
    "DSLMethod",
    "DSLMethodBuilder",
    "synthesize",
    "LinkPlan",
    "NO_LINK",
    "resolve",
]
