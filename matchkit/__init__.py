"""matchkit - fluent matcher and same-value equality generation for Python classes."""

from __future__ import annotations

from matchkit.core.config import GenerationSettings, MatcherConfig
from matchkit.core.descriptor import ClassDescriptor, FieldDescriptor
from matchkit.core.diagnostics import Diagnostic, DiagnosticLog
from matchkit.core.enums import (
    AccessorKind,
    ComparisonStrategy,
    ExpositionMethod,
    FieldKind,
    LinkKind,
    Severity,
)
from matchkit.core.exceptions import (
    ClassificationError,
    CycleDetectedNotice,
    DescriptorError,
    DuplicateClassError,
    GenerationError,
    GenerationFailedError,
    MatchkitError,
    MatchkitWarning,
    RegistryError,
    RegistryStateError,
    TypeSignatureError,
    UnresolvedLinkWarning,
    WeakPlanWarning,
)
from matchkit.core.registry import CapabilityRegistry, MatcherTarget
from matchkit.equality import EqualityPlan, EqualityPlanner, build_equality_plan
from matchkit.fields import classify, resolve, synthesize
from matchkit.generator import (
    ClassResult,
    Factory,
    GenerationResult,
    MatcherArtifact,
    MatcherGenerator,
)
from matchkit.introspect import describe_class, enum_types
from matchkit.render import render_factory, render_module, render_result

__all__ = [
    # Inputs
    "ClassDescriptor",
    "FieldDescriptor",
    "describe_class",
    "enum_types",
    # Configuration
    "MatcherConfig",
    "GenerationSettings",
    # Registry
    "CapabilityRegistry",
    "MatcherTarget",
    # Analysis
    "classify",
    "resolve",
    "synthesize",
    "EqualityPlan",
    "EqualityPlanner",
    "build_equality_plan",
    # Generation
    "MatcherGenerator",
    "MatcherArtifact",
    "ClassResult",
    "GenerationResult",
    "Factory",
    "render_module",
    "render_factory",
    "render_result",
    # Diagnostics
    "Diagnostic",
    "DiagnosticLog",
    # Enums
    "AccessorKind",
    "FieldKind",
    "LinkKind",
    "ComparisonStrategy",
    "Severity",
    "ExpositionMethod",
    # Exceptions
    "MatchkitError",
    "DescriptorError",
    "TypeSignatureError",
    "ClassificationError",
    "RegistryError",
    "DuplicateClassError",
    "RegistryStateError",
    "GenerationError",
    "GenerationFailedError",
    # Warning categories
    "MatchkitWarning",
    "UnresolvedLinkWarning",
    "CycleDetectedNotice",
    "WeakPlanWarning",
]
