"""Generation run - declares every class, then classifies, links and plans.

Phase 1 declares all classes in the CapabilityRegistry and freezes it.
Phase 2 processes each class independently, possibly on a thread pool: the
only shared state is the frozen registry.

A classification error is fatal for its class only; sibling classes still
complete and the error is reported in that class's diagnostics.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from matchkit.core.config import (
    COLLECTION_EXTENSION,
    DATE_EXTENSION,
    JSON_EXTENSION,
    OPT_IN_EXTENSIONS,
    GenerationSettings,
    MatcherConfig,
)
from matchkit.core.descriptor import ClassDescriptor
from matchkit.core.diagnostics import Diagnostic, DiagnosticLog
from matchkit.core.enums import ExpositionMethod, Severity
from matchkit.core.exceptions import (
    ClassificationError,
    GenerationFailedError,
    RegistryError,
    WeakPlanWarning,
)
from matchkit.core.registry import CapabilityRegistry, MatcherTarget
from matchkit.equality.plan import EqualityPlan
from matchkit.equality.planner import EqualityPlanner
from matchkit.fields.classifier import classify
from matchkit.fields.description import FieldDescription
from matchkit.fields.dsl import DSLMethod, DSLMethodBuilder
from matchkit.fields.linker import LinkPlan, resolve
from matchkit.fields.synthesizer import synthesize

logger = logging.getLogger(__name__)

EXTENSIONS = (DATE_EXTENSION, COLLECTION_EXTENSION, JSON_EXTENSION)

_EXPOSITION = {
    ExpositionMethod.CONTAINS: (
        "contains",
        "contain elements matching the predicates, in order",
        "len(actual) == len(matchers) and "
        "all(matcher(item) for matcher, item in zip(matchers, actual))",
    ),
    ExpositionMethod.HAS_ITEMS: (
        "has_items",
        "have, for every predicate, at least one matching element",
        "all(any(matcher(item) for item in actual) for matcher in matchers)",
    ),
    ExpositionMethod.ANY_OF: (
        "any_of",
        "match at least one of the predicates",
        "any(matcher(actual) for matcher in matchers)",
    ),
    ExpositionMethod.NONE_OF: (
        "none_of",
        "match none of the predicates",
        "not any(matcher(actual) for matcher in matchers)",
    ),
}


@dataclass(frozen=True)
class MatcherArtifact:
    """Everything generated for one class, ready for rendering."""

    descriptor: ClassDescriptor
    config: MatcherConfig
    target: MatcherTarget
    descriptions: tuple[FieldDescription, ...]
    links: dict[str, LinkPlan]
    methods: tuple[DSLMethod, ...]
    class_methods: tuple[DSLMethod, ...] = ()
    equality_plan: EqualityPlan | None = None
    extensions: frozenset[str] = frozenset()

    def methods_for(self, field_name: str) -> tuple[DSLMethod, ...]:
        return tuple(method for method in self.methods if method.field == field_name)


@dataclass(frozen=True)
class ClassResult:
    """Outcome of phase 2 for one class."""

    class_name: str
    artifact: MatcherArtifact | None
    diagnostics: tuple[Diagnostic, ...] = ()

    @property
    def failed(self) -> bool:
        return self.artifact is None

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]


@dataclass(frozen=True)
class Factory:
    """Single entry point listing the matchers of a run."""

    name: str
    targets: tuple[MatcherTarget, ...]
    without_same_value: frozenset[str] = frozenset()  # types whose plan was not generated


@dataclass
class GenerationResult:
    """Results of a run, in input order."""

    results: list[ClassResult] = field(default_factory=list)
    factory: Factory | None = None

    def __getitem__(self, class_name: str) -> ClassResult:
        for result in self.results:
            if class_name in (result.class_name, result.class_name.rsplit(".", 1)[-1]):
                return result
        raise KeyError(class_name)

    @property
    def artifacts(self) -> list[MatcherArtifact]:
        return [result.artifact for result in self.results if result.artifact is not None]

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for result in self.results for d in result.diagnostics]

    def raise_for_errors(self) -> None:
        """Raise GenerationFailedError if any class reported an error."""
        failed = {
            result.class_name: [d.message for d in result.errors]
            for result in self.results
            if result.errors
        }
        if failed:
            raise GenerationFailedError(failed)


def active_extensions(config: MatcherConfig, registry: CapabilityRegistry) -> frozenset[str]:
    """Extensions available in the registry, opt-in ones only when requested."""
    return frozenset(
        name
        for name in EXTENSIONS
        if registry.has_extension(name)
        and (name not in OPT_IN_EXTENSIONS or name in config.extensions)
    )


def exposition_methods(
    descriptor: ClassDescriptor, config: MatcherConfig
) -> tuple[DSLMethod, ...]:
    """Class-level predicates requested through ``more_methods``."""
    methods = []
    for kind in dict.fromkeys(config.more_methods):
        prefix, wording, template = _EXPOSITION[kind]
        methods.append(
            DSLMethodBuilder("")
            .named(f"{prefix}_{descriptor.snake_name}")
            .parameter("*matchers", f"Callable[[{descriptor.name}], bool]")
            .doc(f"values that {wording}")
            .build(template)
        )
    return tuple(methods)


class MatcherGenerator:
    """Runs the two-phase generation over a set of classes.

    Args:
        settings: Run options (thread count, factory name).
        extensions: Optional matcher extensions available to generated code.
        existing: Types that already have matchers outside this run,
            optionally mapped to their matchers class.
        value_types: Types compared by plain equality without a matcher,
            e.g. the result of ``introspect.enum_types``.
    """

    def __init__(
        self,
        settings: GenerationSettings | None = None,
        *,
        extensions: Iterable[str] = (),
        existing: Iterable[str] | dict[str, str] = (),
        value_types: Iterable[str] = (),
    ) -> None:
        self.settings = settings or GenerationSettings()
        self._extensions = tuple(extensions)
        self._existing = existing if isinstance(existing, dict) else tuple(existing)
        self._value_types = tuple(value_types)

    def declare(
        self,
        classes: Iterable[ClassDescriptor | tuple[ClassDescriptor, MatcherConfig]],
    ) -> tuple[CapabilityRegistry, list[ClassDescriptor]]:
        """Phase 1: declare every class and freeze the registry."""
        registry = CapabilityRegistry(self._extensions, self._existing, self._value_types)
        descriptors = []
        for item in classes:
            descriptor, config = item if isinstance(item, tuple) else (item, None)
            registry.declare(descriptor, config)
            descriptors.append(descriptor)
        registry.freeze()
        return registry, descriptors

    def run(
        self,
        classes: Iterable[ClassDescriptor | tuple[ClassDescriptor, MatcherConfig]],
    ) -> GenerationResult:
        """Generate matchers for every class.

        Raises:
            DuplicateClassError: If a class is given twice.
        """
        registry, descriptors = self.declare(classes)

        if self.settings.max_workers > 1 and len(descriptors) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as pool:
                results = list(pool.map(lambda d: self.process(d, registry), descriptors))
        else:
            results = [self.process(descriptor, registry) for descriptor in descriptors]

        result = GenerationResult(results, self._factory(results))
        failed = sum(1 for r in results if r.failed)
        logger.info(f"Generated matchers for {len(results) - failed} class(es), {failed} failed")
        return result

    def process(self, descriptor: ClassDescriptor, registry: CapabilityRegistry) -> ClassResult:
        """Phase 2 for one class: classify, link, synthesize and plan."""
        key = descriptor.qualified_name
        config = registry.config(key)
        target = registry.target_for(key)
        if target is None:
            raise RegistryError(f"Class not declared in this run: '{key}'")
        diagnostics = DiagnosticLog(key)

        try:
            descriptions = tuple(classify(f, descriptor, registry) for f in descriptor.fields)
        except ClassificationError as e:
            diagnostics.error(e, e.field_name)
            return ClassResult(key, None, diagnostics.entries)

        extensions = active_extensions(config, registry)
        links = {d.name: resolve(d, registry, diagnostics) for d in descriptions}
        methods = tuple(
            method
            for description in descriptions
            for method in synthesize(description, links[description.name], extensions)
        )

        planner = EqualityPlanner(registry, diagnostics, {key: descriptions})
        plan: EqualityPlan | None = planner.build(descriptor, config.excluded_fields)
        if plan.weak:
            plan = self._weak_plan(plan, config, diagnostics)

        artifact = MatcherArtifact(
            descriptor=descriptor,
            config=config,
            target=target,
            descriptions=descriptions,
            links=links,
            methods=methods,
            class_methods=exposition_methods(descriptor, config),
            equality_plan=plan,
            extensions=extensions,
        )
        return ClassResult(key, artifact, diagnostics.entries)

    def _weak_plan(
        self,
        plan: EqualityPlan,
        config: MatcherConfig,
        diagnostics: DiagnosticLog,
    ) -> EqualityPlan | None:
        unverified = "a nested supertype"
        if plan.supertype is not None and not plan.supertype.verified:
            unverified = plan.supertype.type_name
        message = f"same-value matcher cannot verify the fields of {unverified}"
        if config.allow_weak:
            diagnostics.warn(WeakPlanWarning, message)
            return plan
        diagnostics.report(
            Severity.ERROR,
            WeakPlanWarning,
            f"{message}; not generated (set allow_weak to generate it anyway)",
        )
        return None

    def _factory(self, results: list[ClassResult]) -> Factory | None:
        if not self.settings.factory_name:
            return None
        artifacts = [
            result.artifact
            for result in results
            if result.artifact is not None and not result.artifact.config.disable_factory
        ]
        return Factory(
            self.settings.factory_name,
            tuple(artifact.target for artifact in artifacts),
            frozenset(a.target.type_name for a in artifacts if a.equality_plan is None),
        )
