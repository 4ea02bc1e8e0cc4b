"""Cycle-safe equality planner.

Builds the same-value comparison plan of a class. Linked fields recurse into
the plan of their type with the ownership path extended by the current
class; a field whose type is already on the path is compared by identity
instead, which keeps the plan finite.

Only cycles visible in the static type graph are detected. A cycle that
appears at runtime through a subclass instance stored in a field declared
with a supertype is not.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from matchkit.core.descriptor import ClassDescriptor
from matchkit.core.diagnostics import DiagnosticLog
from matchkit.core.enums import ComparisonStrategy
from matchkit.core.exceptions import (
    ClassificationError,
    CycleDetectedNotice,
    MatchkitWarning,
    RegistryError,
    UnresolvedLinkWarning,
)
from matchkit.core.protocol import Capabilities
from matchkit.core.registry import MatcherTarget
from matchkit.equality.plan import EqualityEntry, EqualityPlan, SupertypeCheck
from matchkit.fields.classifier import classify
from matchkit.fields.description import FieldDescription, LinkedObjectField, OptionalField

logger = logging.getLogger(__name__)

# Supertypes that carry no fields worth comparing
ROOT_TYPES = frozenset({"object", "builtins.object", "Generic", "typing.Generic"})


def _split_exclusions(excluded: frozenset[str]) -> tuple[set[str], dict[str, set[str]]]:
    """Split ``{"a", "b.c", "b.d.e"}`` into ``{"a"}`` and ``{"b": {"c", "d.e"}}``."""
    own: set[str] = set()
    below: dict[str, set[str]] = {}
    for path in excluded:
        head, _, rest = path.partition(".")
        if rest:
            below.setdefault(head, set()).add(rest)
        else:
            own.add(head)
    return own, below


class EqualityPlanner:
    """Builds and memoizes equality plans for one generation run.

    Plans are cached by (class, exclusions, ownership path), so the cycle
    check is always evaluated against the path of the traversal asking for
    the plan.

    Args:
        registry: Frozen capability registry of the run.
        diagnostics: Where cycle notices are reported.
        descriptions: Already classified fields, by qualified class name.
    """

    def __init__(
        self,
        registry: Capabilities,
        diagnostics: DiagnosticLog | None = None,
        descriptions: dict[str, Sequence[FieldDescription]] | None = None,
    ) -> None:
        self._registry = registry
        self._diagnostics = diagnostics
        self._descriptions: dict[str, Sequence[FieldDescription]] = dict(descriptions or {})
        self._plans: dict[tuple[str, frozenset[str], tuple[str, ...]], EqualityPlan] = {}

    def descriptions_for(self, descriptor: ClassDescriptor) -> Sequence[FieldDescription]:
        """Classified fields of a class, classified on first use."""
        key = descriptor.qualified_name
        if key not in self._descriptions:
            self._descriptions[key] = tuple(
                classify(field, descriptor, self._registry) for field in descriptor.fields
            )
        return self._descriptions[key]

    def build(
        self,
        descriptor: ClassDescriptor,
        excluded: Iterable[str] = (),
        ownership_path: tuple[str, ...] = (),
    ) -> EqualityPlan:
        """Build the plan of ``descriptor`` as reached through ``ownership_path``.

        Raises:
            ClassificationError: If a field of ``descriptor`` itself cannot be
                classified. Failures in nested classes degrade to equality,
                failures in a generated supertype leave it unverified.
        """
        excluded = frozenset(excluded)
        key = (descriptor.qualified_name, excluded, ownership_path)
        if key in self._plans:
            return self._plans[key]

        descriptions = self.descriptions_for(descriptor)
        own, below = _split_exclusions(excluded)
        names = {description.name for description in descriptions}
        unapplied = [path for path in sorted(excluded) if path.partition(".")[0] not in names]

        path = ownership_path + (descriptor.qualified_name,)
        supertype = self._supertype(descriptor, excluded, path)
        if supertype is not None and supertype.nested is not None:
            inherited = set(supertype.nested.unapplied_exclusions)
            unapplied = [p for p in unapplied if p in inherited]

        entries = []
        for description in descriptions:
            if description.name in own:
                continue
            sub_excluded = frozenset(below.get(description.name, ()))
            entry = self._entry(descriptor, description, sub_excluded, ownership_path, path)
            if entry.nested is not None:
                unapplied.extend(
                    f"{entry.field}.{sub}" for sub in entry.nested.unapplied_exclusions
                )
            elif entry.excluded:
                unapplied.extend(f"{entry.field}.{sub}" for sub in sorted(entry.excluded))
            entries.append(entry)

        if unapplied:
            logger.debug(
                f"Exclusions matching no field of {descriptor.qualified_name}: {unapplied}"
            )

        plan = EqualityPlan(
            class_name=descriptor.qualified_name,
            entries=tuple(entries),
            ownership_path=ownership_path,
            excluded=excluded,
            supertype=supertype,
            unapplied_exclusions=tuple(unapplied),
        )
        self._plans[key] = plan
        return plan

    def _report(
        self, category: type[MatchkitWarning], message: str, field_name: str | None = None
    ) -> None:
        if self._diagnostics is not None:
            self._diagnostics.warn(category, message, field_name)
        else:
            logger.warning(message)

    def _linked_type(
        self, descriptor: ClassDescriptor, description: FieldDescription
    ) -> str | None:
        if isinstance(description, LinkedObjectField):
            return description.target
        if (
            isinstance(description, OptionalField)
            and description.wrapped_linked
            and description.wrapped is not None
        ):
            if description.wrapped.name in (descriptor.name, descriptor.qualified_name):
                return descriptor.qualified_name
            target = self._registry.target_for(description.wrapped.name, descriptor.package)
            return target.type_name if target is not None else None
        return None

    def _entry(
        self,
        descriptor: ClassDescriptor,
        description: FieldDescription,
        excluded: frozenset[str],
        ownership_path: tuple[str, ...],
        path: tuple[str, ...],
    ) -> EqualityEntry:
        name = description.name
        accessor = description.accessor
        optional = isinstance(description, OptionalField)
        linked = self._linked_type(descriptor, description)
        if linked is None:
            return EqualityEntry(
                name, accessor, ComparisonStrategy.VALUE, excluded=excluded, optional=optional
            )

        target = self._registry.target_for(linked)
        if linked in ownership_path:
            if self._diagnostics is not None:
                self._diagnostics.notice(
                    CycleDetectedNotice,
                    f"cycle through {linked} ({' -> '.join(path)}), compared by identity",
                    name,
                )
            return EqualityEntry(
                name,
                accessor,
                ComparisonStrategy.IDENTITY,
                target=target,
                excluded=excluded,
                optional=optional,
            )

        nested_descriptor = self._nested_descriptor(descriptor, linked)
        if nested_descriptor is None:
            return EqualityEntry(
                name,
                accessor,
                ComparisonStrategy.MATCHER,
                target=target,
                excluded=excluded,
                optional=optional,
            )
        try:
            nested = self.build(nested_descriptor, excluded, path)
        except ClassificationError as e:
            self._report(
                UnresolvedLinkWarning,
                f"cannot plan {linked} deeply, falling back to equality: {e}",
                name,
            )
            return EqualityEntry(
                name, accessor, ComparisonStrategy.VALUE, excluded=excluded, optional=optional
            )
        return EqualityEntry(
            name,
            accessor,
            ComparisonStrategy.NESTED,
            nested=nested,
            target=target,
            excluded=excluded,
            optional=optional,
        )

    def _nested_descriptor(
        self, descriptor: ClassDescriptor, type_name: str
    ) -> ClassDescriptor | None:
        """Descriptor of a type generated in this run, or None for external matchers."""
        if type_name == descriptor.qualified_name:
            return descriptor
        if not self._registry.is_being_generated(type_name):
            return None
        try:
            return self._registry.descriptor(type_name)
        except RegistryError:
            return None

    def _supertype(
        self,
        descriptor: ClassDescriptor,
        excluded: frozenset[str],
        path: tuple[str, ...],
    ) -> SupertypeCheck | None:
        supertype = descriptor.supertype
        if not supertype or supertype in ROOT_TYPES:
            return None
        target: MatcherTarget | None = self._registry.target_for(supertype, descriptor.package)
        if target is None:
            logger.debug(f"Supertype {supertype} of {descriptor.qualified_name} cannot be verified")
            return SupertypeCheck(supertype, verified=False)
        if target.generated and target.type_name not in path:
            parent = self._registry.descriptor(target.type_name)
            try:
                nested = self.build(parent, excluded, path)
            except ClassificationError as e:
                self._report(
                    UnresolvedLinkWarning,
                    f"cannot plan supertype {target.type_name}, its fields stay unverified: {e}",
                )
                return SupertypeCheck(target.type_name, verified=False)
            return SupertypeCheck(target.type_name, verified=True, nested=nested, target=target)
        return SupertypeCheck(target.type_name, verified=True, target=target)


def build_equality_plan(
    descriptor: ClassDescriptor,
    excluded: Iterable[str] = (),
    ownership_path: tuple[str, ...] = (),
    *,
    registry: Capabilities,
    diagnostics: DiagnosticLog | None = None,
    descriptions: dict[str, Sequence[FieldDescription]] | None = None,
) -> EqualityPlan:
    """Build the same-value plan of one class with a fresh planner."""
    planner = EqualityPlanner(registry, diagnostics, descriptions)
    return planner.build(descriptor, excluded, ownership_path)
