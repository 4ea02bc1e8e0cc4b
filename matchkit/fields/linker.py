"""Type linker - connects field types to other matchers.

Resolution order for a type:
    1. the class being processed itself
    2. a sibling declared for generation in the same run
    3. a pre-existing matcher known to the registry
    4. no link (scalar equality), reported as UnresolvedLinkWarning unless
       the type is a builtin or a declared value type such as an enum

Linking never raises: missing matchers are expected when types come from
other modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from matchkit.core.diagnostics import DiagnosticLog
from matchkit.core.enums import LinkKind
from matchkit.core.exceptions import UnresolvedLinkWarning
from matchkit.core.protocol import Capabilities
from matchkit.core.registry import MatcherTarget, default_target
from matchkit.core.types import TypeRef
from matchkit.fields.classifier import BUILTIN_TYPES
from matchkit.fields.description import (
    CollectionField,
    FieldDescription,
    LinkedObjectField,
    MapField,
    OptionalField,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkPlan:
    """Resolved matcher for a field, or for the members of a container."""

    kind: LinkKind
    target: MatcherTarget | None = None
    element: LinkPlan | None = None
    key: LinkPlan | None = None
    value: LinkPlan | None = None

    @property
    def linked(self) -> bool:
        """True when ``target`` names a matchers class to delegate to."""
        return self.kind in (LinkKind.SIBLING, LinkKind.EXISTING)


NO_LINK = LinkPlan(LinkKind.NONE)


def _resolve_type(
    ref: TypeRef | None,
    is_open: bool,
    description: FieldDescription,
    registry: Capabilities,
    diagnostics: DiagnosticLog | None,
) -> LinkPlan:
    if ref is None or is_open or ref.is_none:
        return NO_LINK
    owner = description.owner
    package, _, simple = owner.rpartition(".")

    if not ref.args and ref.name in (owner, simple):
        target = registry.target_for(owner) or default_target(owner, generated=True)
        return LinkPlan(LinkKind.SIBLING, target)
    if not ref.args and registry.is_being_generated(ref.name, package):
        return LinkPlan(LinkKind.SIBLING, registry.target_for(ref.name, package))
    if not ref.args and registry.has_matcher_for(ref.name, package):
        return LinkPlan(LinkKind.EXISTING, registry.target_for(ref.name, package))

    if ref.args or ref.shape_name in BUILTIN_TYPES or registry.is_value_type(ref.name, package):
        return NO_LINK
    if diagnostics is not None:
        diagnostics.warn(
            UnresolvedLinkWarning,
            f"no matcher found for type '{ref}', falling back to equality",
            description.name,
        )
    return NO_LINK


def resolve(
    description: FieldDescription,
    registry: Capabilities,
    diagnostics: DiagnosticLog | None = None,
) -> LinkPlan:
    """Resolve the link plan of one classified field.

    Collections resolve their element type; maps resolve key and value
    independently. Unresolvable types produce NO_LINK.
    """
    if isinstance(description, CollectionField):
        plan = LinkPlan(
            LinkKind.CONTAINER,
            element=_resolve_type(
                description.element, description.element_open, description, registry, diagnostics
            ),
        )
    elif isinstance(description, MapField):
        plan = LinkPlan(
            LinkKind.CONTAINER,
            key=_resolve_type(
                description.key, description.key_open, description, registry, diagnostics
            ),
            value=_resolve_type(
                description.value, description.value_open, description, registry, diagnostics
            ),
        )
    elif isinstance(description, OptionalField):
        plan = _resolve_type(
            description.wrapped, description.wrapped_open, description, registry, diagnostics
        )
    elif isinstance(description, LinkedObjectField):
        plan = _resolve_type(description.type_ref, False, description, registry, diagnostics)
    else:
        plan = _resolve_type(
            description.type_ref, description.open_generic, description, registry, diagnostics
        )

    logger.debug(f"Linked {description.owner}.{description.name}: {plan.kind.value}")
    return plan
