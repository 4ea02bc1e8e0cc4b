"""Capability registry - what matchers exist and which classes are generated.

Two-phase lifecycle:
    1. open:   declare() every class of the run, register_existing() every
               matcher found elsewhere.
    2. frozen: read-only lookups, safe from any number of threads.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from matchkit.core.config import MatcherConfig
from matchkit.core.descriptor import ClassDescriptor, to_snake_case
from matchkit.core.exceptions import DuplicateClassError, RegistryError, RegistryStateError

logger = logging.getLogger(__name__)

_OPEN = "open"
_FROZEN = "frozen"


@dataclass(frozen=True)
class MatcherTarget:
    """Where the matchers of one type live and how they are entered."""

    type_name: str
    matchers_class: str  # qualified name of the matchers class
    entry_point: str
    same_value_entry_point: str
    generated: bool = False

    @property
    def matchers_class_simple_name(self) -> str:
        return self.matchers_class.rsplit(".", 1)[-1]

    @property
    def matchers_package(self) -> str:
        head, _, _ = self.matchers_class.rpartition(".")
        return head

    @property
    def builder_class(self) -> str:
        """Simple name of the generated matcher builder, e.g. ``NodeMatcher``."""
        return f"{_simple_name(self.type_name)}Matcher"

    @property
    def module(self) -> str:
        """Module holding the matchers class, e.g. ``pkg.node_matchers``."""
        module = to_snake_case(self.matchers_class_simple_name)
        return f"{self.matchers_package}.{module}" if self.matchers_package else module

    def reference(self, method: str) -> str:
        """Expression naming one entry method, e.g. ``NodeMatchers.node_with``."""
        return f"{self.matchers_class_simple_name}.{method}"


def _simple_name(type_name: str) -> str:
    return type_name.rsplit(".", 1)[-1]


def default_target(
    type_name: str,
    matchers_class_name: str = "",
    matchers_package_name: str = "",
    *,
    generated: bool = False,
) -> MatcherTarget:
    """Build a target following the naming convention.

    ``pkg.Node`` -> ``pkg.NodeMatchers`` with ``node_with`` and
    ``node_with_same_value`` entry points.
    """
    package, _, simple = type_name.rpartition(".")
    class_name = matchers_class_name or f"{simple}Matchers"
    package = matchers_package_name or package
    snake = to_snake_case(simple)
    return MatcherTarget(
        type_name=type_name,
        matchers_class=f"{package}.{class_name}" if package else class_name,
        entry_point=f"{snake}_with",
        same_value_entry_point=f"{snake}_with_same_value",
        generated=generated,
    )


class CapabilityRegistry:
    """Registry of generated and pre-existing matchers plus extensions.

    Args:
        extensions: Names of the optional matcher extensions available.
        existing: Type names that already have a matcher following the
            naming convention, optionally mapped to the matchers class name.
        value_types: Type names compared by plain equality, such as enums.
            Fields of these types are never linked and never reported.

    Raises:
        DuplicateClassError: If a class is declared twice.
        RegistryStateError: If declaration happens after freeze(), or a
            lookup happens before it.
    """

    def __init__(
        self,
        extensions: Iterable[str] = (),
        existing: Iterable[str] | Mapping[str, str] = (),
        value_types: Iterable[str] = (),
    ) -> None:
        self._state = _OPEN
        self._extensions = frozenset(extensions)
        self._value_types = frozenset(value_types)
        self._value_simple_names = frozenset(_simple_name(name) for name in self._value_types)
        self._descriptors: dict[str, ClassDescriptor] = {}
        self._configs: dict[str, MatcherConfig] = {}
        self._generated: dict[str, MatcherTarget] = {}
        self._existing: dict[str, MatcherTarget] = {}
        self._by_simple_name: dict[str, list[str]] = {}
        if isinstance(existing, Mapping):
            for type_name, matchers_class in existing.items():
                self.register_existing(type_name, matchers_class)
        else:
            for type_name in existing:
                self.register_existing(type_name)

    # --- phase 1 ---

    def _require(self, state: str, action: str) -> None:
        if self._state != state:
            raise RegistryStateError(self._state, action)

    def _index(self, type_name: str) -> None:
        names = self._by_simple_name.setdefault(_simple_name(type_name), [])
        if type_name not in names:
            names.append(type_name)

    def declare(
        self,
        descriptor: ClassDescriptor,
        config: MatcherConfig | None = None,
    ) -> MatcherTarget:
        """Declare a class whose matchers are generated in this run."""
        self._require(_OPEN, "declare a class")
        key = descriptor.qualified_name
        if key in self._descriptors:
            raise DuplicateClassError(key)
        config = config or MatcherConfig()
        target = default_target(
            key,
            config.matchers_class_name,
            config.matchers_package_name,
            generated=True,
        )
        self._descriptors[key] = descriptor
        self._configs[key] = config
        self._generated[key] = target
        self._index(key)
        logger.debug(f"Declared {key} -> {target.matchers_class}")
        return target

    def register_existing(self, type_name: str, matchers_class: str = "") -> MatcherTarget:
        """Record a matcher that exists outside this run (compiled or hand-written)."""
        self._require(_OPEN, "register an existing matcher")
        if matchers_class:
            package, _, class_name = matchers_class.rpartition(".")
            target = default_target(type_name, class_name, package)
        else:
            target = default_target(type_name)
        self._existing[type_name] = target
        self._index(type_name)
        return target

    def freeze(self) -> None:
        """End phase 1. Lookups are allowed from here on, declarations are not."""
        if self._state == _FROZEN:
            return
        self._descriptors = MappingProxyType(self._descriptors)  # type: ignore[assignment]
        self._configs = MappingProxyType(self._configs)  # type: ignore[assignment]
        self._generated = MappingProxyType(self._generated)  # type: ignore[assignment]
        self._existing = MappingProxyType(self._existing)  # type: ignore[assignment]
        self._by_simple_name = MappingProxyType(  # type: ignore[assignment]
            {name: tuple(keys) for name, keys in self._by_simple_name.items()}
        )
        self._state = _FROZEN
        logger.info(
            f"Registry frozen: {len(self._generated)} generated, "
            f"{len(self._existing)} existing matcher(s)"
        )

    @property
    def frozen(self) -> bool:
        return self._state == _FROZEN

    # --- phase 2 ---

    def qualify(self, type_name: str, context_package: str = "") -> str | None:
        """Resolve a possibly unqualified type name to a known qualified name.

        Tries the exact name, then the name inside ``context_package``, then
        a simple name that is unique across the registry.
        """
        self._require(_FROZEN, "look up a type")
        candidates = [type_name]
        if context_package and "." not in type_name:
            candidates.append(f"{context_package}.{type_name}")
        for candidate in candidates:
            if candidate in self._generated or candidate in self._existing:
                return candidate
        matches = self._by_simple_name.get(type_name, ())
        if "." not in type_name and len(matches) == 1:
            return matches[0]
        return None

    def is_being_generated(self, type_name: str, context_package: str = "") -> bool:
        key = self.qualify(type_name, context_package)
        return key is not None and key in self._generated

    def has_matcher_for(self, type_name: str, context_package: str = "") -> bool:
        key = self.qualify(type_name, context_package)
        return key is not None and key in self._existing

    def target_for(self, type_name: str, context_package: str = "") -> MatcherTarget | None:
        key = self.qualify(type_name, context_package)
        if key is None:
            return None
        return self._generated.get(key) or self._existing.get(key)

    def has_extension(self, name: str) -> bool:
        return name in self._extensions

    def is_value_type(self, type_name: str, context_package: str = "") -> bool:
        if type_name in self._value_types:
            return True
        if context_package and f"{context_package}.{type_name}" in self._value_types:
            return True
        return "." not in type_name and type_name in self._value_simple_names

    def descriptor(self, qualified_name: str) -> ClassDescriptor:
        """Descriptor of a class declared in this run."""
        self._require(_FROZEN, "look up a descriptor")
        try:
            return self._descriptors[qualified_name]
        except KeyError:
            raise RegistryError(f"Class not declared in this run: '{qualified_name}'") from None

    def config(self, qualified_name: str) -> MatcherConfig:
        self._require(_FROZEN, "look up a configuration")
        try:
            return self._configs[qualified_name]
        except KeyError:
            raise RegistryError(f"Class not declared in this run: '{qualified_name}'") from None

    @property
    def generated_targets(self) -> list[MatcherTarget]:
        """Targets generated in this run, in declaration order."""
        return list(self._generated.values())

    def __len__(self) -> int:
        """Number of classes declared for generation."""
        return len(self._generated)
