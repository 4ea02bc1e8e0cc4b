"""Python source rendering of generated matchers.

A thin assembler over MatcherArtifacts. Every artifact becomes two classes:

    <Type>Matcher     builder with one method per DSL method, each storing a
                      predicate over the field value
    <Type>Matchers    static entry points (``<type>_with``,
                      ``<type>_with_same_value`` and exposition methods)

Same-value equality plans become module-level functions, one per plan node.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from matchkit.core.descriptor import to_snake_case
from matchkit.core.enums import AccessorKind, ComparisonStrategy
from matchkit.core.registry import MatcherTarget, default_target
from matchkit.equality.plan import EqualityEntry, EqualityPlan
from matchkit.fields.dsl import DSLMethod
from matchkit.generator import Factory, GenerationResult, MatcherArtifact

logger = logging.getLogger(__name__)

INDENT = "    "

_JSON_CALL = "_parses_as_json("

_HELPERS = '''
def _equal_to(expected: Any) -> Callable[[Any], bool]:
    return lambda actual: actual == expected


def _same_instance(expected: Any) -> Callable[[Any], bool]:
    return lambda actual: actual is expected


def _nested(expected: Any, build: Callable[[Any], Any]) -> Callable[[Any], bool]:
    if expected is None:
        return lambda actual: actual is None
    return build(expected).matches
'''

_JSON_HELPER = '''
def _parses_as_json(text: Any) -> bool:
    try:
        json.loads(text)
    except (TypeError, ValueError):
        return False
    return True
'''

_BUILDER_BODY = '''
    def __init__(self) -> None:
        self._checks: dict[str, Callable[[Any], bool]] = {}
        self._predicates: list[Callable[[Any], bool]] = []

    def _read(self, item: Any, field: str) -> Any:
        accessor, call = self._ACCESSORS[field]
        value = getattr(item, accessor)
        return value() if call else value

    def _check(self, field: str, predicate: Callable[[Any], bool]) -> {builder}:
        self._checks[field] = predicate
        return self

    def satisfies(self, predicate: Callable[[Any], bool]) -> {builder}:
        """Add a predicate over the whole instance."""
        self._predicates.append(predicate)
        return self

    def mismatches(self, item: Any) -> list[str]:
        """Fields whose predicate fails, ``<instance>`` for whole-instance predicates."""
        failed = [
            field for field, check in self._checks.items() if not check(self._read(item, field))
        ]
        if not all(predicate(item) for predicate in self._predicates):
            failed.append("<instance>")
        return failed

    def matches(self, item: Any) -> bool:
        return item is not None and not self.mismatches(item)

    __call__ = matches

    def describe_mismatch(self, item: Any) -> str:
        if item is None:
            return "was None"
        failed = self.mismatches(item)
        return "matched" if not failed else "mismatch on " + ", ".join(failed)
'''


def _docstring(text: str, indent: str) -> str:
    text = text.strip()
    if not text:
        return ""
    text = text[0].upper() + text[1:]
    if not text.endswith("."):
        text += "."
    return f'{indent}"""{text}"""\n'


def _parameters(method: DSLMethod) -> str:
    return ", ".join(f"{name}: {type_}" for name, type_ in method.parameters)


class _ModuleWriter:
    """Accumulates the pieces of one generated module."""

    def __init__(self, artifacts: Sequence[MatcherArtifact], comments: str = "") -> None:
        self._artifacts = list(artifacts)
        self._comments = comments
        self._local = {artifact.target.matchers_class for artifact in self._artifacts}
        self._imports: dict[str, set[str]] = {}
        self._functions: dict[int, str] = {}
        self._function_sources: list[str] = []
        self._counter = 0

    # --- imports ---

    def _require(self, target: MatcherTarget, name: str) -> str:
        """Name usable in this module for a class living with ``target``."""
        if target.matchers_class not in self._local:
            self._imports.setdefault(target.module, set()).add(name)
        return name

    def _require_link_targets(self, artifact: MatcherArtifact) -> None:
        for link in artifact.links.values():
            for plan in (link, link.element, link.value):
                if plan is not None and plan.target is not None:
                    if plan.target.matchers_class_simple_name in self._templates(artifact):
                        self._require(plan.target, plan.target.matchers_class_simple_name)

    @staticmethod
    def _templates(artifact: MatcherArtifact) -> str:
        return "\n".join(method.template for method in artifact.methods)

    # --- builder class ---

    def _builder(self, artifact: MatcherArtifact) -> str:
        descriptor = artifact.descriptor
        builder = artifact.target.builder_class
        lines = [f"class {builder}:\n"]
        doc = f"matcher of {descriptor.qualified_name}, one predicate per field"
        lines.append(_docstring(doc, INDENT))
        lines.append("\n")
        if descriptor.fields:
            lines.append(f"{INDENT}_ACCESSORS = {{\n")
            for field in descriptor.fields:
                call = field.kind is not AccessorKind.FIELD and field.accessor_name != field.name
                lines.append(f'{INDENT * 2}"{field.name}": ("{field.accessor_name}", {call}),\n')
            lines.append(f"{INDENT}}}\n")
        else:
            lines.append(f"{INDENT}_ACCESSORS: dict[str, tuple[str, bool]] = {{}}\n")
        lines.append(_BUILDER_BODY.replace("{builder}", builder))
        for method in artifact.methods:
            lines.append("\n")
            lines.append(self._field_method(builder, method))
        return "".join(lines)

    @staticmethod
    def _field_method(builder: str, method: DSLMethod) -> str:
        out = f"{INDENT}def {method.name}(self, {_parameters(method)}) -> {builder}:\n"
        if not method.parameters:
            out = f"{INDENT}def {method.name}(self) -> {builder}:\n"
        out += _docstring(method.description, INDENT * 2)
        if method.name == method.field and method.template == "matcher(actual)":
            out += f'{INDENT * 2}return self._check("{method.field}", matcher)\n'
        else:
            out += (
                f'{INDENT * 2}return self._check("{method.field}", '
                f"lambda actual: {method.template})\n"
            )
        return out

    # --- entry points ---

    def _matchers(self, artifact: MatcherArtifact) -> str:
        target = artifact.target
        builder = target.builder_class
        type_name = artifact.descriptor.qualified_name
        lines = [f"class {target.matchers_class_simple_name}:\n"]
        lines.append(_docstring(f"entry points of the {type_name} matchers", INDENT))
        lines.append(
            f"\n{INDENT}@staticmethod\n"
            f"{INDENT}def {target.entry_point}() -> {builder}:\n"
            + _docstring(f"start a matcher of {type_name} with no constraint", INDENT * 2)
            + f"{INDENT * 2}return {builder}()\n"
        )
        if artifact.equality_plan is not None:
            function = self._plan_function(artifact.equality_plan, target)
            entry = target.same_value_entry_point
            lines.append(
                f"\n{INDENT}@staticmethod\n"
                f"{INDENT}def {entry}(other: Any) -> {builder}:\n"
                + _docstring("match instances with the same field values as ``other``", INDENT * 2)
                + f"{INDENT * 2}if other is None:\n"
                + f'{INDENT * 3}raise ValueError("{entry} needs a reference instance")\n'
                + f"{INDENT * 2}return {function}(other)\n"
            )
        for method in artifact.class_methods:
            lines.append(
                f"\n{INDENT}@staticmethod\n"
                f"{INDENT}def {method.name}({_parameters(method)}) -> Callable[[Any], bool]:\n"
                + _docstring(f"match {method.description}", INDENT * 2)
                + f"{INDENT * 2}return lambda actual: {method.template}\n"
            )
        return "".join(lines)

    # --- same-value plans ---

    def _builder_for(self, plan: EqualityPlan, target: MatcherTarget | None) -> str:
        target = target or default_target(plan.class_name, generated=True)
        return self._require(target, target.builder_class)

    def _plan_function(self, plan: EqualityPlan, target: MatcherTarget | None) -> str:
        """Name of the function building ``plan``, rendering it on first use."""
        if id(plan) in self._functions:
            return self._functions[id(plan)]
        self._counter += 1
        simple = plan.class_name.rsplit(".", 1)[-1]
        name = f"_same_value_{to_snake_case(simple)}_{self._counter}"
        self._functions[id(plan)] = name

        builder = self._builder_for(plan, target)
        body = [f"def {name}(other: Any) -> {builder}:\n", f"{INDENT}matcher = {builder}()\n"]
        supertype = plan.supertype
        if supertype is not None and supertype.verified and supertype.target is not None:
            if supertype.nested is not None:
                check = f"{self._plan_function(supertype.nested, supertype.target)}(other)"
            else:
                matchers = self._require(
                    supertype.target, supertype.target.matchers_class_simple_name
                )
                check = f"{matchers}.{supertype.target.same_value_entry_point}(other)"
            body.append(f"{INDENT}matcher.satisfies({check}.matches)\n")
        for entry in plan.entries:
            body.append(f"{INDENT}matcher._check({self._entry_check(entry)})\n")
        body.append(f"{INDENT}return matcher\n")
        self._function_sources.append("".join(body))
        return name

    def _entry_check(self, entry: EqualityEntry) -> str:
        expected = f'matcher._read(other, "{entry.field}")'
        if entry.strategy is ComparisonStrategy.IDENTITY:
            predicate = f"_same_instance({expected})"
        elif entry.strategy is ComparisonStrategy.NESTED and entry.nested is not None:
            predicate = f"_nested({expected}, {self._plan_function(entry.nested, entry.target)})"
        elif entry.strategy is ComparisonStrategy.MATCHER and entry.target is not None:
            matchers = self._require(entry.target, entry.target.matchers_class_simple_name)
            predicate = f"_nested({expected}, {matchers}.{entry.target.same_value_entry_point})"
        else:
            predicate = f"_equal_to({expected})"
        return f'"{entry.field}", {predicate}'

    # --- assembly ---

    def render(self) -> str:
        classes = []
        for artifact in self._artifacts:
            self._require_link_targets(artifact)
            classes.append(self._builder(artifact))
            classes.append(self._matchers(artifact))

        names = ", ".join(a.descriptor.qualified_name for a in self._artifacts) or "nothing"
        header = f"Matchers for {names}.\n\nGenerated by matchkit. Do not edit."
        if self._comments:
            header = f"{header}\n\n{self._comments.strip()}"
        uses_json = any(
            _JSON_CALL in method.template
            for artifact in self._artifacts
            for method in artifact.methods
        )

        out = [f'"""{header}\n"""\n\n', "from __future__ import annotations\n\n"]
        if uses_json:
            out.append("import json\n")
        out.append("from typing import Any, Callable\n")
        if self._imports:
            out.append("\n")
            for module in sorted(self._imports):
                out.append(f"from {module} import {', '.join(sorted(self._imports[module]))}\n")
        out.append(f"\n{_HELPERS}")
        if uses_json:
            out.append(f"\n{_JSON_HELPER}")
        for source in classes + self._function_sources:
            out.append(f"\n\n{source}")
        return "".join(out)


def render_module(artifacts: Iterable[MatcherArtifact], comments: str = "") -> str:
    """Render the source of one module holding the matchers of ``artifacts``.

    Matchers of types outside ``artifacts`` are imported from the module
    named by their target (``<matchers package>.<snake matchers class>``).
    """
    artifacts = list(artifacts)
    source = _ModuleWriter(artifacts, comments).render()
    logger.debug(f"Rendered {len(artifacts)} matcher(s), {len(source)} characters")
    return source


def render_factory(factory: Factory) -> str:
    """Render the factory class exposing every entry point of a run."""
    _, _, class_name = factory.name.rpartition(".")
    imports: dict[str, set[str]] = {}
    lines = []
    for target in factory.targets:
        matchers = target.matchers_class_simple_name
        imports.setdefault(target.module, set()).add(matchers)
        entries = [target.entry_point]
        if target.type_name not in factory.without_same_value:
            entries.append(target.same_value_entry_point)
        for entry in entries:
            lines.append(f"{INDENT}{entry} = staticmethod({matchers}.{entry})\n")

    out = [
        '"""Entry points of every generated matcher.\n\n',
        'Generated by matchkit. Do not edit.\n"""\n\n',
    ]
    out.append("from __future__ import annotations\n")
    if imports:
        out.append("\n")
        for module in sorted(imports):
            out.append(f"from {module} import {', '.join(sorted(imports[module]))}\n")
    out.append(f"\n\nclass {class_name}:\n")
    out.append(_docstring("generated matchers of the run", INDENT))
    if lines:
        out.append("\n")
        out.extend(lines)
    return "".join(out)


def render_result(result: GenerationResult) -> dict[str, str]:
    """Source of every module of a run, by module name.

    One module per generated class, plus the factory module when the run
    has one.
    """
    sources = {
        artifact.target.module: render_module([artifact], artifact.config.comments)
        for artifact in result.artifacts
    }
    if result.factory is not None:
        package, _, class_name = result.factory.name.rpartition(".")
        module = to_snake_case(class_name)
        sources[f"{package}.{module}" if package else module] = render_factory(result.factory)
    return sources
