"""DSL method value object and its builder.

A DSLMethod's template is a Python boolean expression over ``actual`` (the
field value read from the matched instance) and the method parameters.
"""

from __future__ import annotations

from dataclasses import dataclass

from matchkit.core.exceptions import MatchkitError


@dataclass(frozen=True)
class DSLMethod:
    """One builder method of a generated matcher."""

    field: str
    name: str
    parameters: tuple[tuple[str, str], ...]  # (name, type) pairs
    description: str
    template: str

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.parameters)

    @property
    def signature(self) -> str:
        params = ", ".join(f"{name}: {type_}" for name, type_ in self.parameters)
        return f"{self.name}({params})"


class DSLMethodBuilder:
    """Fluent builder for the methods of one field."""

    def __init__(self, field_name: str) -> None:
        self._field = field_name
        self._name = ""
        self._suffix = ""
        self._parameters: list[tuple[str, str]] = []
        self._description = ""

    def suffix(self, suffix: str) -> DSLMethodBuilder:
        """Method name is the field name followed by ``_<suffix>``."""
        self._suffix = suffix
        return self

    def named(self, name: str) -> DSLMethodBuilder:
        """Use a full method name instead of one derived from the field."""
        self._name = name
        return self

    def parameter(self, name: str, type_: str) -> DSLMethodBuilder:
        self._parameters.append((name, type_))
        return self

    def doc(self, description: str) -> DSLMethodBuilder:
        self._description = description
        return self

    def build(self, template: str) -> DSLMethod:
        if not template:
            raise MatchkitError(f"DSL method '{self._name or self._field}' needs a template")
        name = self._name or (f"{self._field}_{self._suffix}" if self._suffix else self._field)
        return DSLMethod(
            field=self._field,
            name=name,
            parameters=tuple(self._parameters),
            description=self._description or f"verify the `{self._field}` field",
            template=template,
        )
