"""Generation configuration.

MatcherConfig is the per-class configuration (what an annotation on the
class would carry). GenerationSettings configures a whole run.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from matchkit.core.enums import ExpositionMethod

# Extension names understood by the synthesizer
DATE_EXTENSION = "date"
COLLECTION_EXTENSION = "collection"
JSON_EXTENSION = "json"

# Extensions that must also be requested per class, not only be available
OPT_IN_EXTENSIONS = frozenset({JSON_EXTENSION})


class MatcherConfig(BaseModel):
    """Per-class generation options."""

    model_config = ConfigDict(frozen=True)

    matchers_class_name: str = ""
    matchers_package_name: str = ""
    comments: str = ""
    excluded_fields: tuple[str, ...] = ()
    allow_weak: bool = False
    extensions: tuple[str, ...] = ()
    more_methods: tuple[ExpositionMethod, ...] = ()
    disable_factory: bool = False

    @field_validator("excluded_fields")
    @classmethod
    def _normalize_exclusions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        """Strip whitespace and drop blank paths."""
        return tuple(path.strip() for path in value if path.strip())


class GenerationSettings(BaseModel):
    """Options for one generation run."""

    model_config = ConfigDict(frozen=True)

    max_workers: int = Field(default=1, ge=1)
    factory_name: str = ""
