"""matchkit exception hierarchy and warning categories.

Errors are raised. Warning categories are never raised by the generator:
they tag the non-fatal diagnostics collected for each class.
"""

from __future__ import annotations


class MatchkitError(Exception):
    """Base exception for all matchkit errors."""


# --- Descriptors ---


class DescriptorError(MatchkitError):
    """Base for malformed class or field descriptors."""


class TypeSignatureError(DescriptorError):
    """Raised when a declared type signature cannot be parsed."""

    def __init__(self, signature: str, detail: str) -> None:
        self.signature = signature
        self.detail = detail
        super().__init__(f"Invalid type signature '{signature}': {detail}")


# --- Classification ---


class ClassificationError(MatchkitError):
    """Raised when a field cannot be classified.

    Fatal for the class being processed, never for the whole run.
    """

    def __init__(self, class_name: str, field_name: str, signature: str, detail: str) -> None:
        self.class_name = class_name
        self.field_name = field_name
        self.signature = signature
        self.detail = detail
        super().__init__(
            f"Cannot classify field '{field_name}' of {class_name} "
            f"(declared as '{signature}'): {detail}"
        )


# --- Registry ---


class RegistryError(MatchkitError):
    """Base for capability registry errors."""


class DuplicateClassError(RegistryError):
    """Raised when the same class is declared twice in one run."""

    def __init__(self, class_name: str) -> None:
        self.class_name = class_name
        super().__init__(f"Class declared twice for generation: '{class_name}'")


class RegistryStateError(RegistryError):
    """Raised when the registry is used in the wrong phase."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} while registry is {current_state}")


# --- Generation ---


class GenerationError(MatchkitError):
    """Base for generation run errors."""


class GenerationFailedError(GenerationError):
    """Raised by GenerationResult.raise_for_errors when a class failed."""

    def __init__(self, failed: dict[str, list[str]]) -> None:
        self.failed = failed
        details = "; ".join(f"{name}: {', '.join(msgs)}" for name, msgs in failed.items())
        super().__init__(f"Generation failed for {len(failed)} class(es): {details}")


# --- Warning categories ---


class MatchkitWarning(UserWarning):
    """Base category for non-fatal generation diagnostics."""


class UnresolvedLinkWarning(MatchkitWarning):
    """A field type has no matcher to link to; scalar equality is used."""


class CycleDetectedNotice(MatchkitWarning):
    """A cycle in the type graph was replaced by an identity comparison."""


class WeakPlanWarning(MatchkitWarning):
    """A same-value plan cannot verify the fields of its supertype."""
