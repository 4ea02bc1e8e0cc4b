"""
Example 03: Configuration

Per-class options: excluded fields, extensions, exposition methods, weak
plans and the factory of a run. Enum fields are declared as value types.
"""

import dataclasses
import enum
from datetime import date

from pydantic import BaseModel

from matchkit import (
    ExpositionMethod,
    GenerationFailedError,
    GenerationSettings,
    MatcherConfig,
    MatcherGenerator,
    describe_class,
    enum_types,
)


class Entity(BaseModel):
    id: int


class Invoice(Entity):
    number: str
    issued: date
    lines: list[str]


class PaymentMethod(enum.Enum):
    CASH = "cash"
    CARD = "card"


@dataclasses.dataclass
class Receipt:
    total: int
    paid_on: date
    method: PaymentMethod


def main():
    settings = GenerationSettings(max_workers=2, factory_name="billing.BillingMatchers")
    generator = MatcherGenerator(
        settings,
        extensions=["date", "collection"],
        value_types=enum_types(Invoice, Receipt),
    )
    result = generator.run(
        [
            (describe_class(Invoice), MatcherConfig(excluded_fields=["lines"])),
            (
                describe_class(Receipt),
                MatcherConfig(more_methods=[ExpositionMethod.ANY_OF], disable_factory=True),
            ),
        ]
    )

    print("=== Invoice ===\n")
    invoice = result["Invoice"]
    print(f"   Methods: {[m.name for m in invoice.artifact.methods]}")
    print(f"   Same-value plan: {invoice.artifact.equality_plan}")
    for diagnostic in invoice.diagnostics:
        print(f"   {diagnostic}")
    print()

    print("=== Receipt ===\n")
    receipt = result["Receipt"].artifact
    print(f"   Class methods: {[m.name for m in receipt.class_methods]}")
    print(f"   Plan entries: {[e.field for e in receipt.equality_plan.entries]}\n")

    print("=== Factory ===\n")
    print(f"   {result.factory.name}: {[t.type_name for t in result.factory.targets]}\n")

    try:
        result.raise_for_errors()
    except GenerationFailedError as e:
        print(f"Run has errors: {e}")


if __name__ == "__main__":
    main()
