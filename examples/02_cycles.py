"""
Example 02: Linked Types and Cycles

Owner and Pet refer to each other. The same-value plan follows the link once
and compares the back reference by identity, so matching terminates.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from matchkit import MatcherGenerator, describe_class, render_module


@dataclasses.dataclass
class Owner:
    name: str
    pet: Optional[Pet] = None


@dataclasses.dataclass
class Pet:
    name: str
    owner: Optional[Owner] = None


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    result = MatcherGenerator().run([describe_class(Owner), describe_class(Pet)])

    print("=== Equality plan of Owner ===\n")
    plan = result["Owner"].artifact.equality_plan
    for path, entry in plan.walk():
        print(f"   {path}: {entry.strategy.value}")
    print(f"   Degraded to identity: {plan.degraded_fields()}\n")

    print("=== Diagnostics ===\n")
    for diagnostic in result.diagnostics:
        print(f"   {diagnostic}")
    print()

    namespace = {"__name__": "owner_matchers"}
    exec(compile(render_module(result.artifacts), "<generated>", "exec"), namespace)

    owner = Owner("ann")
    owner.pet = Pet("rex", owner)
    matcher = namespace["OwnerMatchers"].owner_with_same_value(owner)
    print(f"Owner matches itself: {matcher.matches(owner)}")


if __name__ == "__main__":
    main()
