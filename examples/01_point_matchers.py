"""
Example 01: Point Matchers

This example generates matchers for a dataclass, writes the module to a
temporary package and uses the fluent DSL and the same-value matcher.
"""

import dataclasses
import importlib
import sys
import tempfile
from pathlib import Path

from matchkit import MatcherGenerator, describe_class, render_result


@dataclasses.dataclass
class Point:
    x: int
    y: int


def main():
    descriptor = describe_class(Point)
    result = MatcherGenerator().run([descriptor])
    result.raise_for_errors()

    # Write every generated module below a temporary source root
    root = Path(tempfile.mkdtemp())
    for module, source in render_result(result).items():
        path = root / Path(*module.split(".")).with_suffix(".py")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(source, encoding="utf-8")
    sys.path.insert(0, str(root))

    target = result["Point"].artifact.target
    print("=== Generated Point Matchers ===\n")
    print(f"Module: {target.module}")
    print(f"Methods: {[m.name for m in result['Point'].artifact.methods]}\n")

    generated = importlib.import_module(target.module)
    matchers = generated.PointMatchers

    matcher = matchers.point_with().x_value(1).y_greater_than(0)
    print(f"x == 1 and y > 0 matches Point(1, 2): {matcher.matches(Point(1, 2))}")
    print(f"Mismatch for Point(3, -1): {matcher.describe_mismatch(Point(3, -1))}")

    same = matchers.point_with_same_value(Point(1, 2))
    print(f"Same value as Point(1, 2): {same.matches(Point(1, 2))}")


if __name__ == "__main__":
    main()
