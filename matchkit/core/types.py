"""Type-signature parsing.

Declared types arrive as strings in annotation form, e.g. ``list[str]``,
``typing.Dict[str, Node]``, ``Optional[int]`` or ``Node | None``.
They are parsed into an immutable ``TypeRef`` tree that the classifier
inspects by shape.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator

from matchkit.core.exceptions import TypeSignatureError

_TOKEN = re.compile(
    r"""\s*(?:
        (?P<ellipsis>\.\.\.)
      | (?P<name>[A-Za-z_]\w*(?:\s*\.\s*[A-Za-z_]\w*)*)
      | (?P<number>\d[\w.]*)
      | (?P<quote>['"])
      | (?P<punct>[\[\],|])
      | (?P<other>[^\s\w\[\],|'"])
    )""",
    re.VERBOSE,
)

# Module prefixes that do not change the meaning of a shape name
_SHAPE_PREFIXES = ("typing.", "typing_extensions.", "collections.abc.", "collections.")

UNION = "Union"
PEP604_UNION = "|"
NONE = "None"
ELLIPSIS = "..."
ARG_LIST = "[]"

# Shapes whose arguments are values rather than types
LITERAL = "Literal"
ANNOTATED = "Annotated"


@dataclass(frozen=True)
class TypeRef:
    """A parsed type: a (possibly dotted) name with generic arguments."""

    name: str
    args: tuple[TypeRef, ...] = ()

    @property
    def shape_name(self) -> str:
        """Name with typing/collections prefixes removed."""
        for prefix in _SHAPE_PREFIXES:
            if self.name.startswith(prefix):
                return self.name[len(prefix) :]
        return self.name

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def is_none(self) -> bool:
        return self.name == NONE and not self.args

    @property
    def is_union(self) -> bool:
        return self.shape_name in (UNION, PEP604_UNION)

    def walk(self) -> Iterator[TypeRef]:
        """Yield this reference and every nested argument, depth first."""
        yield self
        for arg in self.args:
            yield from arg.walk()

    def __str__(self) -> str:
        if self.name == PEP604_UNION:
            return " | ".join(str(arg) for arg in self.args)
        if self.name == ARG_LIST:
            return "[" + ", ".join(str(arg) for arg in self.args) + "]"
        if not self.args:
            return self.name
        return f"{self.name}[{', '.join(str(arg) for arg in self.args)}]"


class _Parser:
    """Recursive-descent parser over the token stream of one signature."""

    def __init__(self, signature: str) -> None:
        self._signature = signature
        self._tokens = self._tokenize(signature)
        self._pos = 0

    def _tokenize(self, text: str) -> list[tuple[str, str]]:
        tokens: list[tuple[str, str]] = []
        i = 0
        n = len(text)
        while i < n:
            if text[i:].strip() == "":
                break
            match = _TOKEN.match(text, i)
            if match is None:
                raise TypeSignatureError(
                    self._signature, f"unexpected character {text[i:].lstrip()[0]!r}"
                )
            kind = match.lastgroup or ""
            value = match.group(kind)
            if kind == "quote":
                end = text.find(value, match.end())
                if end < 0:
                    raise TypeSignatureError(self._signature, "unterminated quoted reference")
                tokens.append(("forward", text[match.end() : end]))
                i = end + 1
                continue
            if kind == "name":
                value = re.sub(r"\s+", "", value)
            tokens.append((kind, value))
            i = match.end()
        return tokens

    def _peek(self) -> tuple[str, str] | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def _next(self, what: str) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            raise TypeSignatureError(self._signature, f"expected {what}, got end of input")
        self._pos += 1
        return token

    def _expect(self, punct: str) -> None:
        kind, value = self._next(f"'{punct}'")
        if kind != "punct" or value != punct:
            raise TypeSignatureError(self._signature, f"expected '{punct}', got '{value}'")

    def parse(self) -> TypeRef:
        if not self._tokens:
            raise TypeSignatureError(self._signature, "empty signature")
        ref = self._union()
        if self._peek() is not None:
            raise TypeSignatureError(
                self._signature, f"unexpected trailing '{self._tokens[self._pos][1]}'"
            )
        return ref

    def _union(self) -> TypeRef:
        members = [self._atom()]
        while self._peek() == ("punct", PEP604_UNION):
            self._pos += 1
            members.append(self._atom())
        if len(members) == 1:
            return members[0]
        return TypeRef(PEP604_UNION, tuple(members))

    def _atom(self) -> TypeRef:
        kind, value = self._next("a type")
        if kind == "ellipsis":
            return TypeRef(ELLIPSIS)
        if kind == "forward":
            return _Parser(value).parse()
        if kind == "punct" and value == "[":
            args = self._arguments()
            return TypeRef(ARG_LIST, args)
        if kind != "name":
            raise TypeSignatureError(self._signature, f"expected a type, got '{value}'")
        if self._peek() == ("punct", "["):
            self._pos += 1
            shape = TypeRef(value).shape_name
            if shape == LITERAL:
                return TypeRef(value, self._opaque_arguments())
            if shape == ANNOTATED:
                return self._annotated(value)
            args = self._arguments()
            if not args:
                raise TypeSignatureError(self._signature, f"empty argument list for '{value}'")
            return TypeRef(value, args)
        return TypeRef(value)

    def _annotated(self, name: str) -> TypeRef:
        """``Annotated[X, meta...]`` is X; the metadata is skipped."""
        if self._peek() == ("punct", "]"):
            raise TypeSignatureError(self._signature, f"empty argument list for '{name}'")
        inner = self._union()
        if self._peek() == ("punct", ","):
            self._pos += 1
            self._opaque_arguments()
        else:
            self._expect("]")
        return inner

    def _opaque_arguments(self) -> tuple[TypeRef, ...]:
        """Collect value arguments verbatim, up to and including the closing bracket."""
        args: list[TypeRef] = []
        parts: list[str] = []
        depth = 0
        while True:
            kind, value = self._next("']'")
            if kind == "forward":
                value = repr(value)
            elif value in ("[", "(", "{"):
                depth += 1
            elif value in (")", "}") or (value == "]" and depth):
                depth -= 1
            elif depth == 0 and value in (",", "]"):
                if parts:
                    args.append(TypeRef("".join(parts)))
                    parts = []
                if value == "]":
                    if not args:
                        raise TypeSignatureError(self._signature, "empty argument list")
                    return tuple(args)
                continue
            parts.append(f"{value} " if value == "," else value)

    def _arguments(self) -> tuple[TypeRef, ...]:
        """Parse arguments up to and including the closing bracket."""
        args: list[TypeRef] = []
        while True:
            token = self._peek()
            if token == ("punct", "]"):
                self._pos += 1
                return tuple(args)
            args.append(self._union())
            token = self._peek()
            if token == ("punct", ","):
                self._pos += 1
            elif token != ("punct", "]"):
                self._expect("]")


@lru_cache(maxsize=512)
def parse_type(signature: str) -> TypeRef:
    """Parse a declared type signature.

    Raises:
        TypeSignatureError: If the signature is empty or malformed.
    """
    return _Parser(signature).parse()


def optional_inner(ref: TypeRef) -> TypeRef | None:
    """Return the wrapped type of an Optional shape, or None if not optional.

    ``Optional[X]``, ``Union[X, None]`` and ``X | None`` all wrap ``X``.
    A union of several non-None members wraps the remaining union.
    """
    if ref.shape_name == "Optional" and len(ref.args) == 1:
        return ref.args[0]
    if ref.is_union and any(arg.is_none for arg in ref.args):
        rest = tuple(arg for arg in ref.args if not arg.is_none)
        if not rest:
            return None
        if len(rest) == 1:
            return rest[0]
        return TypeRef(ref.name, rest)
    return None
