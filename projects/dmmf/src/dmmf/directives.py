"""Parser for ``@directives`` embedded in model and field documentation.

Supported forms:

- ``@fillable``                       flag
- ``@with(posts, author)``            parenthesised arguments
- ``@cast{decimal:2}``                braced body
- ``@trait:App\\Concerns\\HasUuid``   colon value
- ``@implements:Foo\\Bar as Baz``     colon value with alias

Parentheses and braces may nest and quoted strings are honoured when looking
for the closing delimiter. An ``@`` that directly follows a word character
(``admin@example.com``) does not start a directive.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from functools import cache
from typing import Literal

from dmmf.errors import DirectiveError

type DirectiveForm = Literal["flag", "paren", "brace", "colon"]

# Output generators that @local / @silent can be scoped to
TARGETS = frozenset({"model", "migrator"})
TARGET_ALIASES = {
    "model": "model",
    "models": "model",
    "migrator": "migrator",
    "migration": "migrator",
    "migrations": "migrator",
}

TAG = re.compile(r"(?<![\w.@])@(\w+)")
COLON_VALUE = re.compile(r":(\S+)")
ALIAS = re.compile(r"\s+as\s+(\w+)")
PAIR = re.compile(r"^(\w+)\s*:\s*(.+)$", re.DOTALL)
WHITESPACE = re.compile(r"\s+")

DELIMITERS = {"(": ")", "{": "}", "[": "]"}
QUOTES = frozenset("'\"")


@dataclass(frozen=True)
class Directive:
    """A single parsed directive."""

    tag: str
    form: DirectiveForm
    body: str | None = None
    alias: str | None = None

    @property
    def arguments(self) -> list[str]:
        """Top-level, unquoted arguments of the body."""
        if not self.body:
            return []
        return [unquote(part) for part in split_arguments(self.body)]


def unquote(value: str) -> str:
    """Strip one pair of matching surrounding quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] in QUOTES and value[-1] == value[0]:  # noqa: PLR2004
        return value[1:-1]
    return value


def _closing(text: str, start: int) -> int:
    """Return the index of the delimiter closing the one at ``start``."""
    stack = [DELIMITERS[text[start]]]
    quote: str | None = None
    escaped = False
    for index in range(start + 1, len(text)):
        char = text[index]
        if quote:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in QUOTES:
            quote = char
        elif char in DELIMITERS:
            stack.append(DELIMITERS[char])
        elif char == stack[-1]:
            stack.pop()
            if not stack:
                return index
    msg = f"Unterminated directive body starting at: {text[start : start + 40]!r}"
    raise DirectiveError(msg)


def split_arguments(body: str) -> list[str]:
    """Split a directive body on commas that are not nested or quoted."""
    parts: list[str] = []
    current: list[str] = []
    depth = 0
    quote: str | None = None
    escaped = False

    for char in body:
        if quote:
            current.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue
        if char in QUOTES:
            quote = char
        elif char in DELIMITERS:
            depth += 1
        elif char in DELIMITERS.values():
            depth = max(0, depth - 1)
        elif char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    if tail := "".join(current).strip():
        parts.append(tail)
    return [part for part in parts if part]


def parse_pairs(parts: list[str]) -> dict[str, str]:
    """Parse ``key: value`` arguments into a mapping with lower-cased keys."""
    pairs: dict[str, str] = {}
    for part in parts:
        match = PAIR.match(part.strip())
        if not match:
            msg = f"Expected 'key: value' in directive arguments, got {part!r}"
            raise DirectiveError(msg)
        pairs[match[1].lower()] = unquote(match[2])
    return pairs


class DirectiveSet:
    """All directives found in one documentation string."""

    def __init__(self, directives: list[Directive], text: str | None) -> None:
        """Store parsed directives and the remaining free text."""
        self.directives = tuple(directives)
        self.text = text

    def __iter__(self) -> Iterator[Directive]:
        """Iterate over directives in document order."""
        return iter(self.directives)

    def __len__(self) -> int:
        """Return the number of directives."""
        return len(self.directives)

    def has(self, tag: str) -> bool:
        """Check whether a tag is present."""
        return any(directive.tag == tag for directive in self.directives)

    def get(self, tag: str) -> Directive | None:
        """Return the first directive with the tag."""
        return next((d for d in self.directives if d.tag == tag), None)

    def all(self, tag: str) -> list[Directive]:
        """Return every directive with the tag."""
        return [directive for directive in self.directives if directive.tag == tag]

    def list_from(self, tag: str) -> list[str]:
        """Collect the arguments of every occurrence of a tag, de-duplicated."""
        values: dict[str, None] = {}
        for directive in self.all(tag):
            arguments = directive.arguments
            if directive.form == "colon" and directive.body:
                arguments = [directive.body]
            values.update(dict.fromkeys(arguments))
        return list(values)

    def mapping(self, tag: str) -> dict[str, str]:
        """Parse the first occurrence of a tag as ``key: value`` pairs."""
        directive = self.get(tag)
        if directive is None:
            return {}
        return parse_pairs(split_arguments(directive.body or ""))

    def targets(self, tag: str) -> frozenset[str]:
        """Generators a scoping directive (``@local``, ``@silent``) applies to."""
        directive = self.get(tag)
        if directive is None:
            return frozenset()
        if not directive.arguments:
            return TARGETS
        targets: set[str] = set()
        for argument in directive.arguments:
            target = TARGET_ALIASES.get(argument.lower())
            if target is None:
                msg = f"Unknown @{tag} target {argument!r}"
                raise DirectiveError(msg)
            targets.add(target)
        return frozenset(targets)

    def is_scoped(self, tag: str, target: str) -> bool:
        """Check whether a scoping directive applies to a generator."""
        return target in self.targets(tag)


def _strip(doc: str, spans: list[tuple[int, int]]) -> str | None:
    """Remove directive spans from the doc and collapse whitespace."""
    pieces: list[str] = []
    position = 0
    for start, end in spans:
        pieces.append(doc[position:start])
        position = end
    pieces.append(doc[position:])
    cleaned = WHITESPACE.sub(" ", " ".join(pieces)).strip()
    return cleaned or None


@cache
def parse_directives(doc: str | None) -> DirectiveSet:
    """Parse every directive in a documentation string.

    Raises:
        DirectiveError: If a ``(`` or ``{`` body is never closed.

    """
    if not doc:
        return DirectiveSet([], None)

    directives: list[Directive] = []
    spans: list[tuple[int, int]] = []
    position = 0

    while match := TAG.search(doc, position):
        tag = match[1]
        end = match.end()
        following = doc[end : end + 1]

        if following in ("(", "{"):
            close = _closing(doc, end)
            form: DirectiveForm = "paren" if following == "(" else "brace"
            directive = Directive(tag, form, doc[end + 1 : close].strip())
            end = close + 1
        elif value := COLON_VALUE.match(doc, end):
            end = value.end()
            alias = ALIAS.match(doc, end)
            if alias:
                end = alias.end()
            directive = Directive(tag, "colon", value[1], alias[1] if alias else None)
        else:
            directive = Directive(tag, "flag")

        directives.append(directive)
        spans.append((match.start(), end))
        position = end

    return DirectiveSet(directives, _strip(doc, spans))


def strip_directives(doc: str | None) -> str | None:
    """Return documentation text with every directive removed."""
    return parse_directives(doc).text
