"""Template AST: an immutable sequence of four node kinds."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Text:
    """Literal text, emitted as-is."""

    value: str


@dataclass(frozen=True)
class Interpolate:
    """``{{path}}``"""

    path: str


@dataclass(frozen=True)
class If:
    """``{{#if path}} body {{else}} orelse {{/if}}``"""

    path: str
    body: tuple["Node", ...] = ()
    orelse: tuple["Node", ...] = ()


@dataclass(frozen=True)
class Each:
    """``{{#each path}} body {{/each}}``: body runs once per list element."""

    path: str
    body: tuple["Node", ...] = ()


Node = Union[Text, Interpolate, If, Each]


@dataclass(frozen=True)
class Template:
    """A parsed template document."""

    id: str
    nodes: tuple[Node, ...]
    autoescape: bool = False
