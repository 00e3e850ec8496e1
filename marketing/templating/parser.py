"""Parse template source into the node AST.

Supported tags:
    {{path}}                          interpolation
    {{#if path}} ... {{else}} ... {{/if}}
    {{#each path}} ... {{/each}}

Anything else inside ``{{ }}`` is a template defect and raises RenderError.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Optional

from marketing.templating.errors import RenderError
from marketing.templating.nodes import Each, If, Interpolate, Node, Text

_TAG = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_PATH = re.compile(r"^[A-Za-z_][\w-]*(?:\.[\w-]+)*$")

BLOCKS = ("if", "each")


def _tag(inner: str) -> str:
    return "{{" + inner + "}}"


@dataclass(frozen=True)
class Token:
    kind: str       # text | var | if | each | else | /if | /each
    arg: str = ""


def _classify(body: str, index: int, template_id: Optional[str]) -> Token:
    body = body.strip()

    def check_path(path: str, where: str) -> str:
        if not path:
            raise RenderError(index, f"{where} is missing a path", template_id)
        if not _PATH.match(path):
            raise RenderError(index, f"invalid path {path!r} in {where}", template_id)
        return path

    if body.startswith("#"):
        parts = body[1:].split(None, 1)
        keyword = parts[0] if parts else ""
        if keyword not in BLOCKS:
            raise RenderError(index, f"unknown block tag {_tag('#' + keyword)}", template_id)
        arg = parts[1].strip() if len(parts) > 1 else ""
        return Token(keyword, check_path(arg, _tag("#" + keyword)))

    if body.startswith("/"):
        keyword = body[1:].strip()
        if keyword not in BLOCKS:
            raise RenderError(index, f"unknown closing tag {_tag('/' + keyword)}", template_id)
        return Token("/" + keyword)

    if body == "else":
        return Token("else")

    return Token("var", check_path(body, "interpolation"))


def tokenize(source: str, template_id: Optional[str] = None) -> list[Token]:
    """Split source into the linear token sequence used for node indices."""
    tokens: list[Token] = []
    pos = 0
    for match in _TAG.finditer(source):
        if match.start() > pos:
            tokens.append(Token("text", source[pos:match.start()]))
        tokens.append(_classify(match.group(1), len(tokens), template_id))
        pos = match.end()

    tail = source[pos:]
    if "{{" in tail:
        index = len(tokens) + (1 if tail.index("{{") > 0 else 0)
        raise RenderError(index, "unterminated '{{' tag", template_id)
    if tail:
        tokens.append(Token("text", tail))
    return tokens


@dataclass
class _OpenBlock:
    kind: str
    path: str
    index: int
    body: list = field(default_factory=list)
    orelse: Optional[list] = None

    def target(self) -> list:
        return self.orelse if self.orelse is not None else self.body

    def close(self) -> Node:
        if self.kind == "if":
            return If(self.path, tuple(self.body), tuple(self.orelse or ()))
        return Each(self.path, tuple(self.body))


def parse_template(source: str, template_id: Optional[str] = None) -> tuple[Node, ...]:
    """Parse template source into an immutable node tuple.

    Raises:
        RenderError: for unterminated, stray or mismatched blocks and broken tags
    """
    root: list[Node] = []
    stack: list[_OpenBlock] = []

    for index, token in enumerate(tokenize(source, template_id)):
        target = stack[-1].target() if stack else root

        if token.kind == "text":
            target.append(Text(token.arg))
        elif token.kind == "var":
            target.append(Interpolate(token.arg))
        elif token.kind in BLOCKS:
            stack.append(_OpenBlock(token.kind, token.arg, index))
        elif token.kind == "else":
            if not stack or stack[-1].kind != "if":
                raise RenderError(index, f"{_tag('else')} outside an {_tag('#if')} block", template_id)
            if stack[-1].orelse is not None:
                raise RenderError(index, f"duplicate {_tag('else')} in {_tag('#if')} block", template_id)
            stack[-1].orelse = []
        else:
            name = token.kind[1:]
            if not stack:
                raise RenderError(index, f"{_tag('/' + name)} without an open block", template_id)
            if stack[-1].kind != name:
                opened = stack[-1]
                raise RenderError(
                    index,
                    f"{_tag('/' + name)} does not match {_tag('#' + opened.kind)} "
                    f"opened at node {opened.index}",
                    template_id,
                )
            block = stack.pop()
            (stack[-1].target() if stack else root).append(block.close())

    if stack:
        opened = stack[-1]
        raise RenderError(
            opened.index,
            f"unterminated {_tag('#' + opened.kind + ' ' + opened.path)} block",
            template_id,
        )
    return tuple(root)
