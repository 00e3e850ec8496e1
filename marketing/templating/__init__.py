"""Template parsing and rendering for building pages."""

from .errors import RenderError
from .nodes import Each, If, Interpolate, Node, Template, Text
from .parser import parse_template
from .registry import TemplateNotFound, TemplateRegistry
from .renderer import render

__all__ = [
    "Each",
    "If",
    "Interpolate",
    "Node",
    "RenderError",
    "Template",
    "TemplateNotFound",
    "TemplateRegistry",
    "Text",
    "parse_template",
    "render",
]
