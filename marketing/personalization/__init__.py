"""Viewer-context driven content variants."""

from .loader import load_rules_jsonl
from .schema import PersonalizationRule, VariantSet, ViewerContext
from .selector import select

__all__ = ["PersonalizationRule", "VariantSet", "ViewerContext", "load_rules_jsonl", "select"]
