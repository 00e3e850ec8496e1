"""Load the personalization rule table from JSONL.

One rule per line, in priority order: the first matching rule for a slot
wins, so more specific rules belong above general ones. Blank lines are
skipped.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from marketing.personalization.schema import PersonalizationRule

log = logging.getLogger("marketing.personalization.loader")


def parse_rules(lines: list[str] | tuple[str, ...], origin: str = "<rules>") -> tuple[PersonalizationRule, ...]:
    """Parse JSONL lines into an ordered, immutable rule table."""
    rules: list[PersonalizationRule] = []
    seen: set[str] = set()
    for lineno, line in enumerate(lines, start=1):
        line = line.strip()
        if not line:
            continue
        try:
            data = json.loads(line)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{origin}:{lineno}: invalid JSON ({exc.msg})") from exc
        rule = PersonalizationRule(**data)
        if rule.id in seen:
            raise ValueError(f"{origin}:{lineno}: duplicate rule id {rule.id!r}")
        seen.add(rule.id)
        rules.append(rule)
    return tuple(rules)


def load_rules_jsonl(path: str | Path) -> tuple[PersonalizationRule, ...]:
    """Load the rule table from a JSONL file."""
    path = Path(path)
    rules = parse_rules(path.read_text(encoding="utf-8").splitlines(), origin=str(path))
    log.info("Loaded %d personalization rule(s) from %s", len(rules), path)
    return rules


def save_rules_jsonl(rules: tuple[PersonalizationRule, ...] | list[PersonalizationRule], path: str | Path) -> None:
    """Persist a rule table back to JSONL, preserving order."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [json.dumps(rule.model_dump(by_alias=True, mode="json")) for rule in rules]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
