"""Tests for the personalization rule table and variant selection."""

import pytest

from marketing.personalization.loader import load_rules_jsonl, parse_rules, save_rules_jsonl
from marketing.personalization.schema import PersonalizationRule, ViewerContext
from marketing.personalization.selector import first_match, select

from conftest import RULES_PATH


@pytest.fixture(scope="module")
def rules():
    return load_rules_jsonl(RULES_PATH)


def _tagline_rule(rule_id, tagline, **kwargs):
    return PersonalizationRule(id=rule_id, slot="tagline", tagline=tagline, **kwargs)


class TestViewerContext:
    def test_defaults(self):
        ctx = ViewerContext()
        assert ctx.location_type == "other"
        assert ctx.audience == "general"
        assert ctx.key == "other.general"

    def test_accepts_camel_case(self):
        ctx = ViewerContext.model_validate({"locationType": "urban", "audience": "youngProfessional"})
        assert ctx.key == "urban.youngProfessional"

    def test_rejects_unknown_values(self):
        with pytest.raises(ValueError):
            ViewerContext(location_type="mountain")


class TestRuleModel:
    def test_tagline_rule_needs_text(self):
        with pytest.raises(ValueError):
            PersonalizationRule(id="empty", slot="tagline")

    def test_highlights_rule_limits(self):
        with pytest.raises(ValueError):
            PersonalizationRule(id="none", slot="highlights")
        four = [{"title": f"Feature {i}"} for i in range(4)]
        with pytest.raises(ValueError):
            PersonalizationRule(id="too-many", slot="highlights", highlights=four)

    def test_wildcards_match_anything(self):
        rule = _tagline_rule("any", "Hello")
        assert rule.matches("harbor-point", ViewerContext())
        assert rule.matches("oak-hollow", ViewerContext(location_type="urban", audience="retiree"))

    def test_building_filter(self):
        rule = _tagline_rule("harbor-only", "Hello", buildings=["harbor-point"])
        assert rule.matches("harbor-point", ViewerContext())
        assert not rule.matches("oak-hollow", ViewerContext())


class TestSelect:
    def test_waterfront_overrides_tagline(self, record, rules):
        variants = select(record, ViewerContext(location_type="waterfront", audience="general"), rules)
        assert variants.tagline == "Wake up to the water every morning"
        assert variants.sources["tagline"] == "waterfront-tagline"

    def test_specific_rule_listed_first_wins(self, record, rules):
        variants = select(record, ViewerContext(location_type="waterfront", audience="family"), rules)
        assert variants.tagline == "Room to grow, right on the water"
        assert variants.sources == {
            "tagline": "waterfront-family-tagline",
            "highlights": "family-highlights",
        }
        assert [h.title for h in variants.highlights] == [
            "Space for everyone", "Play areas", "Quiet nights",
        ]

    def test_no_match_passes_record_content_through(self, record, rules):
        variants = select(record, ViewerContext(), rules)
        assert variants.tagline == record.overview.tagline
        assert variants.highlights == list(record.overview.key_features)
        assert variants.sources == {"tagline": None, "highlights": None}

    def test_no_context_means_defaults(self, record, rules):
        assert select(record, None, rules) == select(record, ViewerContext(), rules)

    def test_slots_resolve_independently(self, record, rules):
        # suburban family: tagline from the suburban rule, highlights from the family rule
        variants = select(record, ViewerContext(location_type="suburban", audience="family"), rules)
        assert variants.sources == {
            "tagline": "suburban-family-tagline",
            "highlights": "family-highlights",
        }

    def test_table_order_decides(self, record):
        ctx = ViewerContext(location_type="waterfront", audience="family")
        general = _tagline_rule("general", "General", location_type="waterfront")
        specific = _tagline_rule("specific", "Specific", location_type="waterfront", audience="family")
        assert select(record, ctx, [general, specific]).tagline == "General"
        assert select(record, ctx, [specific, general]).tagline == "Specific"

    def test_building_scoped_rule(self, record, make_record):
        rules = [_tagline_rule("harbor-only", "Only at Harbor Point", buildings=["harbor-point"])]
        assert select(record, ViewerContext(), rules).tagline == "Only at Harbor Point"
        other = make_record("oak-hollow")
        assert select(other, ViewerContext(), rules).tagline == other.overview.tagline

    def test_deterministic(self, record, rules):
        ctx = ViewerContext(location_type="urban", audience="youngProfessional")
        assert select(record, ctx, rules) == select(record, ctx, rules)

    def test_record_unchanged(self, record, rules):
        before = record.to_canonical()
        select(record, ViewerContext(location_type="waterfront", audience="family"), rules)
        assert record.to_canonical() == before

    def test_first_match_skips_other_slots(self, rules):
        ctx = ViewerContext(audience="retiree")
        assert first_match(rules, "tagline", "harbor-point", ctx).id == "retiree-tagline"
        assert first_match(rules, "highlights", "harbor-point", ctx).id == "retiree-highlights"
        assert first_match(rules, "tagline", "harbor-point", ViewerContext()) is None


class TestLoader:
    def test_bundled_rules(self, rules):
        assert len(rules) == 8
        assert rules[0].id == "waterfront-family-tagline"
        assert rules[1].location_type == "waterfront"
        assert rules[1].audience == "*"

    def test_blank_lines_skipped(self):
        lines = ['', '{"id": "a", "slot": "tagline", "tagline": "A"}', '   ']
        assert [r.id for r in parse_rules(lines)] == ["a"]

    def test_invalid_json(self):
        with pytest.raises(ValueError, match="rules.jsonl:2"):
            parse_rules(['{"id": "a", "slot": "tagline", "tagline": "A"}', "{not json"], origin="rules.jsonl")

    def test_duplicate_id(self):
        line = '{"id": "a", "slot": "tagline", "tagline": "A"}'
        with pytest.raises(ValueError, match="duplicate rule id"):
            parse_rules([line, line])

    def test_invalid_rule(self):
        with pytest.raises(ValueError):
            parse_rules(['{"id": "a", "slot": "footer", "tagline": "A"}'])

    def test_save_and_reload(self, rules, tmp_path):
        path = tmp_path / "rules.jsonl"
        save_rules_jsonl(rules, path)
        assert load_rules_jsonl(path) == rules
