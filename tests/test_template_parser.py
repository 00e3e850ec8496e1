"""Tests for template tokenizing and parsing."""

import pytest

from marketing.templating.errors import RenderError
from marketing.templating.nodes import Each, If, Interpolate, Text
from marketing.templating.parser import Token, parse_template, tokenize


class TestTokenize:
    def test_linear_tokens(self):
        tokens = tokenize("Hi {{building.name}}{{#if x}}!{{/if}}")
        assert tokens == [
            Token("text", "Hi "),
            Token("var", "building.name"),
            Token("if", "x"),
            Token("text", "!"),
            Token("/if"),
        ]

    def test_whitespace_inside_tags(self):
        assert tokenize("{{ building.name }}") == [Token("var", "building.name")]
        assert tokenize("{{#each  items }}{{/each}}") == [Token("each", "items"), Token("/each")]

    def test_plain_text(self):
        assert tokenize("no tags here") == [Token("text", "no tags here")]
        assert tokenize("") == []


class TestParse:
    def test_interpolation_and_text(self):
        assert parse_template("Hi {{name}}!") == (Text("Hi "), Interpolate("name"), Text("!"))

    def test_if_else(self):
        nodes = parse_template("{{#if a}}A{{else}}B{{/if}}")
        assert nodes == (If("a", (Text("A"),), (Text("B"),)),)

    def test_if_without_else(self):
        assert parse_template("{{#if a}}A{{/if}}") == (If("a", (Text("A"),), ()),)

    def test_nested_blocks(self):
        nodes = parse_template("{{#each plans}}{{#if features}}{{#each features}}{{this}}{{/each}}{{/if}}{{/each}}")
        assert nodes == (
            Each("plans", (If("features", (Each("features", (Interpolate("this"),)),)),)),
        )

    def test_hyphenated_and_indexed_paths(self):
        assert parse_template("{{building.floorPlans.0.sq-ft}}") == (Interpolate("building.floorPlans.0.sq-ft"),)

    def test_nodes_are_immutable(self):
        (node,) = parse_template("{{name}}")
        with pytest.raises(AttributeError):
            node.path = "other"


class TestMalformed:
    @pytest.mark.parametrize(
        "source, index",
        [
            ("a{{#each building.floorPlans}}b", 1),       # unterminated block, reported where it opens
            ("{{#if a}}{{#each b}}{{/each}}", 0),
            ("{{#if a}}x{{/each}}", 2),                  # mismatched close
            ("{{#if a}}{{#each b}}{{/if}}", 2),
            ("x{{/if}}", 1),                             # close without open
            ("{{else}}", 0),
            ("{{#each a}}{{else}}{{/each}}", 1),         # else outside if
            ("{{#if a}}1{{else}}2{{else}}3{{/if}}", 4),  # duplicate else
            ("ab{{name", 1),                             # unterminated tag
            ("{{name", 0),
            ("{{#unless a}}{{/unless}}", 0),             # unknown block
            ("x{{/while}}", 1),
            ("{{#if}}{{/if}}", 0),                       # missing path
            ("{{bad path!}}", 0),
            ("{{}}", 0),
        ],
    )
    def test_node_index(self, source, index):
        with pytest.raises(RenderError) as exc_info:
            parse_template(source)
        assert exc_info.value.node_index == index

    def test_message_names_template(self):
        with pytest.raises(RenderError) as exc_info:
            parse_template("{{#if a}}x{{/each}}", template_id="building_page")
        err = exc_info.value
        assert err.template_id == "building_page"
        assert "building_page" in str(err)
        assert "node 2" in str(err)
        assert "{{#if}}" in err.reason

    def test_unterminated_reason(self):
        with pytest.raises(RenderError) as exc_info:
            parse_template("{{#each building.floorPlans}}")
        assert exc_info.value.reason == "unterminated {{#each building.floorPlans}} block"
