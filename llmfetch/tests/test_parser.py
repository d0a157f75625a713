"""Tests for llmfetch.services.extraction.parser.parse_xpath_from_response."""

import pytest

from llmfetch.services.extraction.parser import parse_xpath_from_response


class TestPlainResponses:

    @pytest.mark.parametrize(
        "response",
        [
            "//div[@class='test']/text()",
            "/html/body/div/text()",
            "//div[@class='item' and @data-type='product']/span[@class='price']/text()",
            "//div[@class='container']/div[1]/text()",
            "//*[@class='item']/text()",
            "//div[@class='a'] | //div[@class='b']",
            "//div[@class='container']",
            '//div[@class="container"]/text()',
        ],
    )
    def test_bare_expression_returned_as_is(self, response):
        assert parse_xpath_from_response(response) == response

    def test_surrounding_whitespace_trimmed(self):
        assert parse_xpath_from_response("  //span[@class='price']  \n") == "//span[@class='price']"


class TestCodeBlocks:

    def test_fenced_block_with_language(self):
        assert (
            parse_xpath_from_response("```xpath\n//div[@class='container']/text()\n```")
            == "//div[@class='container']/text()"
        )

    def test_inline_fenced_block_without_language(self):
        assert (
            parse_xpath_from_response("``` //div[@id='main']/span/text() ```")
            == "//div[@id='main']/span/text()"
        )

    def test_realistic_response_with_fenced_block(self):
        response = """Based on the HTML structure, here's the XPath:

```xpath
//h3[@class='country-name']/text()
```

This will select all country names."""
        assert parse_xpath_from_response(response) == "//h3[@class='country-name']/text()"

    def test_fenced_block_preferred_over_bare_line(self):
        response = "//div[@class='bare']/text()\n\n```\n//div[@class='fenced']/text()\n```"
        assert parse_xpath_from_response(response) == "//div[@class='fenced']/text()"

    def test_invalid_fenced_block_falls_back_to_lines(self):
        response = "```html\n<div class='x'>\n```\n//div[@class='x']"
        assert parse_xpath_from_response(response) == "//div[@class='x']"


class TestLineScanning:

    def test_backtick_span(self):
        assert (
            parse_xpath_from_response("The XPath is `//div[@class='item']/text()`")
            == "//div[@class='item']/text()"
        )

    def test_line_after_preamble(self):
        response = "Here is your XPath:\n//div[@class='result']/text()\nThis should work."
        assert parse_xpath_from_response(response) == "//div[@class='result']/text()"

    def test_first_line_with_trailing_explanation(self):
        response = "//div[@class='answer']/text()\nSome explanation here"
        assert parse_xpath_from_response(response) == "//div[@class='answer']/text()"

    def test_first_of_several_loose_candidates(self):
        response = "Try this: //div[@class='first']/text() or maybe //div[@class='second']/text()"
        assert parse_xpath_from_response(response) == "//div[@class='first']/text()"

    def test_loose_candidate_with_spaces_in_predicate(self):
        response = "Use //div[@class='item' and @id='x']/span to get it."
        assert parse_xpath_from_response(response) == "//div[@class='item' and @id='x']/span"

    def test_skips_invalid_line_for_later_valid_one(self):
        response = "//div[@class='broken'\n//div[@class='fixed']"
        assert parse_xpath_from_response(response) == "//div[@class='fixed']"


class TestNoCandidate:

    @pytest.mark.parametrize(
        "response",
        [
            "I cannot provide an XPath for this.",
            "",
            "   \n\n  \n",
            None,
            "//",
            "//div<script>alert('xss')</script>",
            "<span class='price'>$10</span>",
            "```\nnot an xpath\n```",
        ],
    )
    def test_returns_none(self, response):
        assert parse_xpath_from_response(response) is None
