"""Tests for llmfetch.utils.naming."""

import re
from datetime import datetime, timezone

import pytest

from llmfetch.errors import StructuralIntegrityError
from llmfetch.utils.naming import column_name, quote_identifier, sanitize_identifier, table_name_for

SAMPLES = [
    "title",
    "Product Title!",
    "Price ($)",
    "Rating ★",
    "2nd price",
    "42",
    "already_clean_1",
    "",
    "   ",
    'x"; DROP TABLE jobs; --',
    "ÜBER größe",
    "tab\tand\nnewline",
]


class TestSanitizeIdentifier:

    @pytest.mark.parametrize("name", SAMPLES)
    def test_only_allowed_characters(self, name):
        assert re.fullmatch(r"[a-z0-9_]*", sanitize_identifier(name))

    @pytest.mark.parametrize("name", SAMPLES)
    def test_idempotent(self, name):
        once = sanitize_identifier(name)
        assert sanitize_identifier(once) == once

    def test_deterministic(self):
        assert sanitize_identifier("Price ($)") == sanitize_identifier("Price ($)") == "price____"

    def test_lowercases(self):
        assert sanitize_identifier("ProductName") == "productname"

    def test_not_injective(self):
        assert sanitize_identifier("Price $") == sanitize_identifier("price_$")


class TestColumnName:

    @pytest.mark.parametrize("name", SAMPLES)
    def test_never_starts_with_digit(self, name):
        assert not column_name(name)[0].isdigit()

    @pytest.mark.parametrize("name", SAMPLES)
    def test_idempotent(self, name):
        once = column_name(name)
        assert column_name(once) == once

    @pytest.mark.parametrize("name", SAMPLES)
    def test_is_quotable(self, name):
        quote_identifier(column_name(name))

    def test_digit_prefix(self):
        assert column_name("2nd price") == "f_2nd_price"

    def test_plain_name_untouched(self):
        assert column_name("title") == "title"


class TestTableName:

    def test_embeds_id_and_timestamp(self):
        created = datetime(2025, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        assert table_name_for(12, created) == "job_12_2025_03_04_05_06_07"


class TestQuoteIdentifier:

    def test_quotes_clean_identifier(self):
        assert quote_identifier("job_1_2025_01_01_00_00_00") == '"job_1_2025_01_01_00_00_00"'

    @pytest.mark.parametrize(
        "raw",
        ['x"; DROP TABLE jobs; --', "Product Title", "1abc", "", "a-b"],
    )
    def test_rejects_unsanitized(self, raw):
        with pytest.raises(StructuralIntegrityError):
            quote_identifier(raw)
