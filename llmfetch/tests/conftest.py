"""Pytest configuration and shared fixtures.

Provides reusable test fixtures for:
- An isolated JobStore backed by a temporary SQLite file
- A scripted generator standing in for the LLM
- A sample product listing page
"""

from typing import List, Sequence, Union

import pytest

from llmfetch.persistence import JobStore
from llmfetch.services.generation import GenerationParams


# =============================================================================
# Sample documents
# =============================================================================


PRODUCTS_HTML = """<!DOCTYPE html>
<html>
<head>
  <title>Gadget Shop</title>
  <style>.product-card { border: 1px solid #ccc; }</style>
  <script>window.analytics = {track: function () {}};</script>
</head>
<body>
  <!-- product grid -->
  <div class="products">
    <div class="product-card">
      <h2 class="product-title">Wireless Headphones</h2>
      <span class="product-price">$99.99</span>
      <span class="product-rating">4.5</span>
      <span class="product-stock">In stock</span>
    </div>
    <div class="product-card">
      <h2 class="product-title">Smart Watch</h2>
      <span class="product-price">$199.00</span>
      <span class="product-rating">4.2</span>
      <span class="product-stock">Only 3 left</span>
    </div>
    <div class="product-card">
      <h2 class="product-title">Laptop Stand</h2>
      <span class="product-price">$39.50</span>
      <span class="product-rating">4.8</span>
      <span class="product-stock">Out of stock</span>
    </div>
  </div>
</body>
</html>
"""

TITLE_XPATH = "//h2[@class='product-title']/text()"
PRODUCT_TITLES = ["Wireless Headphones", "Smart Watch", "Laptop Stand"]


@pytest.fixture
def products_html() -> str:
    return PRODUCTS_HTML


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def store(tmp_path) -> JobStore:
    """A JobStore on its own database file; initialized lazily on first use."""
    return JobStore(tmp_path / "scrapers.db")


# =============================================================================
# Scripted generator
# =============================================================================


class ScriptedGenerator:
    """Returns canned responses in order; exceptions in the script are raised.

    Once the script runs out the last entry is repeated.
    """

    def __init__(self, responses: Sequence[Union[str, Exception]]) -> None:
        self.responses = list(responses)
        self.prompts: List[str] = []
        self.params: List[GenerationParams] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt: str, params: GenerationParams) -> str:
        self.prompts.append(prompt)
        self.params.append(params)
        response = self.responses[min(len(self.prompts), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def scripted_generator():
    """Factory fixture: scripted_generator(["resp1", "resp2", ...])."""
    return ScriptedGenerator
