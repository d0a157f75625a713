"""LLMFetch: XPath-driven field extraction from HTML into per-job SQLite tables."""

__version__ = "0.1.0"
