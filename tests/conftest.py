"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"
CASES_DIR = FIXTURES_DIR / "cases"

# Twelve words, repeated to build paragraphs of a known size
SENTENCE = "Readers enjoy long articles that explain ideas with clear care and detail."


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture
def article_html() -> str:
    return _read_fixture("article.html")


@pytest.fixture
def listing_html() -> str:
    return _read_fixture("listing.html")


@pytest.fixture
def rtl_article_html() -> str:
    return _read_fixture("rtl_article.html")


@pytest.fixture
def cases_dir() -> Path:
    return CASES_DIR


@pytest.fixture
def long_paragraph() -> str:
    """A 120-word paragraph without commas."""
    return " ".join([SENTENCE] * 10)
