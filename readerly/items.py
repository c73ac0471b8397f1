"""Pydantic models for extraction results and golden fixture metadata."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# ---------------------------------------------------------------------------
# Extraction result
# ---------------------------------------------------------------------------


class Article(BaseModel):
    """An extracted article.

    ``content`` is the serialized HTML of the cleaned content; ``text_content``
    its plain text.  ``length`` is always ``len(text_content)``.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = None
    content: str | None = None
    text_content: str | None = None
    length: int = 0
    excerpt: str | None = None
    byline: str | None = None
    dir: str | None = None
    site_name: str | None = None
    lang: str | None = None
    published_time: str | None = None

    @model_validator(mode="before")
    @classmethod
    def compute_length(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["length"] = len(data.get("text_content") or "")
        return data

    @field_validator("title", "excerpt", "byline", "site_name", "lang", "dir", "published_time", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip() or None
        return v

    def to_dict(self) -> dict[str, Any]:
        """Return the article with the camelCase keys used by fixture files."""
        return {
            "title": self.title,
            "byline": self.byline,
            "dir": self.dir,
            "lang": self.lang,
            "content": self.content,
            "textContent": self.text_content,
            "length": self.length,
            "excerpt": self.excerpt,
            "siteName": self.site_name,
            "publishedTime": self.published_time,
        }


# ---------------------------------------------------------------------------
# Golden fixture metadata (expected-metadata.json)
# ---------------------------------------------------------------------------


class ExpectedMetadata(BaseModel):
    """Expected metadata of a golden fixture; unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str | None = None
    byline: str | None = None
    dir: str | None = None
    excerpt: str | None = None
    site_name: str | None = Field(default=None, alias="siteName")
    published_time: str | None = Field(default=None, alias="publishedTime")
    lang: str | None = None
    readerable: bool | None = None

    def mismatches(self, article: Article | None) -> list[str]:
        """Return a description of every field *article* gets wrong."""
        problems: list[str] = []
        for name in ("title", "byline", "dir", "excerpt", "site_name", "published_time", "lang"):
            expected = getattr(self, name)
            actual = getattr(article, name) if article is not None else None
            if expected != actual:
                problems.append(f"{name}: expected {expected!r}, got {actual!r}")
        return problems
