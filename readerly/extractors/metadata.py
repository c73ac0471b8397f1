"""Deterministic metadata extraction from HTML.

Every field is resolved by an ordered chain of strategies; the first one that
yields a non-empty value wins:

    title:          JSON-LD → Dublin Core / Open Graph / Weibo / Twitter / Parse.ly meta → <title> heuristic
    byline:         JSON-LD → creator/author meta → byline elements in the body
    excerpt:        JSON-LD → description meta
    site name:      JSON-LD publisher → og:site_name
    published time: JSON-LD → article:published_time → parsely-pub-date
    language:       <html lang> → content-language meta → language meta → langdetect
    direction:      <html dir> / <body dir> → right-to-left language
"""

from __future__ import annotations

import html
import json
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup, Tag
from langdetect import DetectorFactory, LangDetectException, detect

from .dom import attr_str, get_inner_text, text_similarity, word_count
from .regexps import is_json_ld_article_type, normalize_whitespace

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_PROPERTY_RE = re.compile(
    r"\s*(article|dc|dcterm|og|twitter)\s*:\s*"
    r"(author|creator|description|published_time|title|site_name)\s*",
    re.IGNORECASE,
)
_NAME_RE = re.compile(
    r"^\s*(?:(dc|dcterm|og|twitter|parsely|weibo:(article|webpage))\s*[-.:]\s*)?"
    r"(author|creator|pub-date|description|title|site_name)\s*$",
    re.IGNORECASE,
)
_SCHEMA_ORG_RE = re.compile(r"^https?://schema\.org/?$")
_CDATA_RE = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")

_TITLE_SEPARATORS = r"|\-\\/>»–—"
_TITLE_SEPARATOR_RE = re.compile(rf" [{_TITLE_SEPARATORS}] ")
_HIERARCHICAL_SEPARATOR_RE = re.compile(r" [\\/>»] ")
_TITLE_PREFIX_RE = re.compile(rf"^[^{_TITLE_SEPARATORS}]*[{_TITLE_SEPARATORS}]")
_SEPARATOR_RUN_RE = re.compile(rf"[{_TITLE_SEPARATORS}]+")

_BYLINE_PREFIX_RE = re.compile(r"^\s*(?:written\s+by\b|by\b|author\s*:)\s*:?\s*", re.IGNORECASE)
_URL_RE = re.compile(r"^[a-z][a-z0-9+.-]*://\S+$", re.IGNORECASE)

# Elements that usually carry the author's name
BYLINE_SELECTORS: tuple[str, ...] = (
    ".byline",
    ".author",
    '[rel="author"]',
    '[itemprop~="author"]',
    ".by-line",
    ".post-author",
    ".article-author",
    ".dateline",
)

RTL_LANGUAGES: frozenset[str] = frozenset(
    {"ar", "arc", "ckb", "dv", "fa", "ha", "he", "iw", "khw", "ks", "ku", "ps", "sd", "ur", "yi"},
)

MAX_BYLINE_LENGTH = 100
MIN_TITLE_LENGTH = 15
MAX_TITLE_LENGTH = 150
MIN_DETECTION_SAMPLE = 40


@dataclass
class ArticleMetadata:
    title: str = ""
    byline: str | None = None
    byline_source: str | None = None
    excerpt: str | None = None
    site_name: str | None = None
    published_time: str | None = None
    lang: str | None = None
    dir: str | None = None
    meta: dict[str, str] = field(default_factory=dict)
    json_ld: dict[str, str] = field(default_factory=dict)

    @property
    def byline_from_metadata(self) -> bool:
        """True when the byline came from JSON-LD or meta tags (not the body)."""
        return self.byline_source in ("json-ld", "meta")


@dataclass
class _Sources:
    soup: BeautifulSoup
    meta: dict[str, str]
    json_ld: dict[str, str]
    detect_language: bool = False


Strategy = Callable[[_Sources], "str | None"]


# ---------------------------------------------------------------------------
# Meta tags
# ---------------------------------------------------------------------------

def collect_meta_tags(soup: BeautifulSoup) -> dict[str, str]:
    """Map normalized ``<meta>`` names/properties to their trimmed content.

    Keys are lowercased with whitespace removed and ``.`` turned into ``:``
    (``og:title``, ``dc:creator``, ``parsely-pub-date``).  A later tag
    overwrites an earlier one with the same key.
    """
    values: dict[str, str] = {}
    for meta in soup.find_all("meta"):
        content = attr_str(meta, "content").strip()
        if not content:
            continue
        matched = False
        prop = attr_str(meta, "property")
        if prop:
            match = _PROPERTY_RE.search(prop)
            if match:
                matched = True
                values[re.sub(r"\s", "", match.group(0).lower())] = content
        name = attr_str(meta, "name")
        if not matched and name and _NAME_RE.match(name):
            key = re.sub(r"\s", "", name.lower()).replace(".", ":")
            values[key] = content
    return values


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------

def extract_json_ld(soup: BeautifulSoup) -> dict[str, str]:
    """Return title/byline/excerpt/site_name/published_time from JSON-LD.

    Only the first schema.org block with an Article-like ``@type`` is used
    (top-level lists and ``@graph`` arrays are searched).  Malformed blocks
    are skipped.
    """
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = _CDATA_RE.sub("", script.get_text() or "")
        try:
            parsed: Any = json.loads(raw)
        except (json.JSONDecodeError, TypeError, ValueError) as exc:
            logger.debug("Skipping malformed JSON-LD block: %s", exc)
            continue

        node = _article_node(parsed)
        if node is None:
            continue
        return _json_ld_fields(node, soup)
    return {}


def _article_node(parsed: Any) -> dict | None:
    if isinstance(parsed, list):
        parsed = next(
            (item for item in parsed if isinstance(item, dict) and is_json_ld_article_type(item.get("@type"))),
            None,
        )
    if not isinstance(parsed, dict):
        return None

    context = parsed.get("@context")
    if isinstance(context, dict):
        context = context.get("@vocab")
    if not isinstance(context, str) or not _SCHEMA_ORG_RE.match(context):
        return None

    if not parsed.get("@type") and isinstance(parsed.get("@graph"), list):
        parsed = next(
            (
                item for item in parsed["@graph"]
                if isinstance(item, dict) and is_json_ld_article_type(item.get("@type"))
            ),
            None,
        )
    if not isinstance(parsed, dict) or not is_json_ld_article_type(parsed.get("@type")):
        return None
    return parsed


def _json_ld_fields(node: dict, soup: BeautifulSoup) -> dict[str, str]:
    fields: dict[str, str] = {}

    name = node.get("name")
    headline = node.get("headline")
    if isinstance(name, str) and isinstance(headline, str) and name != headline:
        # Some sites put the site name in "name"; trust whichever matches the page
        title = get_article_title(soup)
        name_matches = text_similarity(name, title) > 0.75
        headline_matches = text_similarity(headline, title) > 0.75
        fields["title"] = (headline if headline_matches and not name_matches else name).strip()
    elif isinstance(name, str):
        fields["title"] = name.strip()
    elif isinstance(headline, str):
        fields["title"] = headline.strip()

    author = node.get("author")
    if isinstance(author, dict) and isinstance(author.get("name"), str):
        fields["byline"] = author["name"].strip()
    elif isinstance(author, list):
        names = [a["name"].strip() for a in author if isinstance(a, dict) and isinstance(a.get("name"), str)]
        if names:
            fields["byline"] = ", ".join(names)
    elif isinstance(author, str):
        fields["byline"] = author.strip()

    if isinstance(node.get("description"), str):
        fields["excerpt"] = node["description"].strip()
    publisher = node.get("publisher")
    if isinstance(publisher, dict) and isinstance(publisher.get("name"), str):
        fields["site_name"] = publisher["name"].strip()
    if isinstance(node.get("datePublished"), str):
        fields["published_time"] = node["datePublished"].strip()

    return {k: v for k, v in fields.items() if v}


# ---------------------------------------------------------------------------
# Title
# ---------------------------------------------------------------------------

def get_article_title(soup: BeautifulSoup) -> str:
    """Guess the article title from ``<title>`` and the page headings.

    Site names after (or before) a separator are trimmed when the remainder
    keeps at least three words; ``Site: Title`` prefixes are dropped; titles
    that are too long or too short are replaced by a lone ``<h1>``.  Finally a
    descriptive ``<h1>`` similar to the result is preferred.
    """
    title_tag = soup.find("title")
    orig_title = get_inner_text(title_tag, normalize_spaces=False) if title_tag else ""
    cur_title = orig_title
    had_hierarchical_separators = False

    separators = list(_TITLE_SEPARATOR_RE.finditer(orig_title))
    if separators:
        had_hierarchical_separators = bool(_HIERARCHICAL_SEPARATOR_RE.search(orig_title))
        cur_title = orig_title[: separators[-1].start()]
        if word_count(cur_title) < 3:
            cur_title = _TITLE_PREFIX_RE.sub("", orig_title, count=1)
    elif ": " in cur_title:
        headings = soup.find_all(["h1", "h2"])
        trimmed = cur_title.strip()
        if not any(get_inner_text(h, normalize_spaces=False) == trimmed for h in headings):
            cur_title = orig_title[orig_title.rfind(":") + 1:]
            if word_count(cur_title) < 3:
                cur_title = orig_title[orig_title.find(":") + 1:]
            elif word_count(orig_title[: orig_title.find(":")]) > 5:
                cur_title = orig_title
    elif len(cur_title) > MAX_TITLE_LENGTH or len(cur_title) < MIN_TITLE_LENGTH:
        h1s = soup.find_all("h1")
        if len(h1s) == 1:
            cur_title = get_inner_text(h1s[0])

    cur_title = normalize_whitespace(cur_title)
    cur_word_count = word_count(cur_title)
    if cur_word_count <= 4 and (
        not had_hierarchical_separators
        or cur_word_count != word_count(_SEPARATOR_RUN_RE.sub("", orig_title)) - 1
    ):
        cur_title = normalize_whitespace(orig_title)

    for h1 in soup.find_all("h1"):
        heading = get_inner_text(h1)
        if len(heading) <= 10:
            continue
        if not cur_title or text_similarity(heading, cur_title) >= 0.3:
            if heading != cur_title:
                logger.debug("preferring <h1> %r over title %r", heading, cur_title)
            cur_title = heading
            break
    return cur_title


# ---------------------------------------------------------------------------
# Byline
# ---------------------------------------------------------------------------

def clean_byline(text: str | None) -> str | None:
    """Strip a ``By`` / ``Written by`` / ``Author:`` prefix; None when unusable."""
    if not text:
        return None
    cleaned = normalize_whitespace(_BYLINE_PREFIX_RE.sub("", normalize_whitespace(text)))
    if 0 < len(cleaned) < MAX_BYLINE_LENGTH:
        return cleaned
    return None


def _byline_from_dom(sources: _Sources) -> str | None:
    for selector in BYLINE_SELECTORS:
        try:
            node = sources.soup.select_one(selector)
        except ValueError as exc:
            logger.debug("Byline selector %r failed: %s", selector, exc)
            continue
        if node is None:
            continue
        byline = clean_byline(get_inner_text(node))
        if byline:
            return byline
    return None


def _article_author(sources: _Sources) -> str | None:
    value = sources.meta.get("article:author")
    if value and not _URL_RE.match(value):
        return value
    return None


# ---------------------------------------------------------------------------
# Language and direction
# ---------------------------------------------------------------------------

def _lang_from_html(sources: _Sources) -> str | None:
    html_tag = sources.soup.find("html")
    return attr_str(html_tag, "lang").strip() or None


def _lang_from_meta(http_equiv: bool) -> Strategy:
    def strategy(sources: _Sources) -> str | None:
        for meta in sources.soup.find_all("meta"):
            key = attr_str(meta, "http-equiv" if http_equiv else "name").strip().lower()
            if key == ("content-language" if http_equiv else "language"):
                content = attr_str(meta, "content").strip()
                if content:
                    return content
        return None
    return strategy


def _lang_from_text(sources: _Sources) -> str | None:
    if not sources.detect_language:
        return None
    body = sources.soup.find("body")
    sample = get_inner_text(body)[:5000] if body else ""
    if len(sample) < MIN_DETECTION_SAMPLE:
        return None
    DetectorFactory.seed = 0
    try:
        return detect(sample) or None
    except LangDetectException as exc:
        logger.debug("Language detection failed: %s", exc)
        return None


def direction_for_language(lang: str | None) -> str | None:
    """Return ``"rtl"`` for right-to-left languages, else None."""
    if not lang:
        return None
    primary = lang.strip().lower().replace("_", "-").split("-")[0]
    return "rtl" if primary in RTL_LANGUAGES else None


def _dir_from_markup(sources: _Sources) -> str | None:
    for name in ("html", "body"):
        value = attr_str(sources.soup.find(name), "dir").strip()
        if value:
            return value
    return None


# ---------------------------------------------------------------------------
# Strategy chains
# ---------------------------------------------------------------------------

def _from_json_ld(key: str) -> Strategy:
    return lambda sources: sources.json_ld.get(key)


def _from_meta(*keys: str) -> Strategy:
    def strategy(sources: _Sources) -> str | None:
        for key in keys:
            value = sources.meta.get(key)
            if value:
                return value
        return None
    return strategy


# The document title heuristic comes first; meta and JSON-LD titles only fill
# in for documents without a usable <title> or <h1>
TITLE_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("document", lambda sources: get_article_title(sources.soup)),
    ("meta", _from_meta(
        "dc:title", "dcterm:title", "og:title", "weibo:article:title",
        "weibo:webpage:title", "title", "twitter:title", "parsely-title",
    )),
    ("json-ld", _from_json_ld("title")),
)

BYLINE_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("json-ld", _from_json_ld("byline")),
    ("meta", _from_meta("dc:creator", "dcterm:creator", "author", "parsely-author")),
    ("meta", _article_author),
    ("dom", _byline_from_dom),
)

EXCERPT_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("meta", _from_meta(
        "dc:description", "dcterm:description", "og:description",
        "weibo:article:description", "weibo:webpage:description",
        "description", "twitter:description",
    )),
    ("json-ld", _from_json_ld("excerpt")),
)

SITE_NAME_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("json-ld", _from_json_ld("site_name")),
    ("meta", _from_meta("og:site_name")),
)

PUBLISHED_TIME_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("json-ld", _from_json_ld("published_time")),
    ("meta", _from_meta("article:published_time", "parsely-pub-date")),
)

LANG_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("html", _lang_from_html),
    ("meta", _lang_from_meta(http_equiv=True)),
    ("meta", _lang_from_meta(http_equiv=False)),
    ("detected", _lang_from_text),
)


def _resolve(
    strategies: tuple[tuple[str, Strategy], ...],
    sources: _Sources,
) -> tuple[str | None, str | None]:
    """Return ``(value, source name)`` of the first strategy with a value."""
    for source, strategy in strategies:
        value = strategy(sources)
        if value and value.strip():
            return html.unescape(value.strip()), source
    return None, None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_metadata(
    soup: BeautifulSoup,
    *,
    disable_json_ld: bool = False,
    detect_language: bool = False,
) -> ArticleMetadata:
    """Extract all available metadata from *soup*.

    Run this before ``<script>`` elements are stripped, otherwise JSON-LD is
    gone.  The soup is not modified.
    """
    json_ld = {} if disable_json_ld else extract_json_ld(soup)
    sources = _Sources(
        soup=soup,
        meta=collect_meta_tags(soup),
        json_ld=json_ld,
        detect_language=detect_language,
    )

    title, _ = _resolve(TITLE_STRATEGIES, sources)
    byline, byline_source = _resolve(BYLINE_STRATEGIES, sources)
    excerpt, _ = _resolve(EXCERPT_STRATEGIES, sources)
    site_name, _ = _resolve(SITE_NAME_STRATEGIES, sources)
    published_time, _ = _resolve(PUBLISHED_TIME_STRATEGIES, sources)
    lang, lang_source = _resolve(LANG_STRATEGIES, sources)
    direction = _dir_from_markup(sources) or direction_for_language(lang)

    if byline_source == "dom":
        logger.debug("byline taken from body markup: %r", byline)
    if lang_source == "detected":
        logger.debug("language detected from text: %s", lang)

    return ArticleMetadata(
        title=title or "",
        byline=byline,
        byline_source=byline_source,
        excerpt=excerpt,
        site_name=site_name,
        published_time=published_time,
        lang=lang,
        dir=direction,
        meta=sources.meta,
        json_ld=json_ld,
    )
