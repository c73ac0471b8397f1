"""readerly.extractors.regexps: signal classifier.

Pure predicates over short strings (class + id, element text, URLs).  Every
pattern is compiled once at import time and never mutated afterwards, so the
module is safe to share between threads.

Usage::

    from readerly.extractors.regexps import is_unlikely_candidate

    is_unlikely_candidate("comment-sidebar")   # True
    is_unlikely_candidate("comment-article")   # False ("article" overrides)
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Compiled patterns (evaluated once at import time)
# ---------------------------------------------------------------------------

UNLIKELY_CANDIDATES_RE = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|"
    r"extra|footer|gdpr|header|legends|menu|related|remark|replies|rss|shoutbox|"
    r"sidebar|skyscraper|social|sponsor|supplemental|ad-break|agegate|pagination|"
    r"pager|popup|yom-remote",
    re.IGNORECASE,
)

OK_MAYBE_ITS_A_CANDIDATE_RE = re.compile(
    r"and|article|body|column|content|main|mathjax|shadow",
    re.IGNORECASE,
)

POSITIVE_RE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|"
    r"blog|story",
    re.IGNORECASE,
)

NEGATIVE_RE = re.compile(
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|"
    r"footer|gdpr|masthead|media|meta|outbrain|promo|related|scroll|share|"
    r"shoutbox|sidebar|skyscraper|sponsor|shopping|tags|widget",
    re.IGNORECASE,
)

EXTRANEOUS_RE = re.compile(
    r"print|archive|comment|discuss|e[\-]?mail|share|reply|all|login|sign|single|"
    r"utility",
    re.IGNORECASE,
)

BYLINE_RE = re.compile(r"byline|author|dateline|writtenby|p-author", re.IGNORECASE)

VIDEOS_RE = re.compile(
    r"//(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq|"
    r"bilibili|live\.bilibili)\.com|(archive|upload\.wikimedia)\.org|"
    r"player\.twitch\.tv)",
    re.IGNORECASE,
)

SHARE_ELEMENTS_RE = re.compile(r"(\b|_)(share|sharedaddy)(\b|_)", re.IGNORECASE)

NEXT_LINK_RE = re.compile(r"(next|weiter|continue|>([^|]|$)|»([^|]|$))", re.IGNORECASE)

PREV_LINK_RE = re.compile(r"(prev|earl|old|new|<|«)", re.IGNORECASE)

TOKENIZE_RE = re.compile(r"\W+")

WHITESPACE_RE = re.compile(r"^\s*$")

HAS_CONTENT_RE = re.compile(r"\S")

NORMALIZE_RE = re.compile(r"\s+")

HASH_URL_RE = re.compile(r"^#.+")

SRCSET_URL_RE = re.compile(r"(\S+)(\s+[\d.]+[xw])?(\s*(?:,|$))")

B64_DATA_URL_RE = re.compile(r"^data:\s*([^\s;,]+)\s*;\s*base64\s*,", re.IGNORECASE)

# Commas as used in Latin, Sindhi, Chinese and various other scripts
COMMAS_RE = re.compile("[\u002C\u060C\uFE50\uFE10\uFE11\u2E41\u2E34\u2E32\uFF0C]")

SENTENCE_END_RE = re.compile(r"\.( |$)")

AD_WORDS_RE = re.compile(
    r"^(ad(vertising|vertisement)?|pub(licité)?|werb(ung)?|广告|Реклама|Anuncio)$",
    re.IGNORECASE,
)

LOADING_WORDS_RE = re.compile(
    r"^((loading|正在加载|Загрузка|chargement|cargando)(…|\.\.\.)?)$",
    re.IGNORECASE,
)

# Schema.org types treated as an article when found in JSON-LD
JSON_LD_ARTICLE_TYPES: frozenset[str] = frozenset(
    {
        "Article",
        "AdvertiserContentArticle",
        "NewsArticle",
        "AnalysisNewsArticle",
        "AskPublicNewsArticle",
        "BackgroundNewsArticle",
        "OpinionNewsArticle",
        "ReportageNewsArticle",
        "ReviewNewsArticle",
        "Report",
        "SatiricalArticle",
        "ScholarlyArticle",
        "MedicalScholarlyArticle",
        "SocialMediaPosting",
        "BlogPosting",
        "LiveBlogPosting",
        "DiscussionForumPosting",
        "TechArticle",
        "APIReference",
    },
)

UNLIKELY_ROLES: frozenset[str] = frozenset(
    {
        "menu",
        "menubar",
        "complementary",
        "navigation",
        "alert",
        "alertdialog",
        "dialog",
    },
)


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def _matches(pattern: re.Pattern[str], text: str | None) -> bool:
    if not text or not isinstance(text, str):
        return False
    return pattern.search(text) is not None


def is_unlikely_candidate(text: str | None) -> bool:
    """Return True if a class/id string marks an unlikely content container.

    The "ok maybe it's a candidate" set overrides the unlikely set in the same
    check: ``comment-article`` is not unlikely, ``comment-sidebar`` is.
    """
    return _matches(UNLIKELY_CANDIDATES_RE, text) and not _matches(
        OK_MAYBE_ITS_A_CANDIDATE_RE, text,
    )


def is_ok_maybe_candidate(text: str | None) -> bool:
    return _matches(OK_MAYBE_ITS_A_CANDIDATE_RE, text)


def has_positive_indicators(text: str | None) -> bool:
    return _matches(POSITIVE_RE, text)


def has_negative_indicators(text: str | None) -> bool:
    return _matches(NEGATIVE_RE, text)


def is_extraneous(text: str | None) -> bool:
    return _matches(EXTRANEOUS_RE, text)


def is_byline(text: str | None) -> bool:
    """Return True for class/id/rel strings that name a byline block.

    Whitespace is ignored so ``written by`` and ``writtenby`` both match.
    """
    if not text or not isinstance(text, str):
        return False
    return BYLINE_RE.search(NORMALIZE_RE.sub("", text)) is not None


def is_video_url(url: str | None, pattern: re.Pattern[str] | None = None) -> bool:
    """Return True if *url* points at an embeddable video host.

    *pattern* replaces the built-in host list when supplied.
    """
    return _matches(pattern or VIDEOS_RE, url)


def is_share_element(text: str | None) -> bool:
    return _matches(SHARE_ELEMENTS_RE, text)


def is_next_link(text: str | None) -> bool:
    return _matches(NEXT_LINK_RE, text)


def is_prev_link(text: str | None) -> bool:
    return _matches(PREV_LINK_RE, text)


def is_ad_words(text: str | None) -> bool:
    """Return True if *text* is nothing but an "advertisement" label."""
    return _matches(AD_WORDS_RE, text.strip() if isinstance(text, str) else text)


def is_loading_words(text: str | None) -> bool:
    """Return True if *text* is nothing but a "loading..." placeholder."""
    return _matches(LOADING_WORDS_RE, text.strip() if isinstance(text, str) else text)


def is_whitespace(text: str | None) -> bool:
    """Return True for non-empty, whitespace-only text."""
    if not text or not isinstance(text, str):
        return False
    return WHITESPACE_RE.match(text) is not None


def has_content(text: str | None) -> bool:
    return _matches(HAS_CONTENT_RE, text)


def is_hash_url(url: str | None) -> bool:
    return _matches(HASH_URL_RE, url)


def is_b64_data_url(url: str | None) -> bool:
    return _matches(B64_DATA_URL_RE, url)


def is_json_ld_article_type(type_name: object) -> bool:
    """Return True if a JSON-LD ``@type`` (string or list) is Article-like."""
    if isinstance(type_name, list):
        return any(is_json_ld_article_type(t) for t in type_name)
    return isinstance(type_name, str) and type_name.strip() in JSON_LD_ARTICLE_TYPES


def has_sentence_end(text: str | None) -> bool:
    return _matches(SENTENCE_END_RE, text)


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------

def normalize_whitespace(text: str) -> str:
    """Collapse every run of whitespace to one ASCII space and trim the ends."""
    return NORMALIZE_RE.sub(" ", text).strip()


def count_commas(text: str) -> int:
    return len(COMMAS_RE.findall(text)) if text else 0


def tokenize(text: str) -> list[str]:
    """Split *text* into lowercase word tokens."""
    return [t for t in TOKENIZE_RE.split(text.lower()) if t]
