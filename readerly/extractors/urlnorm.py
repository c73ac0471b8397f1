"""Relative-to-absolute URL fixing for extracted content."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, NavigableString, Tag

from .dom import attr_str
from .regexps import SRCSET_URL_RE

logger = logging.getLogger(__name__)

# Media elements whose URL attributes are resolved
MEDIA_TAGS: tuple[str, ...] = ("img", "picture", "figure", "video", "audio", "source")
MEDIA_URL_ATTRIBUTES: tuple[str, ...] = ("src", "poster")


def is_absolute_url(url: str | None) -> bool:
    """Return True if *url* carries both a scheme and a host."""
    if not url:
        return False
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return False
    return bool(parsed.scheme) and bool(parsed.netloc)


def resolve_base_uri(soup: BeautifulSoup, document_uri: str | None) -> str | None:
    """Return the base URI of the document.

    A ``<base href>`` is resolved against *document_uri*; without one the
    document URI itself is the base.  Returns None when nothing absolute can
    be determined.
    """
    base_tag = soup.find("base", href=True)
    href = attr_str(base_tag, "href").strip()
    if href:
        if document_uri:
            return urljoin(document_uri, href)
        if is_absolute_url(href):
            return href
    return document_uri or None


def to_absolute_uri(uri: str, base_uri: str | None, document_uri: str | None = None) -> str:
    """Resolve *uri* against *base_uri*.

    In-page anchors stay relative when the base is the document itself, and
    anything that cannot be resolved is returned unchanged.
    """
    if not base_uri:
        return uri
    if base_uri == document_uri and uri.startswith("#"):
        return uri
    try:
        return urljoin(base_uri, uri)
    except ValueError:
        logger.debug("Cannot resolve %r against %r", uri, base_uri)
        return uri


def _absolute_srcset(srcset: str, base_uri: str | None, document_uri: str | None) -> str:
    return SRCSET_URL_RE.sub(
        lambda m: to_absolute_uri(m.group(1), base_uri, document_uri) + (m.group(2) or "") + m.group(3),
        srcset,
    )


def fix_relative_uris(content: Tag, base_uri: str | None, document_uri: str | None = None) -> None:
    """Make link and media URLs under *content* absolute.

    ``javascript:`` links are replaced by their text (or a ``<span>`` holding
    their children) since they cannot work outside the original page.
    """
    for link in content.find_all("a", href=True):
        href = attr_str(link, "href")
        if href.strip().lower().startswith("javascript:"):
            children = list(link.children)
            if len(children) == 1 and isinstance(children[0], NavigableString):
                link.replace_with(NavigableString(link.get_text()))
            else:
                link.name = "span"
                link.attrs = {}
        elif href:
            link["href"] = to_absolute_uri(href, base_uri, document_uri)

    for media in content.find_all(list(MEDIA_TAGS)):
        for attr in MEDIA_URL_ATTRIBUTES:
            value = attr_str(media, attr)
            if value:
                media[attr] = to_absolute_uri(value, base_uri, document_uri)
        srcset = attr_str(media, "srcset")
        if srcset:
            media["srcset"] = _absolute_srcset(srcset, base_uri, document_uri)
