"""Cheap pre-check: is the document worth a full extraction pass?

The estimate only reads the tree.  It may disagree with the grabber in both
directions; it exists to skip obviously unsuitable pages quickly.
"""

from __future__ import annotations

import logging
import math

from bs4 import BeautifulSoup, Tag

from readerly.config import ReadabilityOptions

from .dom import get_class_id, get_inner_text, has_ancestor_tag, is_node_visible, tag_name
from .regexps import is_unlikely_candidate

logger = logging.getLogger(__name__)

MIN_NODE_TEXT_LENGTH = 10
MAX_NODE_SCORE = 30.0
UNLIKELY_PENALTY = 5.0

# Minimum content length when no options are given
DEFAULT_MIN_CONTENT_LENGTH = 140

_TAG_MULTIPLIERS: dict[str, float] = {
    "p": 1.0,
    "pre": 1.0,
    "article": 1.2,
    "div": 0.8,
}

# Tags whose text counts towards the total length (article text is already
# counted through its paragraphs).  Only elements reaching the minimum content
# length on their own are counted.
_LENGTH_TAGS: frozenset[str] = frozenset({"p", "pre", "div"})


def min_score_for(options: ReadabilityOptions | None) -> float:
    if options is not None:
        if options.char_threshold <= 50:
            return 10.0
        if options.char_threshold <= 100:
            return 15.0
    return 20.0


def _candidate_nodes(soup: BeautifulSoup) -> list[Tag]:
    return soup.find_all(["p", "pre", "article", "div"])


def is_probably_readerable(
    document: str | bytes | BeautifulSoup,
    options: ReadabilityOptions | None = None,
) -> bool:
    """Return True if *document* probably holds an article.

    Args:
        document: Raw HTML or an already parsed soup (left untouched).
        options:  Extraction options; ``char_threshold`` sets the minimum
                  content length and lowers the score bar for short articles.
    """
    if isinstance(document, BeautifulSoup):
        soup = document
    elif isinstance(document, (str, bytes)):
        soup = BeautifulSoup(document, "lxml")
    else:
        return False

    min_content_length = options.char_threshold if options is not None else DEFAULT_MIN_CONTENT_LENGTH
    min_score = min_score_for(options)

    score = 0.0
    total_length = 0
    for node in _candidate_nodes(soup):
        if not is_node_visible(node):
            continue
        if tag_name(node) == "p" and has_ancestor_tag(node, "li", 0):
            continue
        text_length = len(get_inner_text(node, normalize_spaces=False))
        if text_length < MIN_NODE_TEXT_LENGTH:
            continue

        if is_unlikely_candidate(get_class_id(node)):
            score -= UNLIKELY_PENALTY
            continue

        multiplier = _TAG_MULTIPLIERS[tag_name(node)]
        score += min(multiplier * math.sqrt(text_length), MAX_NODE_SCORE)
        if tag_name(node) in _LENGTH_TAGS and text_length >= min_content_length:
            total_length += text_length

        if score > min_score and total_length >= min_content_length:
            logger.debug("readerable: score=%.1f length=%d", score, total_length)
            return True

    logger.debug(
        "not readerable: score=%.1f (needs > %.1f) length=%d (needs %d)",
        score, min_score, total_length, min_content_length,
    )
    return False
