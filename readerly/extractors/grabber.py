"""Article grabber: finds and assembles the main content subtree.

One attempt walks the working tree (removing hidden, unlikely and empty
nodes and turning ``div`` soup into paragraphs), scores the paragraphs, picks
a top candidate, gathers its qualifying siblings and cleans the result.  When
the result is too short the grabber starts over from a fresh copy of the
original body with one strictness flag relaxed.

Usage::

    grabber = ArticleGrabber(options, title="Some title")
    result = grabber.grab(soup.body)
    if result is not None:
        print(result.text_length, result.content)
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from bs4 import BeautifulSoup, Tag

from readerly.config import ReadabilityOptions

from .cleaning import ArticleCleaner
from .dom import (
    attr_str,
    can_join_paragraph,
    element_children,
    first_element_child,
    get_class_id,
    get_inner_text,
    get_link_density,
    get_next_node,
    get_node_ancestors,
    has_ancestor_tag,
    has_child_block_element,
    has_single_tag_inside_element,
    is_element_without_content,
    is_node_visible,
    is_whitespace_node,
    parent_element,
    remove_and_get_next,
    set_node_tag,
    tag_name,
    text_similarity,
)
from .regexps import UNLIKELY_ROLES, has_sentence_end, is_byline, is_unlikely_candidate
from .scoring import ContentScorer

logger = logging.getLogger(__name__)

TAGS_TO_SCORE: frozenset[str] = frozenset({"section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre"})

# Siblings appended with one of these tags keep it; anything else becomes a div
ALTER_TO_DIV_EXCEPTIONS: frozenset[str] = frozenset({"div", "article", "section", "p", "ol", "ul"})

_EMPTY_REMOVABLE_TAGS: frozenset[str] = frozenset(
    {"div", "section", "header", "h1", "h2", "h3", "h4", "h5", "h6"},
)

# Alternative candidates needed before a shared ancestor is promoted
MINIMUM_TOP_CANDIDATES = 3

TITLE_DUPLICATE_SIMILARITY = 0.75
MAX_BYLINE_LENGTH = 100


@dataclass(frozen=True)
class StrictnessFlags:
    """Heuristics enabled for one attempt; relaxed one at a time on retries."""

    strip_unlikely: bool = True
    weight_classes: bool = True
    clean_conditionally: bool = True

    def relax(self) -> StrictnessFlags | None:
        """Return the flags with the next one turned off, or None when all are off."""
        for name in ("strip_unlikely", "weight_classes", "clean_conditionally"):
            if getattr(self, name):
                return replace(self, **{name: False})
        return None


@dataclass
class AttemptRecord:
    flags: StrictnessFlags
    text_length: int


@dataclass
class GrabResult:
    """Outcome of a successful grab.

    Attributes:
        content:     ``<div>`` holding ``<div id="readability-page-1" class="page">``.
        text_length: Normalized text length of *content*.
        dir:         First ``dir`` attribute around the top candidate, if any.
        byline:      Byline text lifted out of the body, if one was found.
        flags:       Strictness flags of the accepted attempt.
        attempts:    Every attempt made, accepted one included.
    """

    content: Tag
    text_length: int
    dir: str | None = None
    byline: str | None = None
    flags: StrictnessFlags = field(default_factory=StrictnessFlags)
    attempts: list[AttemptRecord] = field(default_factory=list)


def _default_tag_factory() -> Callable[[str], Tag]:
    return BeautifulSoup("", "lxml").new_tag


class ArticleGrabber:
    """Runs the extraction attempts over one document body.

    Args:
        options:      Extraction options.
        title:        Article title (a heading repeating it is dropped).
        byline_known: A byline already came from metadata; byline-looking
                      nodes are then left in place.
        new_tag:      Factory for fresh elements, normally ``soup.new_tag``.
    """

    def __init__(
        self,
        options: ReadabilityOptions | None = None,
        title: str | None = None,
        byline_known: bool = False,
        new_tag: Callable[[str], Tag] | None = None,
    ) -> None:
        self.options = options or ReadabilityOptions()
        self.title = title or ""
        self.byline_known = byline_known
        self.new_tag = new_tag or _default_tag_factory()
        self.attempts: list[AttemptRecord] = []
        self.byline: str | None = None
        self.dir: str | None = None

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def grab(self, body: Tag | None) -> GrabResult | None:
        """Extract the article from *body*; None when no attempt is long enough.

        *body* itself is never modified: every attempt works on a fresh copy.
        """
        if body is None:
            return None

        self.attempts = []
        flags: StrictnessFlags | None = StrictnessFlags()
        while flags is not None:
            working = copy.copy(body)
            content, top, parent = self._attempt(working, flags)
            text_length = len(get_inner_text(content))
            self.attempts.append(AttemptRecord(flags=flags, text_length=text_length))

            if text_length >= self.options.char_threshold:
                self.dir = self._find_direction(top, parent)
                logger.debug(
                    "attempt %d accepted (%d chars, flags=%s)", len(self.attempts), text_length, flags,
                )
                return GrabResult(
                    content=content,
                    text_length=text_length,
                    dir=self.dir,
                    byline=self.byline,
                    flags=flags,
                    attempts=list(self.attempts),
                )

            logger.debug(
                "attempt %d too short (%d < %d chars, flags=%s)",
                len(self.attempts), text_length, self.options.char_threshold, flags,
            )
            if len(self.attempts) >= self.options.max_attempts:
                break
            flags = flags.relax()

        logger.debug("no article after %d attempt(s)", len(self.attempts))
        return None

    def _attempt(self, root: Tag, flags: StrictnessFlags) -> tuple[Tag, Tag, Tag | None]:
        scorer = ContentScorer(weight_classes=flags.weight_classes)
        elements = self._prepare(root, flags)

        positions = {id(root): 0}
        for index, node in enumerate(root.find_all(True), start=1):
            positions[id(node)] = index

        scorer.score_paragraphs(elements)
        top, parent = self._select_top_candidate(root, scorer, positions)
        content = self._assemble(top, parent, scorer)

        cleaner = ArticleCleaner(
            scorer,
            self.new_tag,
            clean_conditionally=flags.clean_conditionally,
            video_pattern=self.options.video_pattern,
            link_density_modifier=self.options.link_density_modifier,
        )
        cleaner.prep_article(content)
        return self._wrap_page(content), top, parent

    # ------------------------------------------------------------------
    # Preparing
    # ------------------------------------------------------------------

    def _prepare(self, root: Tag, flags: StrictnessFlags) -> list[Tag]:
        """Walk *root* in document order; return the elements to score."""
        elements: list[Tag] = []
        byline_found = self.byline_known
        title_header_removed = False

        node: Tag | None = root
        while node is not None:
            if node is not root:
                match_string = get_class_id(node)

                if not is_node_visible(node):
                    logger.debug("removing hidden <%s %s>", tag_name(node), match_string.strip())
                    node = remove_and_get_next(node)
                    continue

                if attr_str(node, "aria-modal") == "true" and attr_str(node, "role") == "dialog":
                    node = remove_and_get_next(node)
                    continue

                if not byline_found and self._check_byline(node, match_string):
                    byline_found = True
                    node = remove_and_get_next(node)
                    continue

                if not title_header_removed and self._header_duplicates_title(node):
                    title_header_removed = True
                    logger.debug("removing header duplicating the title: %r", get_inner_text(node))
                    node = remove_and_get_next(node)
                    continue

                if flags.strip_unlikely:
                    if (
                        is_unlikely_candidate(match_string)
                        and tag_name(node) not in ("body", "a")
                        and not has_ancestor_tag(node, "table", 0)
                        and not has_ancestor_tag(node, "code", 0)
                    ):
                        logger.debug("removing unlikely candidate <%s %s>", tag_name(node), match_string.strip())
                        node = remove_and_get_next(node)
                        continue
                    if attr_str(node, "role") in UNLIKELY_ROLES:
                        logger.debug("removing <%s> with role %r", tag_name(node), attr_str(node, "role"))
                        node = remove_and_get_next(node)
                        continue

                if tag_name(node) in _EMPTY_REMOVABLE_TAGS and is_element_without_content(node):
                    node = remove_and_get_next(node)
                    continue

            if tag_name(node) in TAGS_TO_SCORE:
                elements.append(node)

            if tag_name(node) == "div":
                self._wrap_phrasing_runs(node)
                child = first_element_child(node)
                if (
                    node is not root
                    and has_single_tag_inside_element(node, "p")
                    and get_link_density(node) < 0.25
                    and child is not None
                ):
                    node.replace_with(child.extract())
                    node = child
                    elements.append(node)
                elif not has_child_block_element(node):
                    set_node_tag(node, "p")
                    elements.append(node)

            node = get_next_node(node)
        return elements

    def _wrap_phrasing_runs(self, div: Tag) -> None:
        """Put runs of inline content directly under *div* into ``<p>`` elements."""
        paragraph: Tag | None = None
        for child in list(div.children):
            if can_join_paragraph(child):
                if paragraph is not None:
                    paragraph.append(child.extract())
                elif not is_whitespace_node(child):
                    paragraph = self.new_tag("p")
                    child.replace_with(paragraph)
                    paragraph.append(child)
            elif paragraph is not None:
                while paragraph.contents and is_whitespace_node(paragraph.contents[-1]):
                    paragraph.contents[-1].extract()
                paragraph = None

    def _check_byline(self, node: Tag, match_string: str) -> bool:
        rel = attr_str(node, "rel")
        itemprop = attr_str(node, "itemprop")
        if not (rel == "author" or "author" in itemprop or is_byline(match_string)):
            return False
        text = get_inner_text(node, normalize_spaces=False)
        if not 0 < len(text) < MAX_BYLINE_LENGTH:
            return False

        # A nested [itemprop=name] holds the name without "By" and dates
        end_marker = get_next_node(node, ignore_self_and_kids=True)
        current = get_next_node(node)
        while current is not None and current is not end_marker:
            if "name" in attr_str(current, "itemprop"):
                text = get_inner_text(current, normalize_spaces=False)
                break
            current = get_next_node(current)

        if self.byline is None:
            self.byline = text
            logger.debug("byline found in body: %r", text)
        return True

    def _header_duplicates_title(self, node: Tag) -> bool:
        if tag_name(node) not in ("h1", "h2") or not self.title:
            return False
        heading = get_inner_text(node, normalize_spaces=False)
        return text_similarity(self.title, heading) > TITLE_DUPLICATE_SIMILARITY

    # ------------------------------------------------------------------
    # Candidate selection
    # ------------------------------------------------------------------

    def _select_top_candidate(
        self,
        root: Tag,
        scorer: ContentScorer,
        positions: dict[int, int],
    ) -> tuple[Tag, Tag]:
        """Return ``(top candidate, its parent)``."""
        top_candidates = scorer.select_top_candidates(positions, self.options.nb_top_candidates)
        top = top_candidates[0] if top_candidates else None

        if top is None or top is root:
            logger.debug("no usable candidate; wrapping the whole body")
            top = self.new_tag("div")
            for child in list(root.contents):
                top.append(child.extract())
            root.append(top)
            scorer.initialize(top)
            return top, root

        top_score = scorer.get(top)
        alternative_ancestors = [
            get_node_ancestors(candidate)
            for candidate in top_candidates[1:]
            if top_score > 0 and scorer.get(candidate) / top_score >= 0.75
        ]
        if len(alternative_ancestors) >= MINIMUM_TOP_CANDIDATES:
            ancestor = parent_element(top)
            while ancestor is not None and ancestor is not root:
                containing = sum(
                    1 for ancestors in alternative_ancestors
                    if any(a is ancestor for a in ancestors)
                )
                if containing >= MINIMUM_TOP_CANDIDATES:
                    top = ancestor
                    break
                ancestor = parent_element(ancestor)
        scorer.initialize(top)

        # Climb while the parents keep scoring well
        ancestor = parent_element(top)
        last_score = scorer.get(top)
        score_threshold = last_score / 3.0
        while ancestor is not None and ancestor is not root:
            if not scorer.has(ancestor):
                ancestor = parent_element(ancestor)
                continue
            parent_score = scorer.get(ancestor)
            if parent_score < score_threshold:
                break
            if parent_score > last_score:
                top = ancestor
                break
            last_score = parent_score
            ancestor = parent_element(ancestor)

        # An only child is as good as its parent
        ancestor = parent_element(top)
        while ancestor is not None and ancestor is not root and len(element_children(ancestor)) == 1:
            top = ancestor
            ancestor = parent_element(top)
        scorer.initialize(top)

        return top, parent_element(top) or root

    # ------------------------------------------------------------------
    # Sibling assembly
    # ------------------------------------------------------------------

    def _assemble(self, top: Tag, parent: Tag, scorer: ContentScorer) -> Tag:
        content = self.new_tag("div")
        top_score = scorer.get(top)
        threshold = max(10.0, top_score * 0.2)
        top_class = attr_str(top, "class")

        for sibling in element_children(parent):
            append = sibling is top
            if not append:
                bonus = 0.0
                if top_class and attr_str(sibling, "class") == top_class:
                    bonus += top_score * 0.2
                if scorer.has(sibling) and scorer.get(sibling) + bonus >= threshold:
                    append = True
                elif tag_name(sibling) == "p":
                    append = _is_qualifying_paragraph(sibling)

            if append:
                if tag_name(sibling) not in ALTER_TO_DIV_EXCEPTIONS:
                    set_node_tag(sibling, "div")
                content.append(sibling.extract())
        return content

    def _wrap_page(self, content: Tag) -> Tag:
        page = self.new_tag("div")
        page["id"] = "readability-page-1"
        page["class"] = ["page"]
        for child in list(content.contents):
            page.append(child.extract())
        content.append(page)
        return content

    def _find_direction(self, top: Tag, parent: Tag | None) -> str | None:
        chain: list[Tag] = [n for n in (parent, top) if n is not None]
        if parent is not None:
            chain.extend(get_node_ancestors(parent))
        for node in chain:
            direction = attr_str(node, "dir").strip()
            if direction:
                return direction
        return None


def _is_qualifying_paragraph(paragraph: Tag) -> bool:
    link_density = get_link_density(paragraph)
    text = get_inner_text(paragraph)
    if len(text) > 80 and link_density < 0.25:
        return True
    return 0 < len(text) < 80 and link_density == 0 and has_sentence_end(text)
