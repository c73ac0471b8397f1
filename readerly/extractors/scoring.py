"""Content scoring: per-node scores keyed by node identity.

Paragraph-like nodes hand their score to their parent (in full) and their
grandparent (half); the containers that accumulate the most prose become the
article candidates.  Scores are keyed by ``id(node)`` and every record keeps a
reference to its node, so a handle can never be recycled while the scorer is
alive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from bs4 import Tag

from .dom import get_class_id, get_inner_text, get_link_density, parent_element, tag_name
from .regexps import count_commas, has_negative_indicators, has_positive_indicators

logger = logging.getLogger(__name__)

# Paragraphs shorter than this are ignored during propagation
MIN_PARAGRAPH_LENGTH = 25

# Length bonus: one point per 100 characters, up to this cap
MAX_LENGTH_BONUS = 3.0

CLASS_WEIGHT = 25.0

_TAG_BASE_SCORES: dict[str, float] = {
    "div": 5.0,
    "pre": 3.0,
    "td": 3.0,
    "blockquote": 3.0,
    "address": -3.0,
    "ol": -3.0,
    "ul": -3.0,
    "dl": -3.0,
    "dd": -3.0,
    "dt": -3.0,
    "li": -3.0,
    "form": -3.0,
    "h1": -5.0,
    "h2": -5.0,
    "h3": -5.0,
    "h4": -5.0,
    "h5": -5.0,
    "h6": -5.0,
    "th": -5.0,
}


@dataclass
class NodeScore:
    """Score record of one node."""

    node: Tag
    content_score: float
    is_candidate: bool = False


def tag_base_score(node: Tag) -> float:
    return _TAG_BASE_SCORES.get(tag_name(node), 0.0)


def paragraph_score(text: str) -> float:
    """Score a paragraph's text: one point, plus commas, plus length."""
    return 1.0 + count_commas(text) + min(len(text) / 100.0, MAX_LENGTH_BONUS)


class ContentScorer:
    """Accumulates content scores for the nodes of one document.

    Args:
        weight_classes: When False, class and id attributes carry no weight
                        (one of the strictness flags relaxed on retries).
    """

    def __init__(self, weight_classes: bool = True) -> None:
        self.weight_classes = weight_classes
        self._scores: dict[int, NodeScore] = {}

    # ------------------------------------------------------------------
    # Per-node records
    # ------------------------------------------------------------------

    def class_weight(self, node: Tag) -> float:
        """Return the class/id adjustment for *node* (±25 per attribute)."""
        if not self.weight_classes:
            return 0.0
        weight = 0.0
        for attr in ("class", "id"):
            raw = node.get(attr)
            value = " ".join(raw) if isinstance(raw, list) else str(raw or "")
            if not value:
                continue
            if has_negative_indicators(value):
                weight -= CLASS_WEIGHT
            if has_positive_indicators(value):
                weight += CLASS_WEIGHT
        return weight

    def initialize(self, node: Tag) -> float:
        """Give *node* its base score; a no-op for an already scored node."""
        record = self._scores.get(id(node))
        if record is not None:
            return record.content_score
        score = tag_base_score(node) + self.class_weight(node)
        self._scores[id(node)] = NodeScore(node=node, content_score=score)
        return score

    def has(self, node: Tag) -> bool:
        return id(node) in self._scores

    def get(self, node: Tag) -> float:
        record = self._scores.get(id(node))
        return record.content_score if record is not None else 0.0

    def set(self, node: Tag, score: float) -> None:
        self.initialize(node)
        self._scores[id(node)].content_score = score

    def add(self, node: Tag, delta: float) -> float:
        self.initialize(node)
        record = self._scores[id(node)]
        record.content_score += delta
        return record.content_score

    def mark_candidate(self, node: Tag) -> None:
        self.initialize(node)
        self._scores[id(node)].is_candidate = True

    def candidates(self) -> list[NodeScore]:
        return [record for record in self._scores.values() if record.is_candidate]

    def clear(self) -> None:
        self._scores.clear()

    def __len__(self) -> int:
        return len(self._scores)

    # ------------------------------------------------------------------
    # Propagation and selection
    # ------------------------------------------------------------------

    def score_paragraphs(self, elements: list[Tag]) -> None:
        """Propagate each paragraph's score to its parent and grandparent."""
        for element in elements:
            parent = parent_element(element)
            if parent is None:
                continue
            text = get_inner_text(element)
            if len(text) < MIN_PARAGRAPH_LENGTH:
                continue

            score = paragraph_score(text)

            self.mark_candidate(parent)
            self.add(parent, score)

            grandparent = parent_element(parent)
            if grandparent is not None:
                self.mark_candidate(grandparent)
                self.add(grandparent, score / 2.0)

    def select_top_candidates(
        self,
        positions: dict[int, int],
        limit: int = 5,
    ) -> list[Tag]:
        """Return up to *limit* best candidates, best first.

        Each positive candidate's score is discounted by its link density
        (the discounted value is stored back).  Ties keep document order,
        taken from *positions* (``id(node)`` to index).
        """
        ranked: list[tuple[float, int, Tag]] = []
        for record in self.candidates():
            if record.content_score <= 0:
                continue
            discounted = record.content_score * (1.0 - get_link_density(record.node))
            record.content_score = discounted
            position = positions.get(id(record.node), len(positions))
            ranked.append((discounted, position, record.node))

        ranked.sort(key=lambda item: (-item[0], item[1]))
        top = [node for _, _, node in ranked[: max(limit, 1)]]
        if logger.isEnabledFor(logging.DEBUG):
            for score, _, node in ranked[: max(limit, 1)]:
                logger.debug("candidate <%s %s> score=%.2f", tag_name(node), get_class_id(node).strip(), score)
        return top
