"""Text and tree helpers over BeautifulSoup nodes.

All functions accept ``bs4`` nodes (``Tag`` / ``NavigableString``) and never
raise on odd markup: a missing attribute reads as an empty string, a detached
node simply has no ancestors.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import PageElement

from .regexps import count_commas, has_content, normalize_whitespace, tokenize

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

PHRASING_ELEMS: frozenset[str] = frozenset(
    {
        "abbr", "audio", "b", "bdo", "br", "button", "cite", "code", "data",
        "datalist", "dfn", "em", "embed", "i", "img", "input", "kbd", "label",
        "mark", "math", "meter", "noscript", "object", "output", "progress",
        "q", "ruby", "samp", "script", "select", "small", "span", "strong",
        "sub", "sup", "textarea", "time", "var", "wbr",
    },
)

# Phrasing only when every child is phrasing too
_TRANSPARENT_ELEMS: frozenset[str] = frozenset({"a", "del", "ins", "div", "span"})

# A <div> holding none of these (at any depth) can be retagged as <p>
DIV_TO_P_ELEMS: frozenset[str] = frozenset(
    {"blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"},
)

MEDIA_ELEMS: frozenset[str] = frozenset(
    {"img", "picture", "video", "audio", "embed", "object", "iframe", "svg"},
)

_DISPLAY_NONE_RE = re.compile(r"display\s*:\s*none", re.IGNORECASE)
_VISIBILITY_HIDDEN_RE = re.compile(r"visibility\s*:\s*hidden", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------

def attr_str(node: PageElement, name: str) -> str:
    """Return attribute *name* of *node* as a plain string ('' when absent).

    BeautifulSoup returns multi-valued attributes (``class``, ``rel``) as
    lists; those are joined with single spaces.
    """
    if not isinstance(node, Tag):
        return ""
    val = node.get(name)
    if val is None:
        return ""
    if isinstance(val, list):
        return " ".join(str(v) for v in val)
    return str(val)


def get_class_id(node: PageElement) -> str:
    """Return ``"<class> <id>"``, the string the classifier looks at."""
    return f"{attr_str(node, 'class')} {attr_str(node, 'id')}"


def tag_name(node: PageElement | None) -> str:
    if isinstance(node, Tag) and node.name:
        return node.name.lower()
    return ""


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------

def get_inner_text(node: PageElement | None, normalize_spaces: bool = True) -> str:
    """Return the trimmed text of *node* and its descendants.

    Comments, scripts and style sheets do not contribute.  With
    *normalize_spaces* every whitespace run becomes a single space.
    """
    if node is None:
        return ""
    if isinstance(node, NavigableString):
        text = "" if isinstance(node, Comment) else str(node)
    else:
        text = node.get_text()
    text = text.strip()
    return normalize_whitespace(text) if normalize_spaces else text


def get_char_count(node: PageElement, sep: str = ",") -> int:
    text = get_inner_text(node)
    if sep == ",":
        return count_commas(text)
    return text.count(sep)


def word_count(text: str) -> int:
    return len(text.split())


def text_similarity(text_a: str, text_b: str) -> float:
    """Word-level Jaccard similarity of two strings, case-folded.

    Two empty inputs are identical (``1.0``); exactly one empty input shares
    nothing (``0.0``).
    """
    words_a = set(tokenize(text_a or ""))
    words_b = set(tokenize(text_b or ""))
    if not words_a and not words_b:
        return 1.0
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def get_link_density(node: Tag) -> float:
    """Share of *node*'s text that sits inside ``<a>`` descendants."""
    text_length = len(get_inner_text(node))
    if text_length == 0:
        return 0.0
    link_length = sum(len(get_inner_text(a)) for a in node.find_all("a"))
    return link_length / text_length


def get_text_density(node: Tag, tags: Iterable[str]) -> float:
    """Share of *node*'s text found inside descendants named in *tags*."""
    text_length = len(get_inner_text(node))
    if text_length == 0:
        return 0.0
    children_length = sum(len(get_inner_text(child)) for child in node.find_all(list(tags)))
    return children_length / text_length


# ---------------------------------------------------------------------------
# Node classification
# ---------------------------------------------------------------------------

def is_phrasing_content(node: PageElement | str) -> bool:
    """Return True for inline ("phrasing") content.

    Accepts a node or a bare tag name.  Text nodes are phrasing; ``a``,
    ``del``, ``ins``, ``div`` and ``span`` elements are phrasing only when all
    their children are.  A bare tag name is looked up in the fixed set.
    """
    if isinstance(node, NavigableString):
        return not isinstance(node, Comment)
    if isinstance(node, str):
        return node.lower() in PHRASING_ELEMS
    name = tag_name(node)
    if name in _TRANSPARENT_ELEMS:
        return all(is_phrasing_content(child) for child in node.children)
    return name in PHRASING_ELEMS


def can_join_paragraph(node: PageElement) -> bool:
    """Return True for phrasing content that may be moved into a ``<p>``.

    An inline-only ``<div>`` is still a block box, so it never joins one.
    """
    return is_phrasing_content(node) and tag_name(node) != "div"


def is_whitespace_node(node: PageElement) -> bool:
    """Return True for blank text nodes and ``<br>`` elements."""
    if isinstance(node, NavigableString):
        return not str(node).strip()
    return tag_name(node) == "br"


def is_single_image(node: PageElement) -> bool:
    """Return True for an ``<img>`` or a text-free wrapper around exactly one."""
    if tag_name(node) == "img":
        return True
    if not isinstance(node, Tag):
        return False
    children = element_children(node)
    if len(children) != 1 or get_inner_text(node, normalize_spaces=False):
        return False
    return is_single_image(children[0])


def is_node_visible(node: PageElement) -> bool:
    """Return False for nodes hidden by inline style or hidden attributes.

    ``aria-hidden="true"`` is ignored on nodes carrying the ``fallback-image``
    class (Wikimedia math fallbacks).
    """
    if not isinstance(node, Tag):
        return True
    style = attr_str(node, "style")
    if style and (_DISPLAY_NONE_RE.search(style) or _VISIBILITY_HIDDEN_RE.search(style)):
        return False
    if node.has_attr("hidden"):
        return False
    if attr_str(node, "aria-hidden").strip().lower() == "true":
        return "fallback-image" in attr_str(node, "class")
    return True


def is_element_without_content(node: PageElement) -> bool:
    """Return True for an element with no text and nothing but ``<br>``/``<hr>``.

    Media elements, and elements wrapping media, always count as content.
    """
    if not isinstance(node, Tag):
        return False
    if tag_name(node) in MEDIA_ELEMS or node.find(list(MEDIA_ELEMS)) is not None:
        return False
    if get_inner_text(node, normalize_spaces=False):
        return False
    children = element_children(node)
    breaks = len(node.find_all(["br", "hr"]))
    return not children or len(children) == breaks


def has_single_tag_inside_element(node: Tag, tag: str) -> bool:
    """Return True if *node*'s only element child is a *tag* and no text sits beside it."""
    children = element_children(node)
    if len(children) != 1 or tag_name(children[0]) != tag.lower():
        return False
    return not any(
        isinstance(child, NavigableString)
        and not isinstance(child, Comment)
        and has_content(str(child))
        for child in node.children
    )


def has_child_block_element(node: Tag) -> bool:
    """Return True if any descendant is a block-level element."""
    return any(
        tag_name(child) in DIV_TO_P_ELEMS or has_child_block_element(child)
        for child in element_children(node)
    )


# ---------------------------------------------------------------------------
# Tree walking
# ---------------------------------------------------------------------------

def element_children(node: PageElement) -> list[Tag]:
    if not isinstance(node, Tag):
        return []
    return [child for child in node.children if isinstance(child, Tag)]


def first_element_child(node: PageElement) -> Tag | None:
    if not isinstance(node, Tag):
        return None
    for child in node.children:
        if isinstance(child, Tag):
            return child
    return None


def next_element_sibling(node: PageElement) -> Tag | None:
    sibling = node.next_sibling
    while sibling is not None and not isinstance(sibling, Tag):
        sibling = sibling.next_sibling
    return sibling


def parent_element(node: PageElement) -> Tag | None:
    """Return the parent tag, or None at the top of the tree (or a detached root)."""
    parent = node.parent
    if parent is None or isinstance(parent, BeautifulSoup):
        return None
    return parent


def get_next_node(node: Tag, ignore_self_and_kids: bool = False) -> Tag | None:
    """Return the next element in document order.

    With *ignore_self_and_kids* the walk skips *node*'s subtree, which is what
    a caller about to remove *node* wants.
    """
    if not ignore_self_and_kids:
        child = first_element_child(node)
        if child is not None:
            return child
    current: PageElement | None = node
    while current is not None:
        sibling = next_element_sibling(current)
        if sibling is not None:
            return sibling
        current = parent_element(current)
    return None


def remove_and_get_next(node: Tag) -> Tag | None:
    next_node = get_next_node(node, ignore_self_and_kids=True)
    node.decompose()
    return next_node


def get_node_ancestors(node: PageElement, max_depth: int = 0) -> list[Tag]:
    """Return *node*'s ancestors, nearest first; *max_depth* 0 means all."""
    ancestors: list[Tag] = []
    current = parent_element(node)
    while current is not None:
        ancestors.append(current)
        if max_depth and len(ancestors) == max_depth:
            break
        current = parent_element(current)
    return ancestors


def has_ancestor_tag(
    node: PageElement,
    tag: str,
    max_depth: int = 3,
    predicate: Callable[[Tag], bool] | None = None,
) -> bool:
    """Return True if an ancestor within *max_depth* levels is a *tag*.

    A *max_depth* of 0 or less searches all the way up.
    """
    tag = tag.lower()
    depth = 0
    current = parent_element(node)
    while current is not None:
        if max_depth > 0 and depth > max_depth:
            return False
        if tag_name(current) == tag and (predicate is None or predicate(current)):
            return True
        current = parent_element(current)
        depth += 1
    return False


def set_node_tag(node: Tag, name: str) -> Tag:
    """Rename *node* in place, keeping its attributes and children."""
    node.name = name.lower()
    return node
