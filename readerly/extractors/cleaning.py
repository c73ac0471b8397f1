"""Cleaning of an assembled article subtree.

:class:`ArticleCleaner` runs after sibling assembly (``prep_article``): it
strips presentational markup, drops widgets, forms and link farms, and tidies
what is left.  The post-processing helpers at the bottom run once on the
final content.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

from bs4 import Tag

from .dom import (
    DIV_TO_P_ELEMS,
    can_join_paragraph,
    element_children,
    first_element_child,
    get_char_count,
    get_class_id,
    get_inner_text,
    get_link_density,
    get_next_node,
    get_text_density,
    has_ancestor_tag,
    has_single_tag_inside_element,
    is_element_without_content,
    is_single_image,
    next_element_sibling,
    parent_element,
    remove_and_get_next,
    set_node_tag,
    tag_name,
)
from .regexps import (
    B64_DATA_URL_RE,
    is_ad_words,
    is_loading_words,
    is_share_element,
    is_video_url,
)
from .scoring import ContentScorer

logger = logging.getLogger(__name__)

PRESENTATIONAL_ATTRIBUTES: tuple[str, ...] = (
    "align",
    "background",
    "bgcolor",
    "border",
    "cellpadding",
    "cellspacing",
    "frame",
    "hspace",
    "rules",
    "style",
    "valign",
    "vspace",
)

DEPRECATED_SIZE_ATTRIBUTE_ELEMS: frozenset[str] = frozenset(
    {"table", "th", "td", "hr", "pre"},
)

# Link density above which a low-weight block is treated as navigation
LINK_DENSITY_THRESHOLD = 0.25
# ... and the tolerance for blocks with a positive class weight
WEIGHTED_LINK_DENSITY_THRESHOLD = 0.5

# Share widgets longer than this are kept (they probably hold real text)
SHARE_ELEMENT_THRESHOLD = 500

_TEXTISH_TAGS: tuple[str, ...] = ("span", "li", "td", *sorted(DIV_TO_P_ELEMS))
_HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")
_DATA_TABLE_DESCENDANTS: tuple[str, ...] = ("col", "colgroup", "tfoot", "thead", "th")

_IMAGE_EXT_RE = re.compile(r"\.(jpg|jpeg|png|webp)", re.IGNORECASE)
_SRCSET_VALUE_RE = re.compile(r"\.(jpg|jpeg|png|webp)\s+\d", re.IGNORECASE)
_SRC_VALUE_RE = re.compile(r"^\s*\S+\.(jpg|jpeg|png|webp)\S*\s*$", re.IGNORECASE)


class ArticleCleaner:
    """Cleans an article subtree for one extraction attempt.

    Args:
        scorer:                Scorer of the attempt (class weights honour its
                               ``weight_classes`` flag).
        new_tag:               Factory for fresh elements.
        clean_conditionally:   Strictness flag enabling heuristic removal.
        video_pattern:         Overrides the built-in video host pattern.
        link_density_modifier: Added to both link-density thresholds.
    """

    def __init__(
        self,
        scorer: ContentScorer,
        new_tag: Callable[[str], Tag],
        *,
        clean_conditionally: bool = True,
        video_pattern: re.Pattern[str] | None = None,
        link_density_modifier: float = 0.0,
    ) -> None:
        self.scorer = scorer
        self.new_tag = new_tag
        self.clean_conditionally_enabled = clean_conditionally
        self.video_pattern = video_pattern
        self.link_density_modifier = link_density_modifier
        self._data_tables: dict[int, Tag] = {}

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def prep_article(self, article: Tag) -> None:
        """Clean *article* in place."""
        self.clean_styles(article)
        self.mark_data_tables(article)
        self.fix_lazy_images(article)

        self.clean_conditionally(article, "form")
        self.clean_conditionally(article, "fieldset")
        for tag in ("object", "embed", "footer", "link", "aside"):
            self.clean(article, tag)

        for child in element_children(article):
            self.clean_matched_nodes(
                child,
                lambda node, match: is_share_element(match)
                and len(get_inner_text(node, normalize_spaces=False)) < SHARE_ELEMENT_THRESHOLD,
            )

        for tag in ("iframe", "input", "textarea", "select", "button"):
            self.clean(article, tag)
        self.clean_headers(article)

        self.clean_conditionally(article, "table")
        self.clean_conditionally(article, "ul")
        self.clean_conditionally(article, "div")

        for h1 in article.find_all("h1"):
            set_node_tag(h1, "h2")

        self.remove_empty_paragraphs(article)
        self.remove_breaks_before_paragraphs(article)
        self.unwrap_single_cell_tables(article)
        self.collapse_single_image_wrappers(article)

    # ------------------------------------------------------------------
    # Attribute cleanup
    # ------------------------------------------------------------------

    def clean_styles(self, node: Tag) -> None:
        """Strip presentational attributes from *node* and its descendants."""
        if tag_name(node) == "svg":
            return
        for attr in PRESENTATIONAL_ATTRIBUTES:
            if attr in node.attrs:
                del node[attr]
        if tag_name(node) in DEPRECATED_SIZE_ATTRIBUTE_ELEMS:
            for attr in ("width", "height"):
                if attr in node.attrs:
                    del node[attr]
        for child in element_children(node):
            self.clean_styles(child)

    # ------------------------------------------------------------------
    # Tables and images
    # ------------------------------------------------------------------

    def is_data_table(self, table: Tag) -> bool:
        return id(table) in self._data_tables

    def mark_data_tables(self, root: Tag) -> None:
        """Remember which tables hold data rather than page layout."""
        for table in root.find_all("table"):
            if self._looks_like_data_table(table):
                self._data_tables[id(table)] = table

    def _looks_like_data_table(self, table: Tag) -> bool:
        if str(table.get("role") or "") == "presentation":
            return False
        if str(table.get("datatable") or "") == "0":
            return False
        if table.get("summary"):
            return True

        caption = table.find("caption")
        if caption is not None and caption.contents:
            return True
        if table.find(list(_DATA_TABLE_DESCENDANTS)) is not None:
            return True
        if table.find("table") is not None:
            return False

        rows, columns = _table_size(table)
        if rows == 1 or columns == 1:
            return False
        if rows >= 10 or columns > 4:
            return True
        return rows * columns > 10

    def fix_lazy_images(self, root: Tag) -> None:
        """Promote lazy-loading attributes (``data-src`` & co.) to ``src``/``srcset``."""
        for elem in root.find_all(["img", "picture", "figure"]):
            src = str(elem.get("src") or "")
            match = B64_DATA_URL_RE.match(src) if src else None
            if match:
                if match.group(1) == "image/svg+xml":
                    continue
                src_could_be_removed = any(
                    name != "src" and _IMAGE_EXT_RE.search(_attr_value(value))
                    for name, value in elem.attrs.items()
                )
                # Tiny placeholders only; a real inline image stays
                if src_could_be_removed and len(src) - match.end() < 133:
                    del elem["src"]
                    src = ""

            srcset = str(elem.get("srcset") or "")
            has_source = bool(src) or (bool(srcset) and srcset != "null")
            if has_source and "lazy" not in " ".join(elem.get("class") or []).lower():
                continue

            for name, raw in list(elem.attrs.items()):
                if name in ("src", "srcset", "alt"):
                    continue
                value = _attr_value(raw)
                copy_to = None
                if _SRCSET_VALUE_RE.search(value):
                    copy_to = "srcset"
                elif _SRC_VALUE_RE.match(value):
                    copy_to = "src"
                if copy_to is None:
                    continue
                if tag_name(elem) in ("img", "picture"):
                    elem[copy_to] = value
                elif tag_name(elem) == "figure" and elem.find(["img", "picture"]) is None:
                    img = self.new_tag("img")
                    img[copy_to] = value
                    elem.append(img)

    def unwrap_single_cell_tables(self, root: Tag) -> None:
        for table in root.find_all("table"):
            if table.parent is None:
                continue
            tbody = first_element_child(table) if has_single_tag_inside_element(table, "tbody") else table
            if tbody is None or not has_single_tag_inside_element(tbody, "tr"):
                continue
            row = first_element_child(tbody)
            if row is None or not has_single_tag_inside_element(row, "td"):
                continue
            cell = first_element_child(row)
            if cell is None:
                continue
            all_phrasing = all(can_join_paragraph(child) for child in cell.children)
            set_node_tag(cell, "p" if all_phrasing else "div")
            table.replace_with(cell.extract())

    def collapse_single_image_wrappers(self, root: Tag) -> None:
        """Replace ``div``/``section`` wrappers around a lone image with the image."""
        for wrapper in reversed(root.find_all(["div", "section"])):
            if wrapper.parent is None or wrapper.get("id", "").startswith("readability"):
                continue
            if not is_single_image(wrapper):
                continue
            img = wrapper.find("img")
            if img is not None:
                wrapper.replace_with(img.extract())

    # ------------------------------------------------------------------
    # Removal
    # ------------------------------------------------------------------

    def _is_video_embed(self, node: Tag) -> bool:
        for value in node.attrs.values():
            if is_video_url(_attr_value(value), self.video_pattern):
                return True
        return tag_name(node) == "object" and is_video_url(
            node.decode_contents(), self.video_pattern,
        )

    def clean(self, root: Tag, tag: str) -> None:
        """Remove every *tag* under *root*, sparing embedded videos."""
        is_embed = tag in ("object", "embed", "iframe")
        for node in reversed(root.find_all(tag)):
            if node.parent is None:
                continue
            if is_embed and self._is_video_embed(node):
                continue
            node.decompose()

    def clean_headers(self, root: Tag) -> None:
        for header in reversed(root.find_all(["h1", "h2"])):
            if self.scorer.class_weight(header) < 0:
                logger.debug("removing header with negative weight: %r", get_inner_text(header)[:60])
                header.decompose()

    def clean_matched_nodes(self, root: Tag, predicate: Callable[[Tag, str], bool]) -> None:
        """Remove descendants of *root* for which ``predicate(node, class_id)`` holds."""
        end_marker = get_next_node(root, ignore_self_and_kids=True)
        node = get_next_node(root)
        while node is not None and node is not end_marker:
            if predicate(node, get_class_id(node)):
                node = remove_and_get_next(node)
            else:
                node = get_next_node(node)

    def remove_empty_paragraphs(self, root: Tag) -> None:
        for paragraph in reversed(root.find_all("p")):
            has_media = paragraph.find(["img", "embed", "object", "iframe"]) is not None
            if not has_media and not get_inner_text(paragraph, normalize_spaces=False):
                paragraph.decompose()

    def remove_breaks_before_paragraphs(self, root: Tag) -> None:
        for br in root.find_all("br"):
            sibling = br.next_sibling
            while sibling is not None and not isinstance(sibling, Tag) and not str(sibling).strip():
                sibling = sibling.next_sibling
            if tag_name(sibling) == "p":
                br.decompose()

    def clean_conditionally(self, root: Tag, tag: str) -> None:
        """Remove *tag* blocks that look fishy (ads, link farms, forms...)."""
        if not self.clean_conditionally_enabled:
            return
        for node in reversed(root.find_all(tag)):
            if node.parent is None:
                continue
            if self._should_remove_conditionally(node, tag):
                logger.debug(
                    "conditionally removing <%s %s>", tag, get_class_id(node).strip(),
                )
                node.decompose()

    def _should_remove_conditionally(self, node: Tag, tag: str) -> bool:
        is_list = tag in ("ul", "ol")
        if not is_list:
            list_length = sum(len(get_inner_text(lst)) for lst in node.find_all(["ul", "ol"]))
            text_length = len(get_inner_text(node))
            is_list = bool(text_length) and list_length / text_length > 0.9

        if tag == "table" and self.is_data_table(node):
            return False
        if has_ancestor_tag(node, "table", -1, self.is_data_table):
            return False
        if has_ancestor_tag(node, "code"):
            return False
        if any(self.is_data_table(t) for t in node.find_all("table")):
            return False

        weight = self.scorer.class_weight(node)
        if weight < 0:
            return True

        if get_char_count(node, ",") >= 10:
            return False

        p_count = len(node.find_all("p"))
        img_count = len(node.find_all("img"))
        li_count = len(node.find_all("li")) - 100
        input_count = len(node.find_all("input"))
        heading_density = get_text_density(node, _HEADING_TAGS)

        embed_count = 0
        for embed in node.find_all(["object", "embed", "iframe"]):
            if self._is_video_embed(embed):
                return False
            embed_count += 1

        inner_text = get_inner_text(node)
        if is_ad_words(inner_text) or is_loading_words(inner_text):
            return True

        content_length = len(inner_text)
        link_density = get_link_density(node)
        text_density = get_text_density(node, _TEXTISH_TAGS)
        is_figure_child = has_ancestor_tag(node, "figure")

        reasons: list[str] = []
        if not is_figure_child and img_count > 1 and p_count / img_count < 0.5:
            reasons.append("bad p to img ratio")
        if not is_list and li_count > p_count:
            reasons.append("too many li's outside of a list")
        if input_count > p_count // 3:
            reasons.append("too many inputs per p")
        if (
            not is_list
            and not is_figure_child
            and heading_density < 0.9
            and content_length < 25
            and (img_count == 0 or img_count > 2)
            and link_density > 0
        ):
            reasons.append("suspiciously short")
        if not is_list and weight < 25 and link_density > LINK_DENSITY_THRESHOLD + self.link_density_modifier:
            reasons.append("low weight and a little linky")
        if weight >= 25 and link_density > WEIGHTED_LINK_DENSITY_THRESHOLD + self.link_density_modifier:
            reasons.append("high weight and mostly links")
        if (embed_count == 1 and content_length < 75) or embed_count > 1:
            reasons.append("suspicious embed")
        if img_count == 0 and text_density == 0:
            reasons.append("no useful content")

        if reasons:
            logger.debug("clean_conditionally <%s>: %s", tag, ", ".join(reasons))

        # Simple lists of images are allowed to stay
        if is_list and reasons:
            if any(len(element_children(child)) > 1 for child in element_children(node)):
                return True
            if img_count == len(node.find_all("li")):
                return False
        return bool(reasons)


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------

def simplify_nested_elements(root: Tag) -> None:
    """Drop empty ``div``/``section`` blocks and unwrap single-child nesting."""
    node: Tag | None = root
    while node is not None:
        if (
            parent_element(node) is not None
            and tag_name(node) in ("div", "section")
            and not str(node.get("id") or "").startswith("readability")
        ):
            if is_element_without_content(node):
                node = remove_and_get_next(node)
                continue
            if has_single_tag_inside_element(node, "div") or has_single_tag_inside_element(
                node, "section",
            ):
                child = first_element_child(node)
                if child is not None:
                    for name, value in node.attrs.items():
                        child[name] = value
                    node.replace_with(child.extract())
                    node = child
                    continue
        node = get_next_node(node)


def clean_classes(node: Tag, classes_to_preserve: list[str]) -> None:
    """Remove every class of *node* and its descendants not in *classes_to_preserve*."""
    raw = node.get("class")
    classes = raw if isinstance(raw, list) else str(raw or "").split()
    kept = [cls for cls in classes if cls in classes_to_preserve]
    if kept:
        node["class"] = kept
    elif "class" in node.attrs:
        del node["class"]
    child = first_element_child(node)
    while child is not None:
        clean_classes(child, classes_to_preserve)
        child = next_element_sibling(child)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _attr_value(value: object) -> str:
    if isinstance(value, list):
        return " ".join(str(v) for v in value)
    return str(value or "")


def _table_size(table: Tag) -> tuple[int, int]:
    rows = 0
    columns = 0
    for tr in table.find_all("tr"):
        try:
            rows += int(tr.get("rowspan") or 0) or 1
        except ValueError:
            rows += 1
        row_columns = 0
        for cell in tr.find_all("td"):
            try:
                row_columns += int(cell.get("colspan") or 0) or 1
            except ValueError:
                row_columns += 1
        columns = max(columns, row_columns)
    return rows, columns
