"""Unit tests for the text and tree helpers."""

from __future__ import annotations

from bs4 import BeautifulSoup

from readerly.extractors import dom


def _soup(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "lxml")


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


class TestInnerText:
    def test_normalizes_whitespace(self):
        node = _soup("<div>  Hello \n\n  <b>big</b>\tworld  </div>").div
        assert dom.get_inner_text(node) == "Hello big world"

    def test_raw_text_is_only_trimmed(self):
        node = _soup("<div>  a \n b  </div>").div
        assert dom.get_inner_text(node, normalize_spaces=False) == "a \n b"

    def test_comments_do_not_count(self):
        node = _soup("<div>text<!-- hidden note --></div>").div
        assert dom.get_inner_text(node) == "text"

    def test_none_is_empty(self):
        assert dom.get_inner_text(None) == ""


class TestLinkDensity:
    def test_half_links(self):
        node = _soup('<p>abcde<a href="#">fghij</a></p>').p
        assert dom.get_link_density(node) == 0.5

    def test_empty_node_is_zero(self):
        node = _soup("<p></p>").p
        assert dom.get_link_density(node) == 0.0

    def test_no_links(self):
        node = _soup("<p>plain text only</p>").p
        assert dom.get_link_density(node) == 0.0


class TestTextSimilarity:
    def test_identical(self):
        assert dom.text_similarity("Hello World", "hello world") == 1.0

    def test_both_empty(self):
        assert dom.text_similarity("", "") == 1.0

    def test_one_empty(self):
        assert dom.text_similarity("", "words here") == 0.0

    def test_partial_overlap(self):
        # {a, b, c} vs {b, c, d}: 2 shared of 4
        assert dom.text_similarity("a b c", "b c d") == 0.5


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestPhrasingContent:
    def test_tag_names_case_insensitive(self):
        assert dom.is_phrasing_content("SPAN") is True
        assert dom.is_phrasing_content("div") is False

    def test_link_with_inline_children(self):
        node = _soup('<a href="#"><em>x</em> y</a>').a
        assert dom.is_phrasing_content(node) is True

    def test_link_with_block_child(self):
        soup = _soup('<a href="#">x</a>')
        soup.a.append(soup.new_tag("ul"))
        assert dom.is_phrasing_content(soup.a) is False

    def test_div_with_inline_children(self):
        node = _soup("<div><em>x</em> y</div>").div
        assert dom.is_phrasing_content(node) is True

    def test_div_and_span_with_block_child(self):
        soup = _soup("<div>x</div><span>y</span>")
        soup.div.append(soup.new_tag("p"))
        soup.span.append(soup.new_tag("table"))
        assert dom.is_phrasing_content(soup.div) is False
        assert dom.is_phrasing_content(soup.span) is False

    def test_inline_div_does_not_join_paragraph(self):
        soup = _soup("<div><em>x</em></div><span>y</span>")
        assert dom.can_join_paragraph(soup.div) is False
        assert dom.can_join_paragraph(soup.span) is True

    def test_text_node(self):
        text = _soup("<p>hello</p>").p.contents[0]
        assert dom.is_phrasing_content(text) is True


class TestVisibility:
    def test_display_none(self):
        assert dom.is_node_visible(_soup('<div style="display: none">x</div>').div) is False

    def test_visibility_hidden(self):
        assert dom.is_node_visible(_soup('<div style="visibility:hidden">x</div>').div) is False

    def test_hidden_attribute(self):
        assert dom.is_node_visible(_soup("<div hidden>x</div>").div) is False

    def test_aria_hidden(self):
        assert dom.is_node_visible(_soup('<div aria-hidden="true">x</div>').div) is False

    def test_aria_hidden_fallback_image(self):
        node = _soup('<span class="fallback-image" aria-hidden="true">x</span>').span
        assert dom.is_node_visible(node) is True

    def test_plain_node(self):
        assert dom.is_node_visible(_soup("<div>x</div>").div) is True


class TestStructure:
    def test_single_image(self):
        node = _soup('<div><figure><img src="a.png"></figure></div>').div
        assert dom.is_single_image(node) is True

    def test_image_with_caption_text(self):
        node = _soup('<div><img src="a.png"> caption</div>').div
        assert dom.is_single_image(node) is False

    def test_element_without_content(self):
        assert dom.is_element_without_content(_soup("<div> <br> <hr> </div>").div) is True
        assert dom.is_element_without_content(_soup("<div><span></span></div>").div) is False
        assert dom.is_element_without_content(_soup('<div><img src="a.png"></div>').div) is False

    def test_single_tag_inside(self):
        assert dom.has_single_tag_inside_element(_soup("<div> <p>x</p> </div>").div, "p") is True
        assert dom.has_single_tag_inside_element(_soup("<div>text <p>x</p></div>").div, "p") is False

    def test_child_block_element(self):
        assert dom.has_child_block_element(_soup("<div><span><p>x</p></span></div>").div) is True
        assert dom.has_child_block_element(_soup("<div><span>x</span></div>").div) is False


# ---------------------------------------------------------------------------
# Tree walking
# ---------------------------------------------------------------------------


class TestTreeWalking:
    def test_get_next_node_document_order(self):
        soup = _soup("<div id='a'><p id='b'><span id='c'></span></p><p id='d'></p></div>")
        order = []
        node = soup.find(id="a")
        while node is not None:
            order.append(node.get("id"))
            node = dom.get_next_node(node)
        assert order == ["a", "b", "c", "d"]

    def test_get_next_node_skipping_children(self):
        soup = _soup("<div><p id='b'><span id='c'></span></p><p id='d'></p></div>")
        assert dom.get_next_node(soup.find(id="b"), ignore_self_and_kids=True).get("id") == "d"

    def test_remove_and_get_next(self):
        soup = _soup("<div><p id='b'>x</p><p id='d'>y</p></div>")
        nxt = dom.remove_and_get_next(soup.find(id="b"))
        assert nxt.get("id") == "d"
        assert soup.find(id="b") is None

    def test_ancestors_with_depth(self):
        soup = _soup("<div><section><p><em>x</em></p></section></div>")
        ancestors = dom.get_node_ancestors(soup.em, max_depth=2)
        assert [a.name for a in ancestors] == ["p", "section"]

    def test_has_ancestor_tag_depth(self):
        soup = _soup("<table><tr><td><div><div><div><p>x</p></div></div></div></td></tr></table>")
        assert dom.has_ancestor_tag(soup.p, "table") is False
        assert dom.has_ancestor_tag(soup.p, "table", 0) is True

    def test_has_ancestor_tag_predicate(self):
        soup = _soup("<table class='data'><tr><td><p>x</p></td></tr></table>")
        assert dom.has_ancestor_tag(soup.p, "table", 0, lambda t: "data" in t.get("class", [])) is True
        assert dom.has_ancestor_tag(soup.p, "table", 0, lambda t: False) is False

    def test_set_node_tag_keeps_children(self):
        soup = _soup("<div class='x'><b>bold</b></div>")
        node = dom.set_node_tag(soup.div, "P")
        assert node.name == "p"
        assert node.get("class") == ["x"]
        assert node.b.get_text() == "bold"

    def test_get_class_id(self):
        node = _soup("<div class='a b' id='main'></div>").div
        assert dom.get_class_id(node) == "a b main"
