"""Tests for the article grabber and its cleaning stage."""

from __future__ import annotations

from bs4 import BeautifulSoup

from readerly.config import ReadabilityOptions
from readerly.extractors.cleaning import ArticleCleaner, clean_classes, simplify_nested_elements
from readerly.extractors.grabber import ArticleGrabber, StrictnessFlags
from readerly.extractors.scoring import ContentScorer

SENTENCE = "Readers enjoy long articles that explain ideas, with clear care and detail."


def _prose(sentences: int = 10) -> str:
    return " ".join([SENTENCE] * sentences)


def _body(html: str):
    soup = BeautifulSoup(f"<html><body>{html}</body></html>", "lxml")
    return soup, soup.body


def _grab(html: str, **options):
    soup, body = _body(html)
    grabber = ArticleGrabber(ReadabilityOptions(**options), new_tag=soup.new_tag)
    return grabber, grabber.grab(body)


# ---------------------------------------------------------------------------
# Strictness flags
# ---------------------------------------------------------------------------


class TestStrictnessFlags:
    def test_relax_order(self):
        flags = StrictnessFlags()
        seen = [flags]
        while (flags := flags.relax()) is not None:
            seen.append(flags)
        assert [(f.strip_unlikely, f.weight_classes, f.clean_conditionally) for f in seen] == [
            (True, True, True),
            (False, True, True),
            (False, False, True),
            (False, False, False),
        ]

    def test_relax_returns_new_instance(self):
        flags = StrictnessFlags()
        flags.relax()
        assert flags.strip_unlikely is True


# ---------------------------------------------------------------------------
# Grabbing
# ---------------------------------------------------------------------------


class TestGrab:
    def test_finds_article_and_wraps_page(self):
        _, result = _grab(f"<div class='menu'><a href='/'>Home</a></div><article><p>{_prose()}</p></article>")
        assert result is not None
        page = result.content.find(id="readability-page-1")
        assert page is not None
        assert page.get("class") == ["page"]
        assert "Home" not in result.content.get_text()
        assert result.flags == StrictnessFlags()

    def test_body_is_not_modified(self):
        soup, body = _body(f"<div class='sidebar'>side</div><div><p>{_prose()}</p></div>")
        before = str(body)
        ArticleGrabber(ReadabilityOptions(), new_tag=soup.new_tag).grab(body)
        assert str(body) == before

    def test_unlikely_override(self):
        html = (
            f"<div class='comment-sidebar'><p>{'Sidebar chatter, nothing more. ' * 20}</p></div>"
            f"<div class='comment-article'><p>{_prose()}</p></div>"
        )
        _, result = _grab(html)
        assert result is not None
        text = result.content.get_text()
        assert "Readers enjoy" in text
        assert "Sidebar chatter" not in text

    def test_none_below_threshold(self):
        grabber, result = _grab("<article><p>Just a short note.</p></article>")
        assert result is None
        assert grabber.attempts
        assert all(a.text_length < 500 for a in grabber.attempts)

    def test_none_for_missing_body(self):
        assert ArticleGrabber().grab(None) is None


class TestRetries:
    def test_monotonic_relaxation(self):
        grabber, result = _grab(f"<div><p>{_prose(2)}</p></div>", char_threshold=100_000)
        assert result is None
        flags = [a.flags for a in grabber.attempts]
        assert flags[0] == StrictnessFlags()
        enabled = [sum((f.strip_unlikely, f.weight_classes, f.clean_conditionally)) for f in flags]
        assert enabled == sorted(enabled, reverse=True)
        assert len(set(enabled)) == len(enabled)

    def test_max_attempts_bound(self):
        grabber, _ = _grab(f"<div><p>{_prose(2)}</p></div>", char_threshold=100_000, max_attempts=2)
        assert len(grabber.attempts) == 2

    def test_retry_recovers_unlikely_content(self):
        # Only a "sidebar" holds prose: the first attempt strips it, the second keeps it
        grabber, result = _grab(f"<div class='sidebar'><p>{_prose()}</p></div>")
        assert result is not None
        assert len(grabber.attempts) == 2
        assert result.flags.strip_unlikely is False


class TestPreparing:
    def test_hidden_nodes_removed(self):
        _, result = _grab(
            f"<article><p>{_prose()}</p><p style='display:none'>Invisible words here.</p></article>",
        )
        assert "Invisible" not in result.content.get_text()

    def test_byline_lifted_out(self):
        grabber, result = _grab(
            f"<article><p class='byline'>By <span itemprop='name'>Jo Writer</span></p>"
            f"<p>{_prose()}</p></article>",
        )
        assert result.byline == "Jo Writer"
        assert "Jo Writer" not in result.content.get_text()

    def test_known_byline_leaves_node(self):
        soup, body = _body(
            f"<article><p class='byline'>By Jo Writer, staff.</p><p>{_prose()}</p></article>",
        )
        grabber = ArticleGrabber(ReadabilityOptions(), byline_known=True, new_tag=soup.new_tag)
        result = grabber.grab(body)
        assert result.byline is None

    def test_title_header_removed_once(self):
        soup, body = _body(
            f"<article><h2>Garden notes for spring</h2><p>{_prose()}</p>"
            f"<h2>Garden notes for spring</h2><p>{_prose()}</p></article>",
        )
        grabber = ArticleGrabber(ReadabilityOptions(), title="Garden notes for spring", new_tag=soup.new_tag)
        result = grabber.grab(body)
        assert len(result.content.find_all("h2")) == 1

    def test_div_with_phrasing_becomes_paragraph(self):
        _, result = _grab(f"<div>{_prose()} <em>end</em></div>")
        assert result is not None
        assert result.content.find("p") is not None

    def test_inline_div_is_not_pulled_into_paragraph(self):
        _, result = _grab(f"<div>{_prose()} <div><em>inline</em> note</div></div>")
        assert result is not None
        assert "inline note" in result.content.get_text()
        for paragraph in result.content.find_all("p"):
            assert paragraph.find(["p", "div"]) is None

    def test_direction_from_ancestor(self):
        _, result = _grab(f"<div dir='rtl'><div><p>{_prose()}</p><p>{_prose()}</p></div></div>")
        assert result.dir == "rtl"

    def test_empty_body_falls_back_to_wrapper(self):
        _, result = _grab(f"{_prose()}", char_threshold=10)
        assert result is not None
        assert "Readers enjoy" in result.content.get_text()


class TestSiblings:
    def test_short_sentence_sibling_joins(self):
        html = (
            f"<div><div id='main'><p>{_prose()}</p><p>{_prose()}</p></div>"
            "<p>A short closing line.</p>"
            "<p>menu</p></div>"
        )
        _, result = _grab(html)
        text = result.content.get_text()
        assert "A short closing line." in text
        assert "menu" not in text


# ---------------------------------------------------------------------------
# Cleaning
# ---------------------------------------------------------------------------


def _cleaner(soup, **kwargs) -> ArticleCleaner:
    return ArticleCleaner(ContentScorer(), soup.new_tag, **kwargs)


class TestCleaning:
    def test_presentational_attributes_removed(self):
        soup = BeautifulSoup(
            "<div><table width='100' border='1'><tr><td style='color:red' align='left'>x</td></tr></table>"
            "<img width='50' src='a.png'></div>",
            "lxml",
        )
        _cleaner(soup).clean_styles(soup.div)
        assert soup.table.attrs == {}
        assert soup.td.attrs == {}
        assert soup.img.get("width") == "50"

    def test_video_embed_survives(self):
        soup = BeautifulSoup(
            "<div><iframe src='https://www.youtube.com/embed/x'></iframe>"
            "<iframe src='https://ads.example.com/x'></iframe></div>",
            "lxml",
        )
        _cleaner(soup).clean(soup.div, "iframe")
        assert [f["src"] for f in soup.find_all("iframe")] == ["https://www.youtube.com/embed/x"]

    def test_custom_video_pattern(self):
        import re

        soup = BeautifulSoup("<div><embed src='https://videos.example.com/1'></div>", "lxml")
        _cleaner(soup, video_pattern=re.compile("videos\\.example\\.com")).clean(soup.div, "embed")
        assert soup.find("embed") is not None

    def test_link_heavy_div_removed(self):
        links = " ".join(f"<a href='/{i}'>Link number {i}</a>" for i in range(10))
        soup = BeautifulSoup(f"<div id='root'><div>{links} and a few words</div></div>", "lxml")
        _cleaner(soup).clean_conditionally(soup.find(id="root"), "div")
        assert soup.find(id="root").find("div") is None

    def test_link_density_modifier_relaxes(self):
        links = " ".join(f"<a href='/{i}'>Link {i}</a>" for i in range(3))
        html = f"<div id='root'><div><p>Short prose {links}</p></div></div>"

        strict = BeautifulSoup(html, "lxml")
        _cleaner(strict).clean_conditionally(strict.find(id="root"), "div")
        assert strict.find(id="root").find("div") is None

        relaxed = BeautifulSoup(html, "lxml")
        _cleaner(relaxed, link_density_modifier=0.5).clean_conditionally(relaxed.find(id="root"), "div")
        assert relaxed.find(id="root").find("div") is not None

    def test_conditional_cleaning_can_be_disabled(self):
        soup = BeautifulSoup("<div id='root'><form><input></form></div>", "lxml")
        _cleaner(soup, clean_conditionally=False).clean_conditionally(soup.find(id="root"), "form")
        assert soup.find("form") is not None

    def test_data_table_survives(self):
        rows = "".join(f"<tr><td><a href='/{i}'>{i}</a></td><td><a href='/x{i}'>x</a></td></tr>" for i in range(12))
        soup = BeautifulSoup(f"<div id='root'><table><thead><tr><th>a</th></tr></thead>{rows}</table></div>", "lxml")
        cleaner = _cleaner(soup)
        cleaner.mark_data_tables(soup.find(id="root"))
        cleaner.clean_conditionally(soup.find(id="root"), "table")
        assert soup.find("table") is not None

    def test_share_widget_removed(self):
        soup = BeautifulSoup(
            f"<div id='root'><article><p>{_prose()}</p><div class='share'>Share this</div></article></div>",
            "lxml",
        )
        _cleaner(soup).prep_article(soup.find(id="root"))
        assert "Share this" not in soup.get_text()

    def test_h1_becomes_h2(self):
        soup = BeautifulSoup(f"<div id='root'><h1>Heading</h1><p>{_prose()}</p></div>", "lxml")
        _cleaner(soup).prep_article(soup.find(id="root"))
        assert soup.find("h1") is None
        assert soup.find("h2").get_text() == "Heading"

    def test_empty_paragraphs_removed(self):
        soup = BeautifulSoup(
            f"<div id='root'><p> </p><p><img src='a.png'></p><p>{_prose()}</p></div>",
            "lxml",
        )
        _cleaner(soup).prep_article(soup.find(id="root"))
        assert len(soup.find_all("p")) == 2

    def test_single_cell_table_unwrapped(self):
        soup = BeautifulSoup(f"<div id='root'><table><tr><td>{_prose()}</td></tr></table></div>", "lxml")
        _cleaner(soup, clean_conditionally=False).prep_article(soup.find(id="root"))
        assert soup.find("table") is None
        assert soup.find(id="root").find("p") is not None

    def test_lazy_image_fixed(self):
        soup = BeautifulSoup("<div><img data-src='/photo.jpg' class='lazy'></div>", "lxml")
        _cleaner(soup).fix_lazy_images(soup.div)
        assert soup.img["src"] == "/photo.jpg"


class TestPostProcessing:
    def test_simplify_nested_divs(self):
        soup = BeautifulSoup(
            "<div id='root'><div class='outer'><div class='inner'><p>text</p></div></div><div></div></div>",
            "lxml",
        )
        root = soup.find(id="root").extract()
        simplify_nested_elements(root)
        assert [d.get("class") for d in root.find_all("div")] == [["outer"]]
        assert root.p.get_text() == "text"

    def test_clean_classes_preserves_listed(self):
        soup = BeautifulSoup("<div class='page extra'><p class='keep lead'>x</p></div>", "lxml")
        clean_classes(soup.div, ["page", "keep"])
        assert soup.div["class"] == ["page"]
        assert soup.p["class"] == ["keep"]

    def test_clean_classes_drops_attribute(self):
        soup = BeautifulSoup("<div class='a'><span class='b'>x</span></div>", "lxml")
        clean_classes(soup.div, ["page"])
        assert "class" not in soup.div.attrs
        assert "class" not in soup.span.attrs
