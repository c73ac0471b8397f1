"""readerly.parser: the extraction entry point.

Usage::

    from readerly import Readability, parse

    article = parse(html, base_uri="https://example.com/post")
    if article is not None:
        print(article.title, article.length)

    # Keep the grabber around to inspect the attempts it made
    reader = Readability(html, options=ReadabilityOptions(char_threshold=250))
    article = reader.parse()
    print(reader.attempts)
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup, Comment, Tag, UnicodeDammit

from readerly.config import ReadabilityOptions
from readerly.errors import InvalidDocumentError
from readerly.extractors.cleaning import clean_classes, simplify_nested_elements
from readerly.extractors.dom import (
    can_join_paragraph,
    get_inner_text,
    is_whitespace_node,
    set_node_tag,
    tag_name,
)
from readerly.extractors.grabber import ArticleGrabber, AttemptRecord
from readerly.extractors.metadata import ArticleMetadata, extract_metadata
from readerly.extractors.urlnorm import fix_relative_uris, resolve_base_uri
from readerly.items import Article

logger = logging.getLogger(__name__)

_UNWANTED_TAGS: tuple[str, ...] = ("script", "style", "noscript")


def _decode(html: str | bytes) -> str:
    if isinstance(html, str):
        return html
    if isinstance(html, (bytes, bytearray)):
        dammit = UnicodeDammit(bytes(html), is_html=True)
        if dammit.unicode_markup is None:
            raise InvalidDocumentError("Cannot decode document bytes", reason="undecodable")
        return dammit.unicode_markup
    raise InvalidDocumentError(
        f"Expected HTML as str or bytes, got {type(html).__name__}",
        reason="not-text",
    )


class Readability:
    """Extracts the main article of one HTML document.

    The document is parsed on construction; :meth:`parse` mutates that tree,
    so an instance is good for a single extraction.

    Args:
        html:     HTML document as text or bytes (encoding is sniffed).
        base_uri: URL of the document, used to make links absolute.
        options:  Extraction options (defaults when omitted).

    Raises:
        InvalidDocumentError: *html* is not text or holds no element at all.
    """

    def __init__(
        self,
        html: str | bytes,
        base_uri: str | None = None,
        options: ReadabilityOptions | None = None,
    ) -> None:
        markup = _decode(html)
        self.soup = BeautifulSoup(markup, "lxml")
        if self.soup.find(True) is None:
            raise InvalidDocumentError("Document contains no elements", reason="empty")

        self.document_uri = base_uri or None
        self.options = options or ReadabilityOptions()
        self.metadata: ArticleMetadata | None = None
        self.attempts: list[AttemptRecord] = []

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    def parse(self) -> Article | None:
        """Run the extraction; None when no article could be found.

        With ``options.debug`` the ``readerly`` logger runs at DEBUG for the
        duration of this call only.
        """
        if not self.options.debug:
            return self._extract()
        package_logger = logging.getLogger("readerly")
        previous_level = package_logger.level
        package_logger.setLevel(logging.DEBUG)
        try:
            return self._extract()
        finally:
            package_logger.setLevel(previous_level)

    # ------------------------------------------------------------------
    # Extraction steps
    # ------------------------------------------------------------------

    def _extract(self) -> Article | None:
        self._truncate()

        # JSON-LD lives in <script>, so metadata comes before any cleanup
        self.metadata = extract_metadata(
            self.soup,
            disable_json_ld=self.options.disable_json_ld,
            detect_language=self.options.detect_language,
        )
        self._remove_unwanted()
        self._prep_document()

        grabber = ArticleGrabber(
            self.options,
            title=self.metadata.title,
            byline_known=self.metadata.byline_from_metadata,
            new_tag=self.soup.new_tag,
        )
        result = grabber.grab(self.soup.body)
        self.attempts = grabber.attempts
        if result is None:
            logger.info("No article found (%d attempt(s))", len(self.attempts))
            return None

        content = result.content
        self._post_process(content)

        text_content = content.get_text()
        excerpt = self.metadata.excerpt
        if not excerpt:
            first_paragraph = content.find("p")
            if first_paragraph is not None:
                excerpt = get_inner_text(first_paragraph, normalize_spaces=False)

        byline = self.metadata.byline or result.byline
        return Article(
            title=self.metadata.title,
            byline=byline,
            dir=result.dir or self.metadata.dir,
            lang=self.metadata.lang,
            content=content.decode_contents(),
            text_content=text_content,
            excerpt=excerpt,
            site_name=self.metadata.site_name,
            published_time=self.metadata.published_time,
        )

    # ------------------------------------------------------------------
    # Document preparation
    # ------------------------------------------------------------------

    def _truncate(self) -> None:
        limit = self.options.max_elems_to_parse
        if not limit:
            return
        elements = self.soup.find_all(True)
        if len(elements) <= limit:
            return
        logger.warning(
            "Document has %d elements; keeping the first %d", len(elements), limit,
        )
        for element in elements[limit:]:
            if not element.decomposed:
                element.decompose()

    def _remove_unwanted(self) -> None:
        for node in self.soup.find_all(list(_UNWANTED_TAGS)):
            if not node.decomposed:
                node.decompose()
        for comment in self.soup.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()

    def _prep_document(self) -> None:
        if self.soup.body is not None:
            self._replace_brs(self.soup.body)
        for font in self.soup.find_all("font"):
            set_node_tag(font, "span")

    def _replace_brs(self, root: Tag) -> None:
        """Turn runs of two or more ``<br>`` into paragraph breaks.

        ``foo<br>bar<br> <br><br>abc`` becomes ``foo<br>bar<p>abc</p>``.
        """
        for br in root.find_all("br"):
            if br.parent is None:
                continue
            replaced = False
            following = _next_significant(br.next_sibling)
            while tag_name(following) == "br":
                replaced = True
                after = following.next_sibling
                following.decompose()
                following = _next_significant(after)
            if not replaced:
                continue

            paragraph = self.soup.new_tag("p")
            br.replace_with(paragraph)
            sibling = paragraph.next_sibling
            while sibling is not None:
                # Stop at the next <br><br> run
                if tag_name(sibling) == "br" and tag_name(_next_significant(sibling.next_sibling)) == "br":
                    break
                if not can_join_paragraph(sibling):
                    break
                after = sibling.next_sibling
                paragraph.append(sibling.extract())
                sibling = after

            while paragraph.contents and is_whitespace_node(paragraph.contents[-1]):
                paragraph.contents[-1].extract()
            if tag_name(paragraph.parent) == "p":
                set_node_tag(paragraph.parent, "div")

    # ------------------------------------------------------------------
    # Post-processing
    # ------------------------------------------------------------------

    def _post_process(self, content: Tag) -> None:
        base_uri = resolve_base_uri(self.soup, self.document_uri)
        fix_relative_uris(content, base_uri, self.document_uri)
        simplify_nested_elements(content)
        if not self.options.keep_classes:
            clean_classes(content, self.options.classes_to_preserve)


def _next_significant(node):
    """Skip whitespace-only text nodes; return the next meaningful sibling."""
    while node is not None and not isinstance(node, Tag) and not str(node).strip():
        node = node.next_sibling
    return node


def parse(
    html: str | bytes,
    base_uri: str | None = None,
    options: ReadabilityOptions | None = None,
) -> Article | None:
    """Extract the main article of *html*; None when there is none.

    Raises:
        InvalidDocumentError: *html* is not an HTML document at all.
    """
    return Readability(html, base_uri=base_uri, options=options).parse()
