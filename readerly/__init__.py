"""readerly - find the article in an HTML page.

Quick usage::

    from readerly import parse

    article = parse(html, base_uri="https://example.com/blog/some-post")
    if article is not None:
        print(article.title)
        print(article.text_content)

Cheap pre-check before a full pass::

    from readerly import is_probably_readerable

    if is_probably_readerable(html):
        article = parse(html)
"""

from readerly.config import ReadabilityOptions, load_options
from readerly.errors import ConfigError, InvalidDocumentError, ReadabilityError
from readerly.extractors.readerable import is_probably_readerable
from readerly.items import Article
from readerly.parser import Readability, parse

__version__ = "0.1.0"
__all__ = [
    "Article",
    "ConfigError",
    "InvalidDocumentError",
    "Readability",
    "ReadabilityError",
    "ReadabilityOptions",
    "is_probably_readerable",
    "load_options",
    "parse",
]
