"""Extraction sub-package: classifier, tree helpers, scoring, grabbing and metadata."""

from .grabber import ArticleGrabber, GrabResult, StrictnessFlags
from .metadata import ArticleMetadata, extract_metadata, get_article_title
from .readerable import is_probably_readerable
from .scoring import ContentScorer, NodeScore

__all__ = [
    "ArticleGrabber",
    "ArticleMetadata",
    "ContentScorer",
    "GrabResult",
    "NodeScore",
    "StrictnessFlags",
    "extract_metadata",
    "get_article_title",
    "is_probably_readerable",
]
