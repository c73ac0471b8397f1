"""Golden fixture cases: loading and verification.

A case is a directory holding::

    source.html               the input document
    expected.html             the expected article content
    expected-metadata.json    title, byline, dir, excerpt, siteName,
                              publishedTime, lang, readerable

Content is compared structurally (whitespace-normalized text plus the
sequence of element names) since serialization differs between parsers.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from bs4 import BeautifulSoup
from pydantic import ValidationError

from readerly.config import ReadabilityOptions
from readerly.errors import ReadabilityError
from readerly.extractors.readerable import is_probably_readerable
from readerly.extractors.regexps import normalize_whitespace
from readerly.items import ExpectedMetadata
from readerly.parser import parse

logger = logging.getLogger(__name__)

# URI every fixture document is parsed as
FIXTURE_BASE_URI = "http://fakehost/test/page.html"

SOURCE_FILE = "source.html"
EXPECTED_CONTENT_FILE = "expected.html"
EXPECTED_METADATA_FILE = "expected-metadata.json"


@dataclass
class FixtureCase:
    name: str
    path: Path
    source: str
    expected_content: str
    expected_metadata: ExpectedMetadata


@dataclass
class CaseResult:
    name: str
    problems: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.problems


@dataclass
class ContentStructure:
    text: str
    tags: list[str]


def content_structure(html: str) -> ContentStructure:
    """Return the normalized text and element-name sequence of an HTML fragment."""
    soup = BeautifulSoup(html or "", "lxml")
    root = soup.body or soup
    return ContentStructure(
        text=normalize_whitespace(root.get_text()),
        tags=[tag.name for tag in root.find_all(True)],
    )


def load_case(path: str | Path) -> FixtureCase:
    """Load the fixture case stored in directory *path*.

    Raises:
        ReadabilityError: a file is missing or the metadata is malformed.
    """
    path = Path(path)
    try:
        source = (path / SOURCE_FILE).read_text(encoding="utf-8")
        expected_content = (path / EXPECTED_CONTENT_FILE).read_text(encoding="utf-8")
        raw_metadata = json.loads((path / EXPECTED_METADATA_FILE).read_text(encoding="utf-8"))
        expected_metadata = ExpectedMetadata.model_validate(raw_metadata)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise ReadabilityError(f"Invalid fixture case {path}: {exc}") from exc
    return FixtureCase(
        name=path.name,
        path=path,
        source=source,
        expected_content=expected_content,
        expected_metadata=expected_metadata,
    )


def discover_cases(root: str | Path, name: str | None = None) -> list[FixtureCase]:
    """Load every case directory under *root* (only *name* when given), sorted by name."""
    root = Path(root)
    directories = sorted(
        p for p in root.iterdir()
        if p.is_dir() and (p / SOURCE_FILE).is_file() and (name is None or p.name == name)
    )
    return [load_case(p) for p in directories]


def verify_case(case: FixtureCase, options: ReadabilityOptions | None = None) -> CaseResult:
    """Run extraction on *case* and list every difference from the expectations."""
    result = CaseResult(name=case.name)
    article = parse(case.source, base_uri=FIXTURE_BASE_URI, options=options)

    if article is None:
        result.problems.append("no article extracted")
    else:
        expected = content_structure(case.expected_content)
        actual = content_structure(article.content or "")
        if expected.text != actual.text:
            result.problems.append("content text differs")
        if expected.tags != actual.tags:
            result.problems.append(
                f"content structure differs ({len(expected.tags)} expected elements, "
                f"{len(actual.tags)} extracted)",
            )
    result.problems.extend(case.expected_metadata.mismatches(article))

    expected_readerable = case.expected_metadata.readerable
    if expected_readerable is not None:
        actual_readerable = is_probably_readerable(case.source)
        if actual_readerable != expected_readerable:
            result.problems.append(
                f"readerable: expected {expected_readerable}, got {actual_readerable}",
            )

    if result.problems:
        logger.debug("case %s failed: %s", case.name, "; ".join(result.problems))
    return result
