"""Extraction options and YAML option profiles.

Usage::

    from readerly.config import ReadabilityOptions, load_options

    options = ReadabilityOptions(char_threshold=250, keep_classes=True)
    options = load_options("profiles.yaml", profile="news")
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from readerly.errors import ConfigError

DEFAULT_CHAR_THRESHOLD = 500
DEFAULT_NB_TOP_CANDIDATES = 5
DEFAULT_MAX_ATTEMPTS = 5

# Always kept by class cleanup: the wrapper div of the extracted content
DEFAULT_CLASSES_TO_PRESERVE: tuple[str, ...] = ("page",)


@dataclass
class ReadabilityOptions:
    """Knobs for one extraction run.

    Attributes:
        debug:                 Raise the ``readerly`` logger to DEBUG (no
                               behavior change).
        max_elems_to_parse:    Keep only the first N elements of the document
                               (0 = unlimited).
        nb_top_candidates:     Candidates considered when looking for a
                               shared ancestor of the best ones.
        char_threshold:        Minimum text length of an accepted article.
        classes_to_preserve:   Class names surviving class cleanup.
        keep_classes:          Skip class cleanup altogether.
        disable_json_ld:       Ignore ``application/ld+json`` metadata.
        allowed_video_regex:   Pattern replacing the built-in video host list.
        link_density_modifier: Added to the link-density cleaning thresholds.
        max_attempts:          Upper bound on extraction attempts.
        detect_language:       Guess the language with ``langdetect`` when the
                               document does not declare one.
    """

    debug: bool = False
    max_elems_to_parse: int = 0
    nb_top_candidates: int = DEFAULT_NB_TOP_CANDIDATES
    char_threshold: int = DEFAULT_CHAR_THRESHOLD
    classes_to_preserve: list[str] = field(default_factory=list)
    keep_classes: bool = False
    disable_json_ld: bool = False
    allowed_video_regex: str | re.Pattern[str] | None = None
    link_density_modifier: float = 0.0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    detect_language: bool = False

    def __post_init__(self) -> None:
        for name in ("max_elems_to_parse", "char_threshold"):
            if int(getattr(self, name)) < 0:
                raise ConfigError(f"{name} must be >= 0; got {getattr(self, name)!r}")
        if int(self.nb_top_candidates) < 1:
            raise ConfigError(f"nb_top_candidates must be >= 1; got {self.nb_top_candidates!r}")
        if int(self.max_attempts) < 1:
            raise ConfigError(f"max_attempts must be >= 1; got {self.max_attempts!r}")

        if isinstance(self.classes_to_preserve, str):
            self.classes_to_preserve = self.classes_to_preserve.split()
        self.classes_to_preserve = list(
            dict.fromkeys([*DEFAULT_CLASSES_TO_PRESERVE, *self.classes_to_preserve]),
        )

        if isinstance(self.allowed_video_regex, str):
            try:
                self.allowed_video_regex = re.compile(self.allowed_video_regex, re.IGNORECASE)
            except re.error as exc:
                raise ConfigError(
                    f"Invalid allowed_video_regex {self.allowed_video_regex!r}: {exc}",
                ) from exc
        elif self.allowed_video_regex is not None and not isinstance(
            self.allowed_video_regex, re.Pattern,
        ):
            raise ConfigError(
                "allowed_video_regex must be a string or a compiled pattern; "
                f"got {type(self.allowed_video_regex).__name__}",
            )

    @property
    def video_pattern(self) -> re.Pattern[str] | None:
        pattern = self.allowed_video_regex
        return pattern if isinstance(pattern, re.Pattern) else None

    def merged(self, **overrides: Any) -> ReadabilityOptions:
        """Return a copy with *overrides* applied (None values are ignored)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def options_from_dict(data: dict[str, Any]) -> ReadabilityOptions:
    """Build options from a plain mapping, rejecting unknown keys."""
    known = {f.name for f in fields(ReadabilityOptions)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")
    try:
        return ReadabilityOptions(**data)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc


def load_options(path: str | Path, profile: str | None = None) -> ReadabilityOptions:
    """Load options from a YAML file.

    The file holds a ``default`` mapping and, optionally, named profiles whose
    keys override the defaults::

        default:
          char_threshold: 500
        profiles:
          short:
            char_threshold: 100
    """
    try:
        data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read options from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Options file {path} must contain a mapping")

    default = data.get("default") or {}
    profiles = data.get("profiles") or {}
    if not isinstance(default, dict) or not isinstance(profiles, dict):
        raise ConfigError(f"'default' and 'profiles' in {path} must be mappings")

    merged: dict[str, Any] = dict(default)
    if profile is not None:
        chosen = profiles.get(profile)
        if not isinstance(chosen, dict):
            raise ConfigError(f"Profile {profile!r} not found in {path}")
        merged.update(chosen)
    return options_from_dict(merged)
