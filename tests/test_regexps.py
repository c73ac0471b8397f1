"""Unit tests for the signal classifier."""

from __future__ import annotations

import re

import pytest

from readerly.extractors import regexps

# ---------------------------------------------------------------------------
# Candidate classification
# ---------------------------------------------------------------------------


class TestUnlikelyCandidates:
    def test_sidebar_is_unlikely(self):
        assert regexps.is_unlikely_candidate("comment-sidebar") is True

    def test_article_overrides_comment(self):
        assert regexps.is_unlikely_candidate("comment-article") is False

    def test_plain_content_is_not_unlikely(self):
        assert regexps.is_unlikely_candidate("story-body main") is False

    @pytest.mark.parametrize("value", ["site-footer", "gdpr-banner", "Menu", "popup"])
    def test_unlikely_values(self, value):
        assert regexps.is_unlikely_candidate(value) is True

    def test_ok_maybe_candidate(self):
        assert regexps.is_ok_maybe_candidate("main-column") is True
        assert regexps.is_ok_maybe_candidate("widget") is False


class TestWeights:
    def test_positive(self):
        assert regexps.has_positive_indicators("entry-content") is True

    def test_negative(self):
        assert regexps.has_negative_indicators("share-widget") is True

    def test_hid_token(self):
        assert regexps.has_negative_indicators("hid") is True
        assert regexps.has_negative_indicators("hidalgo") is False

    def test_extraneous(self):
        assert regexps.is_extraneous("print-version") is True


class TestBylineAndLinks:
    def test_byline_ignores_whitespace(self):
        assert regexps.is_byline("written by") is True
        assert regexps.is_byline("post-author") is True
        assert regexps.is_byline("headline") is False

    def test_next_and_prev_links(self):
        assert regexps.is_next_link("Next page") is True
        assert regexps.is_prev_link("« Older") is True

    def test_share_element(self):
        assert regexps.is_share_element("share-buttons") is True
        assert regexps.is_share_element("sharepoint") is False


# ---------------------------------------------------------------------------
# Videos, words and URLs
# ---------------------------------------------------------------------------


class TestVideos:
    def test_known_hosts(self):
        assert regexps.is_video_url("https://www.youtube.com/embed/abc") is True
        assert regexps.is_video_url("https://player.vimeo.com/video/1") is True

    def test_unknown_host(self):
        assert regexps.is_video_url("https://example.com/video.mp4") is False

    def test_override_pattern_replaces_defaults(self):
        pattern = re.compile(r"//videos\.example\.com", re.IGNORECASE)
        assert regexps.is_video_url("https://videos.example.com/v/1", pattern) is True
        assert regexps.is_video_url("https://www.youtube.com/embed/abc", pattern) is False


class TestWords:
    @pytest.mark.parametrize("text", ["Advertisement", " ad ", "Werbung", "广告"])
    def test_ad_words(self, text):
        assert regexps.is_ad_words(text) is True

    def test_ad_words_need_whole_text(self):
        assert regexps.is_ad_words("Advertisement rates for 2024") is False

    @pytest.mark.parametrize("text", ["Loading...", "loading…", "Chargement"])
    def test_loading_words(self, text):
        assert regexps.is_loading_words(text) is True

    def test_whitespace(self):
        assert regexps.is_whitespace("  \n\t") is True
        assert regexps.is_whitespace("x") is False

    def test_has_content(self):
        assert regexps.has_content(" a ") is True
        assert regexps.has_content("   ") is False


class TestUrls:
    def test_hash_url(self):
        assert regexps.is_hash_url("#section-2") is True
        assert regexps.is_hash_url("#") is False

    def test_b64_data_url(self):
        assert regexps.is_b64_data_url("data:image/png;base64,iVBORw0") is True
        assert regexps.is_b64_data_url("https://example.com/a.png") is False


class TestEmptyInput:
    @pytest.mark.parametrize(
        "predicate",
        [
            regexps.is_unlikely_candidate,
            regexps.is_ok_maybe_candidate,
            regexps.has_positive_indicators,
            regexps.has_negative_indicators,
            regexps.is_byline,
            regexps.is_video_url,
            regexps.is_share_element,
            regexps.is_next_link,
            regexps.is_prev_link,
            regexps.is_ad_words,
            regexps.is_loading_words,
            regexps.is_whitespace,
            regexps.has_content,
            regexps.is_extraneous,
            regexps.is_hash_url,
            regexps.is_b64_data_url,
        ],
    )
    def test_empty_and_none_are_false(self, predicate):
        assert predicate("") is False
        assert predicate(None) is False


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_count_commas_across_scripts(self):
        assert regexps.count_commas("a, b، c，d") == 3

    def test_normalize_whitespace(self):
        assert regexps.normalize_whitespace("  a \n\t b c  ") == "a b c"

    def test_json_ld_article_types(self):
        assert regexps.is_json_ld_article_type("NewsArticle") is True
        assert regexps.is_json_ld_article_type(["Thing", "BlogPosting"]) is True
        assert regexps.is_json_ld_article_type("Recipe") is False
        assert regexps.is_json_ld_article_type(None) is False

    def test_unlikely_roles(self):
        assert "navigation" in regexps.UNLIKELY_ROLES
        assert "main" not in regexps.UNLIKELY_ROLES
