"""
tests/test_normalizer.py
"""
from __future__ import annotations

from datetime import datetime

import pytest

from blogcms.core.errors import MalformedStructuredData
from blogcms.models.blog import DEFAULT_AUTHOR_NAME, DEFAULT_CATEGORY, DEFAULT_IMAGE, DEFAULT_META_TAGS
from blogcms.services.normalizer import (
    INVALID_PUBLISHED_DATE,
    MISSING_CONTENT,
    MISSING_EXCERPT,
    MISSING_SLUG_AND_TITLE,
    MISSING_TITLE,
    build_excerpt,
    derive_slug,
    normalize_row,
    parse_bool,
    parse_structured_data,
    resolve,
)
from conftest import make_row

NOW = datetime(2024, 5, 1, 9, 30)
SITE = "https://e-scooter.blog"


def _normalize(row):
    return normalize_row(row, now=NOW, site_url=SITE)


# ───────────────────────── slugs ──────────────────────────────────
@pytest.mark.parametrize(
    "slug, expected",
    [
        ("intro-to-scooters", "intro-to-scooters"),
        ("Intro-To-Scooters", "intro-to-scooters"),
        ("  MIXED-case  ", "mixed-case"),
    ],
)
def test_explicit_slug_is_lowercased(slug, expected):
    result = _normalize(make_row(slug=slug))
    assert result.ok
    assert result.record["slug"] == expected


def test_slug_derived_from_title_when_absent():
    result = _normalize(make_row("Hello, World! 2024", slug=None))
    assert result.record["slug"] == "hello--world--2024"


def test_derive_slug_replaces_every_non_alphanumeric():
    assert derive_slug("EV's & You") == "ev-s---you"


# ───────────────────────── skips ──────────────────────────────────
def test_missing_title_is_a_skip_not_an_exception():
    result = _normalize(make_row(title="   ", slug="orphan"))
    assert not result.ok
    assert result.skip_reason == MISSING_TITLE


def test_missing_title_and_slug():
    result = _normalize({"content": "body"})
    assert result.skip_reason == MISSING_SLUG_AND_TITLE


def test_missing_content_is_skipped():
    result = _normalize(make_row(content=""))
    assert result.skip_reason == MISSING_CONTENT
    assert result.title == "Intro to Scooters"


def test_unparseable_published_date_is_skipped():
    result = _normalize(make_row(publishedDate="sometime soon"))
    assert result.skip_reason == INVALID_PUBLISHED_DATE


# ───────────────────────── defaults & fallbacks ───────────────────
def test_minimal_row_gets_every_default():
    result = _normalize({"title": "Bare Post", "content": "<p>Just <b>text</b></p>"})
    record = result.record

    assert record["slug"] == "bare-post"
    assert record["excerpt"] == "Just text"
    assert record["category"] == DEFAULT_CATEGORY
    assert record["image"] == record["image2"] == record["image3"] == DEFAULT_IMAGE
    assert record["author_name"] == DEFAULT_AUTHOR_NAME
    assert record["meta_title"] == "Bare Post"
    assert record["meta_description"] == "Just text"
    assert record["meta_tags"] == DEFAULT_META_TAGS
    assert record["canonical_url"] == f"{SITE}/blogs/bare-post"
    assert record["og_url"] == f"{SITE}/blogs/bare-post"
    assert record["og_image"] == DEFAULT_IMAGE
    assert record["published_date"] == NOW
    assert record["is_active"] is False


def test_social_fields_fall_back_through_meta_fields():
    row = make_row(metaTitle="SEO title", metaDescription="SEO description", image="/uploads/blogs/cover.jpg")
    record = _normalize(row).record

    assert record["og_title"] == record["twitter_title"] == "SEO title"
    assert record["og_description"] == record["twitter_description"] == "SEO description"
    assert record["og_image"] == record["twitter_image"] == "/uploads/blogs/cover.jpg"


def test_explicit_values_win_over_fallbacks():
    row = make_row(ogTitle="OG", twitterTitle="TW", canonicalUrl="https://example.com/x")
    record = _normalize(row).record

    assert record["og_title"] == "OG"
    assert record["twitter_title"] == "TW"
    assert record["canonical_url"] == "https://example.com/x"


def test_resolve_takes_first_non_empty_source():
    values = {"a": "", "b": "   ", "c": "third", "d": "fourth"}
    assert resolve(values, "a", "b", "c", "d") == "third"
    assert resolve(values, "a", "b", default="fallback") == "fallback"
    assert resolve(values, "missing") is None


def test_unknown_columns_are_ignored():
    result = _normalize(make_row(views="1000", legacy_id="42"))
    assert "views" not in result.record
    assert "legacy_id" not in result.record


def test_build_excerpt_truncates_long_text():
    excerpt = build_excerpt("<p>" + "word " * 100 + "</p>", length=20)
    assert excerpt.endswith("…")
    assert len(excerpt) <= 21


# ───────────────────────── isActive ───────────────────────────────
@pytest.mark.parametrize(
    "value, expected",
    [
        ("TRUE", True),
        ("true", True),
        (" True ", True),
        (True, True),
        ("FALSE", False),
        ("yes", False),
        ("1", False),
        ("", False),
        (None, False),
        (1, False),
    ],
)
def test_parse_bool(value, expected):
    assert parse_bool(value) is expected


# ───────────────────────── dates ──────────────────────────────────
@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-10", datetime(2024, 3, 10)),
        ("2024-03-10T08:15:00", datetime(2024, 3, 10, 8, 15)),
        ("2024-03-10T08:15:00Z", datetime(2024, 3, 10, 8, 15)),
        ("2024-03-10T10:15:00+02:00", datetime(2024, 3, 10, 8, 15)),
        ("2024-03-10 08:15:00", datetime(2024, 3, 10, 8, 15)),
        ("03/10/2024", datetime(2024, 3, 10)),
    ],
)
def test_published_date_formats(value, expected):
    assert _normalize(make_row(publishedDate=value)).record["published_date"] == expected


# ───────────────────────── structured data ────────────────────────
def test_valid_structured_data_is_kept_verbatim():
    schema = '{"@context": "https://schema.org", "@type": "BlogPosting"}'
    faq = '[{"@type": "Question", "name": "Range?"}]'
    result = _normalize(make_row(blogPostingSchema=schema, faqSchema=faq))

    assert result.record["blog_posting_schema"] == schema
    assert result.record["faq_schema"] == faq
    assert result.dropped_fields == []


def test_invalid_structured_data_is_dropped_but_row_survives(caplog):
    result = _normalize(make_row(blogPostingSchema="{invalid", authorSchema='{"@type": "Person"}'))

    assert result.ok
    assert result.record["blog_posting_schema"] is None
    assert result.record["author_schema"] == '{"@type": "Person"}'
    assert result.dropped_fields == ["blogPostingSchema"]
    assert "Invalid blogPostingSchema JSON for Intro to Scooters" in caplog.text


def test_scalar_json_is_not_structured_data():
    with pytest.raises(MalformedStructuredData):
        parse_structured_data("42", "faqSchema")
    assert parse_structured_data("   ", "faqSchema") is None


def test_markup_only_content_without_excerpt_is_skipped():
    result = _normalize({"title": "Only markup", "content": "<p><img src='x.png'></p>"})
    assert not result.ok
    assert result.skip_reason == MISSING_EXCERPT
    assert result.title == "Only markup"


def test_markup_only_content_with_explicit_excerpt_is_kept():
    result = _normalize({"title": "Gallery", "content": "<p><img src='x.png'></p>", "excerpt": "Photos"})
    assert result.ok
    assert result.record["excerpt"] == "Photos"
