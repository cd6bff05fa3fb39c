"""
Turns one raw tabular row (CSV or admin form) into column values for the Blog table.

Rows are keyed by the public attribute names (``title``, ``isActive``,
``metaTitle``, ...). Blank cells count as absent. A row that cannot yield a
complete record is skipped with a reason code instead of raising.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from blogcms.core.clock import utcnow
from blogcms.core.config import settings
from blogcms.core.errors import MalformedStructuredData
from blogcms.models.blog import (
    DEFAULT_AUTHOR_BIO,
    DEFAULT_AUTHOR_NAME,
    DEFAULT_AUTHOR_TITLE,
    DEFAULT_CATEGORY,
    DEFAULT_IMAGE,
    DEFAULT_META_TAGS,
)

logger = logging.getLogger(__name__)

# attribute name -> Blog column
CSV_COLUMNS = {
    "slug": "slug",
    "title": "title",
    "excerpt": "excerpt",
    "content": "content",
    "category": "category",
    "image": "image",
    "image2": "image2",
    "image3": "image3",
    "isActive": "is_active",
    "publishedDate": "published_date",
    "authorName": "author_name",
    "authorTitle": "author_title",
    "authorBio": "author_bio",
    "metaTitle": "meta_title",
    "metaDescription": "meta_description",
    "metaTags": "meta_tags",
    "canonicalUrl": "canonical_url",
    "blogPostingSchema": "blog_posting_schema",
    "authorSchema": "author_schema",
    "faqSchema": "faq_schema",
    "ogTitle": "og_title",
    "ogDescription": "og_description",
    "ogImage": "og_image",
    "ogUrl": "og_url",
    "twitterTitle": "twitter_title",
    "twitterDescription": "twitter_description",
    "twitterImage": "twitter_image",
}

STRUCTURED_DATA_FIELDS = ("blogPostingSchema", "authorSchema", "faqSchema")

# Skip reasons
MISSING_TITLE = "missing_title"
MISSING_SLUG_AND_TITLE = "missing_slug_and_title"
MISSING_CONTENT = "missing_content"
MISSING_EXCERPT = "missing_excerpt"
INVALID_PUBLISHED_DATE = "invalid_published_date"

DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d", "%m/%d/%Y")
EXCERPT_LENGTH = 220


@dataclass
class NormalizeResult:
    record: Optional[Dict[str, Any]] = None
    skip_reason: Optional[str] = None
    title: Optional[str] = None
    dropped_fields: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.record is not None


def _clean(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def derive_slug(title: str) -> str:
    return re.sub(r"[^a-z0-9]", "-", title.strip().lower())


def build_excerpt(html: str, length: int = EXCERPT_LENGTH) -> str:
    text = re.sub(r"<[^>]+>", "", html or "").strip()
    if len(text) <= length:
        return text
    return f"{text[:length].rstrip()}…"


def resolve(values: Mapping[str, Any], *sources: str, default: Any = None) -> Any:
    """First non-empty ``values[source]`` in order, else ``default``."""
    for source in sources:
        value = _clean(values.get(source))
        if value is not None:
            return value
    return default


def parse_bool(value: Any) -> bool:
    if value is True:
        return True
    return isinstance(value, str) and value.strip().lower() == "true"


def parse_published_date(value: Any, now: datetime) -> datetime:
    value = _clean(value)
    if value is None:
        return now
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            for fmt in DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
            else:
                raise ValueError(f"Unrecognised date: {text!r}")
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_structured_data(value: Any, field_name: str) -> Optional[str]:
    """Return the JSON text unchanged if it holds an object or array, None if blank."""
    value = _clean(value)
    if value is None:
        return None
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError) as e:
        raise MalformedStructuredData(field_name, str(e))
    if not isinstance(parsed, (dict, list)):
        raise MalformedStructuredData(field_name, "expected an object or array")
    return value


def _fallback_chains(page_url: str):
    # (attribute, sources tried in order, constant default)
    return (
        ("category", ("category",), DEFAULT_CATEGORY),
        ("image", ("image",), DEFAULT_IMAGE),
        ("image2", ("image2",), DEFAULT_IMAGE),
        ("image3", ("image3",), DEFAULT_IMAGE),
        ("authorName", ("authorName",), DEFAULT_AUTHOR_NAME),
        ("authorTitle", ("authorTitle",), DEFAULT_AUTHOR_TITLE),
        ("authorBio", ("authorBio",), DEFAULT_AUTHOR_BIO),
        ("metaTitle", ("metaTitle", "title"), None),
        ("metaDescription", ("metaDescription", "excerpt"), None),
        ("metaTags", ("metaTags",), DEFAULT_META_TAGS),
        ("canonicalUrl", ("canonicalUrl",), page_url),
        ("ogTitle", ("ogTitle", "metaTitle", "title"), None),
        ("ogDescription", ("ogDescription", "metaDescription", "excerpt"), None),
        ("ogImage", ("ogImage", "image"), None),
        ("ogUrl", ("ogUrl",), page_url),
        ("twitterTitle", ("twitterTitle", "metaTitle", "title"), None),
        ("twitterDescription", ("twitterDescription", "metaDescription", "excerpt"), None),
        ("twitterImage", ("twitterImage", "image"), None),
    )


def normalize_row(
    raw: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    site_url: Optional[str] = None,
) -> NormalizeResult:
    now = now or utcnow()
    site_url = (site_url or settings.SITE_URL).rstrip("/")
    values: Dict[str, Any] = {key: _clean(raw.get(key)) for key in CSV_COLUMNS}

    title = values["title"]
    if title is None:
        reason = MISSING_TITLE if values["slug"] is not None else MISSING_SLUG_AND_TITLE
        return NormalizeResult(skip_reason=reason)
    title = str(title)

    if values["content"] is None:
        return NormalizeResult(skip_reason=MISSING_CONTENT, title=title)

    try:
        published_date = parse_published_date(raw.get("publishedDate"), now)
    except ValueError:
        logger.warning("Invalid publishedDate for %s: %r", title, raw.get("publishedDate"))
        return NormalizeResult(skip_reason=INVALID_PUBLISHED_DATE, title=title)

    slug = str(values["slug"]).lower() if values["slug"] is not None else derive_slug(title)
    values["slug"] = slug
    values["excerpt"] = resolve(values, "excerpt", default=build_excerpt(str(values["content"])))
    # content that is all markup leaves nothing to summarise
    if not values["excerpt"]:
        return NormalizeResult(skip_reason=MISSING_EXCERPT, title=title)

    result = NormalizeResult(title=title)
    for attribute in STRUCTURED_DATA_FIELDS:
        try:
            values[attribute] = parse_structured_data(values[attribute], attribute)
        except MalformedStructuredData as e:
            logger.warning("Invalid %s JSON for %s: %s", attribute, title, e.reason)
            values[attribute] = None
            result.dropped_fields.append(attribute)

    for attribute, sources, default in _fallback_chains(f"{site_url}/blogs/{slug}"):
        values[attribute] = resolve(values, *sources, default=default)

    values["isActive"] = parse_bool(raw.get("isActive"))
    values["publishedDate"] = published_date

    result.record = {column: values[attribute] for attribute, column in CSV_COLUMNS.items()}
    return result
