from typing import Optional
from datetime import datetime
from sqlmodel import Field, SQLModel, Column
from sqlalchemy import Index, Text

from blogcms.core.clock import utcnow

DEFAULT_CATEGORY = "Automobile"
DEFAULT_IMAGE = "/images/ev-logo.png"
DEFAULT_AUTHOR_NAME = "e-scooter.blog Team"
DEFAULT_AUTHOR_TITLE = "EV Specialist"
DEFAULT_AUTHOR_BIO = "Expert in electric vehicles and sustainable mobility solutions."
DEFAULT_META_TAGS = "blog, automobile, technology"


class Blog(SQLModel, table=True):
    __table_args__ = (
        Index("ix_blog_listing", "is_active", "published_date", "created_at", "id"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    # Content
    slug: str = Field(unique=True, index=True)  # URL-friendly, lowercase
    title: str = Field(index=True)
    excerpt: str
    content: str = Field(sa_column=Column(Text, nullable=False))

    # Categorization
    category: str = Field(default=DEFAULT_CATEGORY, index=True)

    # Images
    image: str = DEFAULT_IMAGE
    image2: str = DEFAULT_IMAGE
    image3: str = DEFAULT_IMAGE

    # Status
    is_active: bool = Field(default=True, index=True)
    published_date: datetime = Field(default_factory=utcnow)

    # Author
    author_name: str = DEFAULT_AUTHOR_NAME
    author_title: Optional[str] = DEFAULT_AUTHOR_TITLE
    author_bio: Optional[str] = DEFAULT_AUTHOR_BIO

    # SEO
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    meta_tags: Optional[str] = None
    canonical_url: Optional[str] = None

    # Schema.org structured data (JSON text)
    blog_posting_schema: Optional[str] = Field(default=None, sa_column=Column(Text))
    author_schema: Optional[str] = Field(default=None, sa_column=Column(Text))
    faq_schema: Optional[str] = Field(default=None, sa_column=Column(Text))

    # Open Graph
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    og_image: Optional[str] = None
    og_url: Optional[str] = None

    # Twitter Card
    twitter_title: Optional[str] = None
    twitter_description: Optional[str] = None
    twitter_image: Optional[str] = None

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# Columns an import or an admin edit may overwrite; id, slug and created_at are identity
EDITABLE_FIELDS = tuple(
    name for name in Blog.model_fields if name not in ("id", "slug", "created_at", "updated_at")
)
