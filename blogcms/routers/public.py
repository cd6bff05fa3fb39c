from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from blogcms.core.config import settings
from blogcms.db.session import get_session
from blogcms.models.blog import DEFAULT_META_TAGS, Blog
from blogcms.services.blog import BlogService
from blogcms.services.normalizer import resolve
from blogcms.services.pagination import PageInfo

router = APIRouter()


class BlogCard(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str
    category: str
    image: str
    image2: str
    author_name: str
    author_title: Optional[str] = None
    author_bio: Optional[str] = None
    published_date: Optional[date] = None
    created_at: Optional[date] = None


class RelatedBlog(BaseModel):
    title: str
    slug: str
    category: str
    image: str
    image2: str
    published_date: Optional[date] = None
    created_at: Optional[date] = None


class BlogListResponse(BaseModel):
    items: List[BlogCard]
    pagination: PageInfo


class BlogPageResponse(BlogListResponse):
    seo: Dict[str, Any]


def _as_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value else None


def to_card(blog: Blog) -> BlogCard:
    return BlogCard(
        id=blog.id,
        title=blog.title,
        slug=blog.slug,
        excerpt=blog.excerpt,
        category=blog.category,
        image=blog.image,
        image2=blog.image2,
        author_name=blog.author_name,
        author_title=blog.author_title,
        author_bio=blog.author_bio,
        published_date=_as_date(blog.published_date),
        created_at=_as_date(blog.created_at),
    )


def to_related(blog: Blog) -> RelatedBlog:
    return RelatedBlog(
        title=blog.title,
        slug=blog.slug,
        category=blog.category,
        image=blog.image,
        image2=blog.image2,
        published_date=_as_date(blog.published_date),
        created_at=_as_date(blog.created_at),
    )


def site_seo() -> Dict[str, Any]:
    site_url = settings.SITE_URL.rstrip("/")
    description = (
        "Latest electric scooter news, reviews, guides and insights. "
        "Stay updated with the latest in electric mobility and EV technology."
    )
    return {
        "title": "Electric Scooter News, Reviews, Guides and Insights",
        "metaDescription": description,
        "metaTags": "electric scooter, ev news, scooter reviews, electric vehicle, blog",
        "canonicalUrl": f"{site_url}/",
        "ogTitle": f"{settings.PROJECT_NAME} Blog | Latest Electric Scooter News, Reviews & Guides",
        "ogDescription": description,
        "ogImage": f"{site_url}/uploads/og-banner.jpg",
        "ogUrl": f"{site_url}/",
    }


def blog_seo(blog: Blog) -> Dict[str, Any]:
    """Meta tags for a post page, filling gaps left by records saved before their fallbacks existed."""
    values = {
        "title": blog.title,
        "excerpt": blog.excerpt,
        "image": blog.image,
        "metaTitle": blog.meta_title,
        "metaDescription": blog.meta_description,
        "metaTags": blog.meta_tags,
        "canonicalUrl": blog.canonical_url,
        "ogTitle": blog.og_title,
        "ogDescription": blog.og_description,
        "ogImage": blog.og_image,
        "ogUrl": blog.og_url,
        "twitterTitle": blog.twitter_title,
        "twitterDescription": blog.twitter_description,
        "twitterImage": blog.twitter_image,
    }
    page_url = f"{settings.SITE_URL.rstrip('/')}/blogs/{blog.slug}"
    return {
        "title": resolve(values, "metaTitle", "title"),
        "metaDescription": resolve(values, "metaDescription", "excerpt"),
        "metaTags": resolve(values, "metaTags", default=DEFAULT_META_TAGS),
        "canonicalUrl": resolve(values, "canonicalUrl", default=page_url),
        "ogTitle": resolve(values, "ogTitle", "metaTitle", "title"),
        "ogDescription": resolve(values, "ogDescription", "metaDescription", "excerpt"),
        "ogImage": resolve(values, "ogImage", "image"),
        "ogUrl": resolve(values, "ogUrl", default=page_url),
        "twitterTitle": resolve(values, "twitterTitle", "metaTitle", "title"),
        "twitterDescription": resolve(values, "twitterDescription", "metaDescription", "excerpt"),
        "twitterImage": resolve(values, "twitterImage", "image"),
        "blogPostingSchema": blog.blog_posting_schema,
        "authorSchema": blog.author_schema,
        "faqSchema": blog.faq_schema,
    }


def get_blog_service(session: Session = Depends(get_session)) -> BlogService:
    return BlogService(session)


@router.get("/api/blogs", response_model=BlogListResponse)
def list_blogs(page: str = "1", service: BlogService = Depends(get_blog_service)):
    """Active blogs, newest first, PUBLIC_PAGE_SIZE per page"""
    blogs, pagination = service.list_public_page(page, settings.PUBLIC_PAGE_SIZE)
    return BlogListResponse(items=[to_card(blog) for blog in blogs], pagination=pagination)


@router.get("/page/{page}", response_model=BlogPageResponse)
def blog_index_page(page: str, service: BlogService = Depends(get_blog_service)):
    """Index page data for clean /page/N URLs"""
    blogs, pagination = service.list_public_page(page, settings.PUBLIC_PAGE_SIZE)
    return BlogPageResponse(items=[to_card(blog) for blog in blogs], pagination=pagination, seo=site_seo())


@router.get("/blogs/{slug}")
def read_blog(slug: str, service: BlogService = Depends(get_blog_service)):
    blog = service.get_public_by_slug(slug)
    related = service.related(blog, limit=settings.RELATED_LIMIT)
    return {
        "blog": blog,
        "related": [to_related(item) for item in related],
        "seo": blog_seo(blog),
    }


@router.get("/sitemap")
def sitemap(service: BlogService = Depends(get_blog_service)):
    static_pages = [
        {"path": "/", "name": "Home"},
        {"path": "/about", "name": "About"},
        {"path": "/contact", "name": "Contact"},
        {"path": "/privacy-policy", "name": "Privacy Policy"},
        {"path": "/terms-of-use", "name": "Terms of Use"},
    ]
    blogs = [{"path": f"/blogs/{blog.slug}", "name": blog.title} for blog in service.sitemap_entries()]
    return {"staticPages": static_pages, "blogs": blogs}
