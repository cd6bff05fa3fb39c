import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from pydantic import BaseModel
from sqlmodel import Session
from starlette.datastructures import UploadFile as StarletteUploadFile

from blogcms.core.config import settings
from blogcms.core.errors import ValidationFailure
from blogcms.db.session import get_session
from blogcms.models.admin_user import AdminUser
from blogcms.models.blog import Blog
from blogcms.routers.auth import get_admin_user
from blogcms.routers.upload import get_image_storage, save_image
from blogcms.services.blog import STATUS_ACTIVE, STATUS_INACTIVE, BlogService
from blogcms.services.importer import import_csv_bytes
from blogcms.services.normalizer import normalize_row
from blogcms.services.pagination import PageInfo
from blogcms.services.storage import ImageStorage

logger = logging.getLogger(__name__)

router = APIRouter()

IMAGE_FIELDS = ("image", "image2", "image3")


class AdminBlogList(BaseModel):
    items: List[Blog]
    pagination: PageInfo
    categories: List[str]
    search: str
    category: str
    status: str


class BulkIds(BaseModel):
    blogIds: List[int] = []


class BulkStatus(BulkIds):
    status: str


def get_blog_service(session: Session = Depends(get_session)) -> BlogService:
    return BlogService(session)


async def _blog_form(request: Request, storage: ImageStorage, existing: Optional[Blog] = None) -> Dict[str, Any]:
    """
    Read the blog form into a raw row for the normalizer.

    Text fields use the attribute names (``title``, ``metaTitle``, ``isActive``...).
    ``customSlug`` overrides the slug, which is otherwise derived from the title.
    On edit, images, status and published date the form leaves out are kept.
    """
    form = await request.form()
    raw: Dict[str, Any] = {key: value for key, value in form.items() if isinstance(value, str)}
    raw["slug"] = raw.pop("customSlug", None) or None

    if existing is None:
        raw.setdefault("isActive", "true")
    else:
        raw.setdefault("isActive", "true" if existing.is_active else "false")
        if not raw.get("publishedDate"):
            raw["publishedDate"] = existing.published_date
        for field in IMAGE_FIELDS:
            raw.setdefault(field, getattr(existing, field))

    # Reject before touching storage
    checked = normalize_row(raw)
    if not checked.ok:
        raise ValidationFailure(f"Invalid blog: {checked.skip_reason}")

    for field in IMAGE_FIELDS:
        upload = form.get(field)
        if isinstance(upload, StarletteUploadFile) and upload.filename:
            _, raw[field] = await save_image(upload, storage)
    return raw


@router.get("/dashboard")
def get_dashboard_stats(
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    """Get dashboard statistics"""
    return service.stats()


# Blog CRUD endpoints
@router.get("/blogs", response_model=AdminBlogList)
def get_blogs(
    page: str = "1",
    search: str = "",
    category: str = "",
    status: str = "",
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    """Get all blogs with search, filters and pagination"""
    blogs, pagination = service.list_admin_page(
        page,
        settings.ADMIN_PAGE_SIZE,
        search=search.strip() or None,
        category=category.strip() or None,
        status=status.strip() or None,
    )
    return AdminBlogList(
        items=blogs,
        pagination=pagination,
        categories=service.categories(),
        search=search,
        category=category,
        status=status,
    )


@router.get("/blogs/{blog_id}")
def get_blog(
    blog_id: int,
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    """Get specific blog"""
    return service.get_by_id(blog_id)


@router.post("/blogs")
async def create_blog(
    request: Request,
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    """Create new blog; an existing slug is updated in place"""
    raw = await _blog_form(request, storage)
    result = normalize_row(raw)
    blog, created = service.upsert_by_slug(result.record)
    logger.info("Blog %s by %s: %s", "created" if created else "updated", admin_user.username, blog.slug)
    return {"blog": blog, "created": created, "dropped_fields": result.dropped_fields}


@router.put("/blogs/{blog_id}")
async def update_blog(
    blog_id: int,
    request: Request,
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
    storage: ImageStorage = Depends(get_image_storage),
):
    """Update blog, replacing every editable field"""
    existing = service.get_by_id(blog_id)
    raw = await _blog_form(request, storage, existing=existing)
    result = normalize_row(raw)
    blog = service.update(blog_id, result.record)
    return {"blog": blog, "dropped_fields": result.dropped_fields}


@router.delete("/blogs/{blog_id}")
def delete_blog(
    blog_id: int,
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    """Delete blog"""
    service.delete(blog_id)
    return {"message": "Blog deleted successfully!"}


@router.post("/blogs/{blog_id}/toggle-status")
def toggle_blog_status(
    blog_id: int,
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    blog = service.toggle_active(blog_id)
    return {
        "success": True,
        "isActive": blog.is_active,
        "message": f"Blog {'activated' if blog.is_active else 'deactivated'} successfully!",
    }


@router.post("/blogs/bulk-delete")
def bulk_delete_blogs(
    body: BulkIds,
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    if not body.blogIds:
        raise ValidationFailure("No blogs selected for deletion")
    deleted = service.bulk_delete(body.blogIds)
    return {"success": True, "deleted": deleted, "message": f"{deleted} blog(s) deleted successfully!"}


@router.post("/blogs/bulk-update-status")
def bulk_update_status(
    body: BulkStatus,
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    if not body.blogIds:
        raise ValidationFailure("No blogs selected")
    if body.status not in (STATUS_ACTIVE, STATUS_INACTIVE):
        raise ValidationFailure(f"Unknown status: {body.status}", field="status")
    is_active = body.status == STATUS_ACTIVE
    updated = service.bulk_set_status(body.blogIds, is_active)
    return {
        "success": True,
        "updated": updated,
        "message": f"{updated} blog(s) {'activated' if is_active else 'deactivated'} successfully!",
    }


# CSV import
@router.post("/csv-import")
async def import_blogs(
    file: UploadFile = File(...),
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    """Import blogs from an uploaded CSV file, upserting by slug"""
    data = await file.read()
    if not data:
        raise ValidationFailure("Please select a CSV file to upload")
    logger.info("CSV import of %s started by %s", file.filename, admin_user.username)
    report = import_csv_bytes(service, data)
    return report.to_dict()


@router.get("/csv-import/status")
def get_import_status(
    admin_user: AdminUser = Depends(get_admin_user),
    service: BlogService = Depends(get_blog_service),
):
    stats = service.stats()
    return {
        "success": True,
        "totalBlogs": stats["totalBlogs"],
        "activeBlogs": stats["activeBlogs"],
        "message": f"Total blogs: {stats['totalBlogs']}, Active blogs: {stats['activeBlogs']}",
    }
