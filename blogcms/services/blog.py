import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlmodel import Session, col, func, or_, select

from blogcms.core.clock import utcnow
from blogcms.core.errors import DuplicateKey, NotFound, StorageUnavailable, ValidationFailure
from blogcms.models.blog import EDITABLE_FIELDS, Blog
from blogcms.services.pagination import PageInfo, build_page_info, page_window

logger = logging.getLogger(__name__)

PUBLIC_ORDER = (col(Blog.published_date).desc(), col(Blog.created_at).desc(), col(Blog.id).desc())
ADMIN_ORDER = (col(Blog.created_at).desc(), col(Blog.id).desc())

STATUS_ACTIVE = "active"
STATUS_INACTIVE = "inactive"


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def admin_conditions(search: Optional[str] = None, category: Optional[str] = None, status: Optional[str] = None) -> List[Any]:
    """Admin listing filters; each is optional and they are AND-combined."""
    conditions = []
    if search:
        pattern = _like_pattern(search)
        conditions.append(
            or_(
                col(Blog.title).ilike(pattern, escape="\\"),
                col(Blog.content).ilike(pattern, escape="\\"),
                col(Blog.excerpt).ilike(pattern, escape="\\"),
            )
        )
    if category:
        conditions.append(Blog.category == category)
    if status == STATUS_ACTIVE:
        conditions.append(Blog.is_active == True)  # noqa: E712
    elif status == STATUS_INACTIVE:
        conditions.append(Blog.is_active == False)  # noqa: E712
    return conditions


class BlogService:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _reading(self):
        try:
            yield
        except (OperationalError, PoolTimeoutError) as e:
            logger.error("Query failed: %s", e)
            raise StorageUnavailable() from e

    @contextmanager
    def _writing(self, slug: Optional[str] = None):
        try:
            yield
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            raise DuplicateKey(slug or "") from e
        except (OperationalError, PoolTimeoutError) as e:
            self.session.rollback()
            logger.error("Write failed: %s", e)
            raise StorageUnavailable() from e
        except Exception:
            self.session.rollback()
            raise

    # Queries

    def count(self, conditions: Sequence[Any] = ()) -> int:
        with self._reading():
            return self.session.exec(select(func.count(Blog.id)).where(*conditions)).one()

    def find(
        self,
        conditions: Sequence[Any] = (),
        order_by: Sequence[Any] = ADMIN_ORDER,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[Blog]:
        statement = select(Blog).where(*conditions).order_by(*order_by).offset(skip)
        if limit is not None:
            statement = statement.limit(limit)
        with self._reading():
            return list(self.session.exec(statement).all())

    def get_by_id(self, blog_id: int) -> Blog:
        with self._reading():
            blog = self.session.get(Blog, blog_id)
        if not blog:
            raise NotFound("Blog", blog_id)
        return blog

    def get_by_slug(self, slug: str) -> Optional[Blog]:
        with self._reading():
            return self.session.exec(select(Blog).where(Blog.slug == slug.strip().lower())).first()

    def get_public_by_slug(self, slug: str) -> Blog:
        blog = self.get_by_slug(slug)
        if not blog or not blog.is_active:
            raise NotFound("Blog", slug)
        return blog

    def related(self, blog: Blog, limit: int = 3) -> List[Blog]:
        return self.find(
            [Blog.is_active == True, Blog.id != blog.id],  # noqa: E712
            order_by=PUBLIC_ORDER,
            limit=limit,
        )

    def categories(self) -> List[str]:
        with self._reading():
            return list(self.session.exec(select(Blog.category).distinct().order_by(Blog.category)).all())

    def stats(self) -> Dict[str, int]:
        total = self.count()
        active = self.count([Blog.is_active == True])  # noqa: E712
        return {"totalBlogs": total, "activeBlogs": active, "inactiveBlogs": total - active}

    def sitemap_entries(self) -> List[Blog]:
        return self.find([Blog.is_active == True], order_by=(col(Blog.title).asc(),))  # noqa: E712

    # Pagination

    def list_page(self, conditions: Sequence[Any], order_by: Sequence[Any], page: Any, page_size: int) -> Tuple[List[Blog], PageInfo]:
        page, skip = page_window(page, page_size)
        total = self.count(conditions)
        # past the last page; also keeps huge page numbers out of OFFSET
        if skip >= total:
            return [], build_page_info(page, page_size, total)
        items = self.find(conditions, order_by=order_by, skip=skip, limit=page_size)
        return items, build_page_info(page, page_size, total)

    def list_public_page(self, page: Any, page_size: int) -> Tuple[List[Blog], PageInfo]:
        return self.list_page([Blog.is_active == True], PUBLIC_ORDER, page, page_size)  # noqa: E712

    def list_admin_page(
        self,
        page: Any,
        page_size: int,
        search: Optional[str] = None,
        category: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Tuple[List[Blog], PageInfo]:
        return self.list_page(admin_conditions(search, category, status), ADMIN_ORDER, page, page_size)

    # Mutations

    def upsert_by_slug(self, record: Dict[str, Any], now: Optional[datetime] = None) -> Tuple[Blog, bool]:
        """Insert, or replace every non-identity field of the blog owning record["slug"]."""
        now = now or utcnow()
        slug = record["slug"]
        with self._writing(slug):
            blog = self.session.exec(select(Blog).where(Blog.slug == slug)).first()
            created = blog is None
            if created:
                blog = Blog(**record, created_at=now, updated_at=now)
            else:
                for name, value in record.items():
                    if name in EDITABLE_FIELDS:
                        setattr(blog, name, value)
                blog.updated_at = now
            self.session.add(blog)
        self.session.refresh(blog)
        return blog, created

    def update(self, blog_id: int, record: Dict[str, Any], now: Optional[datetime] = None) -> Blog:
        blog = self.get_by_id(blog_id)
        slug = record["slug"]
        if slug != blog.slug:
            owner = self.get_by_slug(slug)
            if owner and owner.id != blog.id:
                raise ValidationFailure("Slug already exists", field="slug")
        with self._writing(slug):
            blog.slug = slug
            for name, value in record.items():
                if name in EDITABLE_FIELDS:
                    setattr(blog, name, value)
            blog.updated_at = now or utcnow()
            self.session.add(blog)
        self.session.refresh(blog)
        return blog

    def delete(self, blog_id: int) -> None:
        blog = self.get_by_id(blog_id)
        with self._writing(blog.slug):
            self.session.delete(blog)

    def toggle_active(self, blog_id: int) -> Blog:
        blog = self.get_by_id(blog_id)
        with self._writing(blog.slug):
            blog.is_active = not blog.is_active
            blog.updated_at = utcnow()
            self.session.add(blog)
        self.session.refresh(blog)
        return blog

    def _by_ids(self, blog_ids: Iterable[int]) -> List[Blog]:
        return self.find([col(Blog.id).in_(list(blog_ids))])

    def bulk_delete(self, blog_ids: Iterable[int]) -> int:
        blogs = self._by_ids(blog_ids)
        with self._writing():
            for blog in blogs:
                self.session.delete(blog)
        return len(blogs)

    def bulk_set_status(self, blog_ids: Iterable[int], is_active: bool) -> int:
        blogs = self._by_ids(blog_ids)
        now = utcnow()
        with self._writing():
            for blog in blogs:
                blog.is_active = is_active
                blog.updated_at = now
                self.session.add(blog)
        return len(blogs)

