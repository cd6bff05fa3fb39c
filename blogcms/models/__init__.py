# Import all models to register them with SQLModel
from blogcms.models.blog import Blog
from blogcms.models.admin_user import AdminUser

__all__ = [
    "Blog",
    "AdminUser",
]
