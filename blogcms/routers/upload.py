from typing import Tuple

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from blogcms.core.config import settings
from blogcms.core.errors import UploadError
from blogcms.models.admin_user import AdminUser
from blogcms.routers.auth import get_admin_user
from blogcms.services.storage import ImageStorage

router = APIRouter()


def get_image_storage(request: Request) -> ImageStorage:
    return request.app.state.storage


async def save_image(file: UploadFile, storage: ImageStorage) -> Tuple[str, str]:
    """Validate and store an uploaded image, returning (key, public URL)."""
    if not file.content_type or not file.content_type.startswith("image/"):
        raise UploadError("File must be an image")

    content = await file.read()
    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise UploadError(f"File exceeds {settings.MAX_UPLOAD_BYTES} bytes")

    key = storage.upload_file(content, file.filename or "image", file.content_type)
    if not key:
        raise HTTPException(status_code=500, detail="Failed to upload image")
    return key, storage.get_public_url(key)


@router.post("/blog-image")
async def upload_blog_image(
    file: UploadFile = File(...),
    admin_user: AdminUser = Depends(get_admin_user),
    storage: ImageStorage = Depends(get_image_storage),
):
    """
    Upload a blog image.
    Returns the public URL to put in a blog's image fields.
    """
    key, url = await save_image(file, storage)
    return {"key": key, "url": url, "message": "Blog image uploaded successfully"}


@router.delete("/image/{path:path}")
def delete_image(
    path: str,
    admin_user: AdminUser = Depends(get_admin_user),
    storage: ImageStorage = Depends(get_image_storage),
):
    if not storage.delete_file(path):
        raise HTTPException(status_code=500, detail="Failed to delete image")
    return {"message": "Image deleted successfully"}
