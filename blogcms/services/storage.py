import logging
import re
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from blogcms.core.config import settings

logger = logging.getLogger(__name__)

BLOG_FOLDER = "blogs"


def safe_filename(filename: str) -> str:
    name = re.sub(r"[^a-zA-Z0-9._-]", "_", Path(filename or "").name)
    return name.lstrip(".") or "upload"


def timestamped_key(filename: str, folder: str = BLOG_FOLDER) -> str:
    """e.g. "blogs/1718000000000-cover.jpg", the same name shape as the old uploads."""
    return f"{folder}/{int(time.time() * 1000)}-{safe_filename(filename)}"


class ImageStorage(ABC):
    @abstractmethod
    def upload_file(self, file_content: bytes, file_name: str, content_type: str = "image/jpeg") -> Optional[str]:
        """Store the file and return its key, or None if the write failed."""

    @abstractmethod
    def delete_file(self, key: str) -> bool:
        pass

    @abstractmethod
    def get_public_url(self, key: str) -> str:
        pass


class LocalImageStorage(ImageStorage):
    def __init__(self, root: str, url_prefix: str = "/uploads"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def upload_file(self, file_content: bytes, file_name: str, content_type: str = "image/jpeg") -> Optional[str]:
        key = timestamped_key(file_name)
        target = self.root / key
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            # write to a temp name first so a half-written file is never referenced
            partial = target.with_name(target.name + ".part")
            partial.write_bytes(file_content)
            partial.replace(target)
        except OSError as e:
            logger.error("Error writing upload %s: %s", target, e)
            return None
        return key

    def delete_file(self, key: str) -> bool:
        target = (self.root / key).resolve()
        if self.root.resolve() not in target.parents:
            logger.warning("Refusing to delete outside upload dir: %s", key)
            return False
        try:
            target.unlink()
            return True
        except OSError as e:
            logger.error("Error deleting upload %s: %s", key, e)
            return False

    def get_public_url(self, key: str) -> str:
        return f"{self.url_prefix}/{key}"


class S3ImageStorage(ImageStorage):
    def __init__(self, bucket_name: str, region: str, access_key_id: str = "", secret_access_key: str = "", base_url: str = ""):
        self.s3_client = boto3.client(
            "s3",
            aws_access_key_id=access_key_id or None,
            aws_secret_access_key=secret_access_key or None,
            region_name=region,
        )
        self.bucket_name = bucket_name
        self.base_url = base_url or f"https://{bucket_name}.s3.{region}.amazonaws.com"

    def upload_file(self, file_content: bytes, file_name: str, content_type: str = "image/jpeg") -> Optional[str]:
        key = timestamped_key(file_name)
        try:
            # Public access is handled by the bucket policy, not object ACLs
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Error uploading to S3: %s", e)
            return None
        return key

    def delete_file(self, key: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error("Error deleting from S3: %s", e)
            return False

    def get_public_url(self, key: str) -> str:
        return f"{self.base_url}/{key}"


def storage_from_settings() -> ImageStorage:
    if settings.STORAGE_BACKEND == "s3":
        return S3ImageStorage(
            bucket_name=settings.S3_BUCKET,
            region=settings.AWS_REGION,
            access_key_id=settings.AWS_ACCESS_KEY_ID,
            secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
            base_url=settings.S3_BASE_URL,
        )
    return LocalImageStorage(settings.UPLOAD_DIR, settings.UPLOAD_URL_PREFIX)
