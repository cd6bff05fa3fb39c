"""
tests/conftest.py
"""
from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Any, Generator, Iterable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlmodel import Session

from blogcms.db.session import Database
from blogcms.main import create_app
from blogcms.services.auth import AuthService
from blogcms.services.blog import BlogService
from blogcms.services.normalizer import CSV_COLUMNS, normalize_row
from blogcms.services.storage import LocalImageStorage

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "Admin@123#Secure2024"


# ───────────────────────── row helpers ────────────────────────────
def make_row(title: str = "Intro to Scooters", **overrides: Any) -> dict[str, Any]:
    """A complete CSV-style row; pass ``key=None`` to drop a column."""
    row: dict[str, Any] = {
        "title": title,
        "slug": title.lower().replace(" ", "-") if title else None,
        "excerpt": f"Excerpt of {title}",
        "content": f"<p>Body of {title}</p>",
        "category": "Guides",
        "isActive": "TRUE",
        "publishedDate": "2024-01-15",
    }
    row.update(overrides)
    return {k: v for k, v in row.items() if v is not None}


def write_csv(path: Path, rows: Iterable[dict[str, Any]]) -> Path:
    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=list(CSV_COLUMNS), extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
    return path


def seed(service: BlogService, count: int, *, active: bool = True, prefix: str = "Post") -> list[int]:
    """Insert ``count`` posts with distinct published dates (older first); return their ids."""
    ids = []
    for i in range(count):
        row = make_row(
            f"{prefix} {i:02d}",
            isActive="TRUE" if active else "FALSE",
            publishedDate=f"2024-01-{i + 1:02d}",
        )
        blog, _ = service.upsert_by_slug(normalize_row(row).record, now=datetime(2024, 6, 1, 12, 0, i))
        ids.append(blog.id)
    return ids


# ───────────────────────── storage ────────────────────────────────
@pytest.fixture
def database() -> Generator[Database, None, None]:
    """Fresh in-memory SQLite per test."""
    db = Database("sqlite://").open()
    db.create_db_and_tables()
    yield db
    db.close()


@pytest.fixture
def session(database: Database) -> Generator[Session, None, None]:
    with database.session() as s:
        yield s


@pytest.fixture
def service(session: Session) -> BlogService:
    return BlogService(session)


@pytest.fixture
def image_storage(tmp_path: Path) -> LocalImageStorage:
    return LocalImageStorage(str(tmp_path / "uploads"), url_prefix="/uploads")


# ───────────────────────── HTTP ───────────────────────────────────
@pytest.fixture
def app(database: Database, image_storage: LocalImageStorage) -> FastAPI:
    return create_app(database=database, storage=image_storage)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client: TestClient, session: Session) -> TestClient:
    """The same client, logged in through the real login endpoint."""
    AuthService(session).create_or_update_admin(ADMIN_USERNAME, ADMIN_PASSWORD)
    rv = client.post("/admin/login", data={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD})
    assert rv.status_code == 200, rv.text
    return client
