"""
CSV import of blog posts.

Rows are normalized one by one, in file order, and upserted by slug. A bad row
or a failed write is counted and logged; it never stops the rest of the batch.
Only a source that cannot be read at all fails the import, before any write.
"""
import csv
import io
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, TextIO, Union

from sqlalchemy.exc import SQLAlchemyError

from blogcms.core.errors import DuplicateKey, StorageUnavailable
from blogcms.services.blog import BlogService
from blogcms.services.normalizer import normalize_row

logger = logging.getLogger(__name__)

STORAGE_ERROR = "storage_error"


class ImportStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class ImportSourceError(Exception):
    pass


@dataclass
class RowFailure:
    row: int
    title: Optional[str]
    reason: str


@dataclass
class RowWarning:
    row: int
    title: Optional[str]
    field: str


@dataclass
class ImportReport:
    status: ImportStatus = ImportStatus.COMPLETED
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failures: List[RowFailure] = field(default_factory=list)
    warnings: List[RowWarning] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def processed(self) -> int:
        return self.inserted + self.updated + self.skipped

    @classmethod
    def failed(cls, error: str) -> "ImportReport":
        return cls(status=ImportStatus.FAILED, error=error)

    def skip(self, row: int, title: Optional[str], reason: str) -> None:
        self.skipped += 1
        self.failures.append(RowFailure(row=row, title=title, reason=reason))

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        data["processed"] = self.processed
        return data


def import_rows(
    service: BlogService,
    rows: Iterable[Mapping[str, Any]],
    *,
    now: Optional[datetime] = None,
    site_url: Optional[str] = None,
) -> ImportReport:
    """Upsert every row of ``rows`` in order. Rows are numbered from 1."""
    report = ImportReport()
    iterator = iter(rows)
    row_number = 0
    while True:
        try:
            raw = next(iterator)
        except StopIteration:
            break
        except (csv.Error, OSError, UnicodeDecodeError) as e:
            logger.error("Import source failed after %d rows: %s", row_number, e)
            report.status = ImportStatus.FAILED
            report.error = str(e)
            return report
        row_number += 1

        result = normalize_row(raw, now=now, site_url=site_url)
        if not result.ok:
            logger.warning("Skipping row %d (%s): %s", row_number, result.title or "untitled", result.skip_reason)
            report.skip(row_number, result.title, result.skip_reason)
            continue
        for name in result.dropped_fields:
            report.warnings.append(RowWarning(row=row_number, title=result.title, field=name))

        try:
            blog, created = service.upsert_by_slug(result.record, now=now)
        except (SQLAlchemyError, StorageUnavailable, DuplicateKey):
            logger.exception("Error processing blog %s", result.title)
            report.skip(row_number, result.title, STORAGE_ERROR)
            continue

        if created:
            report.inserted += 1
            logger.info("Created new blog: %s", blog.title)
        else:
            report.updated += 1
            logger.info("Updated blog: %s", blog.title)

    logger.info(
        "CSV import completed: %d inserted, %d updated, %d skipped",
        report.inserted,
        report.updated,
        report.skipped,
    )
    return report


def read_csv_rows(source: TextIO) -> List[Dict[str, Any]]:
    reader = csv.DictReader(source, strict=True)
    if not reader.fieldnames:
        raise ImportSourceError("CSV file has no header row")
    reader.fieldnames = [name.strip() for name in reader.fieldnames]
    return list(reader)


def import_csv_file(service: BlogService, path: Union[str, Path], **kwargs) -> ImportReport:
    try:
        with open(path, newline="", encoding="utf-8-sig") as fh:
            rows = read_csv_rows(fh)
    except (OSError, UnicodeDecodeError, csv.Error, ImportSourceError) as e:
        logger.error("Could not read CSV %s: %s", path, e)
        return ImportReport.failed(str(e))
    logger.info("Found %d rows to import in %s", len(rows), path)
    return import_rows(service, rows, **kwargs)


def import_csv_bytes(service: BlogService, data: bytes, **kwargs) -> ImportReport:
    try:
        text = data.decode("utf-8-sig")
        rows = read_csv_rows(io.StringIO(text, newline=""))
    except (UnicodeDecodeError, csv.Error, ImportSourceError) as e:
        logger.error("Could not read uploaded CSV: %s", e)
        return ImportReport.failed(str(e))
    logger.info("Found %d rows to import in upload", len(rows))
    return import_rows(service, rows, **kwargs)
