import logging

from blogcms.core.clock import utcnow
from blogcms.db.session import Database, database_from_settings
from blogcms.services.blog import BlogService
from blogcms.services.importer import ImportReport, import_rows

logger = logging.getLogger(__name__)

SAMPLE_BLOGS = [
    {
        "title": "Intro to Scooters",
        "slug": "intro-to-scooters",
        "excerpt": "What an electric scooter is, how far it goes and what it costs to run.",
        "content": "<p>Electric scooters pair a hub motor with a lithium battery pack...</p>",
        "category": "Guides",
        "isActive": "TRUE",
        "publishedDate": "2024-01-15",
    },
    {
        "title": "Choosing a Battery",
        "slug": "choosing-a-battery",
        "excerpt": "Range, charge cycles and weight: what matters when you compare packs.",
        "content": "<p>Battery capacity is measured in watt-hours...</p>",
        "category": "Guides",
        "isActive": "TRUE",
        "publishedDate": "2024-02-02",
    },
    {
        "title": "Winter Riding Tips",
        "excerpt": "Keep your scooter and its battery healthy when the temperature drops.",
        "content": "<p>Cold weather reduces range noticeably...</p>",
        "category": "Maintenance",
        "isActive": "TRUE",
        "publishedDate": "2024-03-10",
    },
]


def seed_blogs(database: Database) -> ImportReport:
    logger.info("Creating database and tables...")
    database.create_db_and_tables()

    with database.session() as session:
        service = BlogService(session)
        # Check if blogs already exist to avoid clobbering edits
        existing = service.count()
        if existing:
            logger.info("Database already contains %d blogs. Skipping seed.", existing)
            return ImportReport()

        logger.info("Seeding sample blogs...")
        report = import_rows(service, SAMPLE_BLOGS, now=utcnow())
        logger.info("Successfully seeded %d blogs!", report.inserted)
        return report


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    db = database_from_settings().open()
    try:
        seed_blogs(db)
    finally:
        db.close()
