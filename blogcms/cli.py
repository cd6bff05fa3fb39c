"""
Command line entry point.

Usage:
    blogcms import-csv "Final Blogs.csv"
    blogcms create-admin admin 'S3cret!'
    blogcms seed
    blogcms serve --port 3006
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

from blogcms.core.config import settings
from blogcms.db.session import Database
from blogcms.services.auth import AuthService
from blogcms.services.blog import BlogService
from blogcms.services.importer import ImportStatus, import_csv_file


def cmd_import_csv(db: Database, args: argparse.Namespace) -> int:
    with db.session() as session:
        report = import_csv_file(BlogService(session), args.path)
    print(json.dumps(report.to_dict(), indent=2))
    return 0 if report.status == ImportStatus.COMPLETED else 1


def cmd_create_admin(db: Database, args: argparse.Namespace) -> int:
    with db.session() as session:
        admin, created = AuthService(session).create_or_update_admin(args.username, args.password)
    print(f"Admin {admin.username} {'created' if created else 'password updated'}")
    return 0


def cmd_seed(db: Database, args: argparse.Namespace) -> int:
    from blogcms.seed_data import seed_blogs

    report = seed_blogs(db)
    print(f"Seeded {report.inserted} blogs")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="blogcms", description="Blog CMS management commands")
    parser.add_argument("--database-url", default=settings.DATABASE_URL, help="SQLAlchemy database URL")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("import-csv", help="Import or update blogs from a CSV file")
    p.add_argument("path")
    p.set_defaults(func=cmd_import_csv)

    p = sub.add_parser("create-admin", help="Create an admin or reset its password")
    p.add_argument("username")
    p.add_argument("password")
    p.set_defaults(func=cmd_create_admin)

    p = sub.add_parser("seed", help="Insert sample blogs into an empty database")
    p.set_defaults(func=cmd_seed)

    p = sub.add_parser("serve", help="Run the HTTP server")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=3006)
    p.add_argument("--reload", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    if args.command == "serve":
        import uvicorn

        uvicorn.run("blogcms.main:app", host=args.host, port=args.port, reload=args.reload)
        return 0

    db = Database(args.database_url, timeout_seconds=settings.QUERY_TIMEOUT_SECONDS).open()
    try:
        db.create_db_and_tables()
        return args.func(db, args)
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
