"""Apply, create or roll back database migrations for the uploads schema."""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from alembic import command
from alembic.config import Config

from src.config import settings
from src.utils.logger import configure_logging, get_logger, mask_dsn

logger = get_logger("migrate")


def build_config() -> Config:
    """Alembic config rooted at the repository, pointed at the configured database."""
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    return cfg


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run database migrations")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--create", metavar="MESSAGE", help="Autogenerate a new revision")
    group.add_argument("--downgrade", type=int, metavar="N", help="Roll back N revisions")
    group.add_argument("--current", action="store_true", help="Show the applied revision")
    args = parser.parse_args(argv)

    configure_logging()
    cfg = build_config()
    logger.info("Running migrations", database=mask_dsn(settings.database_url_sync))

    if args.create:
        command.revision(cfg, autogenerate=True, message=args.create)
    elif args.downgrade:
        command.downgrade(cfg, f"-{args.downgrade}")
    elif args.current:
        command.current(cfg, verbose=True)
    else:
        command.upgrade(cfg, "head")
    return 0


if __name__ == "__main__":
    sys.exit(main())
