"""Apply, roll back or author migrations for the podcasts table."""

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from alembic import command
from alembic.config import Config

from podcaster.config import settings
from podcaster.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)


def alembic_config() -> Config:
    """alembic.ini from the repository root; env.py fills in DATABASE_URL."""
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "alembic"))
    return config


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--create", metavar="MESSAGE", help="autogenerate a new revision")
    action.add_argument("--downgrade", type=int, metavar="N", help="roll back N revisions")
    action.add_argument("--current", action="store_true", help="show the applied revision")
    action.add_argument("--history", action="store_true", help="list known revisions")
    args = parser.parse_args(argv)

    configure_logging()
    logger.info("Using database", database=settings.database_url.split("@")[-1])
    config = alembic_config()

    if args.create:
        command.revision(config, autogenerate=True, message=args.create)
    elif args.downgrade:
        logger.info("Rolling back migrations", steps=args.downgrade)
        command.downgrade(config, f"-{args.downgrade}")
    elif args.current:
        command.current(config, verbose=True)
    elif args.history:
        command.history(config)
    else:
        logger.info("Upgrading database to head")
        command.upgrade(config, "head")
    return 0


if __name__ == "__main__":
    sys.exit(main())
