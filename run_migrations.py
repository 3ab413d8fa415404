import argparse
import logging
import os
import sys

from alembic.config import Config
from alembic import command

# Add current directory to path so alembic can find 'models' etc
sys.path.append(os.getcwd())

logger = logging.getLogger("migrations")


def run_migrations(revision: str = "head"):
    logger.info(f"Upgrading database to {revision}...")
    alembic_cfg = Config("alembic.ini")
    command.upgrade(alembic_cfg, revision)
    logger.info("Migrations complete")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    parser = argparse.ArgumentParser(description="Apply Alembic migrations")
    parser.add_argument("--revision", default="head", help="Target revision (default: head)")
    run_migrations(parser.parse_args().revision)
