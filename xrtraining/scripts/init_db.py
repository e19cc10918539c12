"""
Script para inicializar las tablas de la base de datos

Uso:
    python -m xrtraining.scripts.init_db
    python -m xrtraining.scripts.init_db --drop   # recrear desde cero
"""
import argparse
import logging

from ..core.config import get_settings
from ..core.logging_config import setup_logging
from ..database.config import init_database

logger = logging.getLogger(__name__)


def init_db(drop: bool = False) -> None:
    """Create all tables (optionally dropping them first)"""
    settings = get_settings()
    config = init_database(settings.database_url)
    if drop:
        logger.warning("Dropping all tables", extra={"dialect": config.engine.dialect.name})
        config.drop_all()
    config.create_all()
    logger.info("Tables created successfully", extra={"dialect": config.engine.dialect.name})


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the XR training core tables")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables first")
    args = parser.parse_args()

    setup_logging(get_settings().log_level)
    init_db(drop=args.drop)
