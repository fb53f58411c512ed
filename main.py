"""
Homebase Entry Point.

Bootstraps the dependency graph via constructor injection and makes sure
the given user has a household.  Every subsystem is wired here, with no
module-level globals.

Usage::

    python main.py [USER_ID] [DISPLAY_NAME]
"""

from __future__ import annotations

import asyncio
import sys

from homebase.config import get_config
from homebase.database import DatabaseManager
from homebase.logger import StructuredLogger, get_logger
from homebase.services import create_services

LOCAL_USER_ID = "local-user"


async def main(argv: list[str]) -> int:
    """Application entry point: wire dependencies and resolve the household."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting homebase...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Database Manager (Supabase when configured, local store always)
    # ------------------------------------------------------------------
    db = await DatabaseManager.connect(config, StructuredLogger(name="database"))

    try:
        # --------------------------------------------------------------
        # 3. Service Container (repositories + services, single composition root)
        # --------------------------------------------------------------
        services = create_services(db=db, config=config)

        # --------------------------------------------------------------
        # 4. Default household for the current user
        # --------------------------------------------------------------
        user_id = argv[0] if argv else LOCAL_USER_ID
        display_name = argv[1] if len(argv) > 1 else None
        result = await services["household_service"].ensure_default_household(
            user_id, display_name,
        )
        if result.error is not None:
            logger.error("Could not resolve a household: %s", result.error.message)
            return 1

        logger.info(
            "Household ready: %s (%s) on %s",
            result.data.name,
            result.data.id,
            config.backend_label(),
        )
        return 0
    finally:
        db.close()
        logger.info("homebase shut down.")


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main(sys.argv[1:])))
    except KeyboardInterrupt:
        pass
