from typing import Literal

import dotenv
from loguru import logger

from ..config import SettingsManager
from ..database import get_session_manager, init_session_manager
from ..database.migrations import verify_schema

dotenv.load_dotenv()


async def health(
        route: Literal['database'] | None = None,
    ) -> dict:
    """Health check function.

    Args:
        route (str): Specific route to check. Only 'database' is supported.

    Returns:
        dict: Health status information.
    """
    logger.info("Health check invoked")

    # Validate settings
    settings = SettingsManager.get_instance()
    errors = settings.validate()
    if errors:
        logger.error(f"Settings validation errors: {errors}")
        return {"status": "error", "errors": errors}

    if route is None:
        logger.info("No specific route provided, returning overall readiness")
        return {"status": "success"}

    route_normalised = route.strip().lower()
    logger.info(f"Health check route: {route_normalised}")

    if route_normalised == "database":
        try:
            try:
                session_manager = get_session_manager()
            except RuntimeError:
                session_manager = init_session_manager()
            verification = verify_schema(session_manager)
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            return {"status": "error", "database": "disconnected", "error": str(e)}

        if verification["status"] != "ok":
            logger.warning(f"Database schema incomplete: {verification['missing_tables']}")
            return {"status": "error", "database": "connected", "schema": verification}

        logger.info("Database connection successful")
        return {"status": "success", "database": "connected"}

    logger.warning(f"Unknown health check route: {route_normalised}")
    return {"status": "error", "error": f"Unknown route: {route}"}
