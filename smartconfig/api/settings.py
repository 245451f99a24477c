import dotenv
from loguru import logger

from ..config import SettingsManager
from ..database import get_session_manager, init_database, init_session_manager
from ..resolution import (
    AmbiguousResolutionError,
    DataSourceError,
    DimensionKey,
    InvalidVersionFormatError,
    ReservedDimensionError,
    ResolutionRequest,
    SettingNotFoundError,
    SettingResolver,
)
from ..resolution.keys import DEFAULT_KEY_NAME
from ..stores import DataStore, SqlStore

dotenv.load_dotenv()


def _get_store() -> DataStore:
    """Get a SQL store on the global session manager, initializing it on first use."""
    try:
        session_manager = get_session_manager()
    except RuntimeError:
        session_manager = init_session_manager()
        init_database(session_manager)
    return SqlStore(session_manager=session_manager)


def _requested_dimensions(dimensions: dict[str, str] | None) -> dict[str, str]:
    """Merge caller dimensions over the configured environment and version.

    Dimension names compare case-insensitively; a caller name matching a
    configured one is stored under the configured spelling.
    """
    resolution = SettingsManager.get_instance().resolution
    requested: dict[str, str] = {}
    if resolution.environment:
        requested[resolution.environment_key_name] = resolution.environment
    if resolution.version:
        requested[resolution.version_key_name] = resolution.version

    canonical = {
        resolution.environment_key_name.casefold(): resolution.environment_key_name,
        resolution.version_key_name.casefold(): resolution.version_key_name,
    }
    for name, value in (dimensions or {}).items():
        requested[canonical.get(name.casefold(), name)] = value
    return requested


def _is_version_dimension(name: str) -> bool:
    return name.casefold() == SettingsManager.get_instance().resolution.version_key_name.casefold()


def _build_keys(dimensions: dict[str, str]) -> list[DimensionKey]:
    return [
        DimensionKey.version(name, value) if _is_version_dimension(name) else DimensionKey.exact(name, value)
        for name, value in dimensions.items()
    ]


def _error(error: str, exc: Exception, name: str, dimensions: dict[str, str]) -> dict:
    return {
        "status": "error",
        "error": error,
        "message": str(exc),
        "name": name,
        "dimensions": dimensions,
    }


async def get_setting(
    name: str,
    dimensions: dict[str, str] | None = None,
    store: DataStore | None = None,
) -> dict:
    """Resolve one setting.

    Args:
        name: Setting name
        dimensions: Requested dimension values; configured environment and
            version are used for dimensions not given
        store: Store to read from, the SQL store by default

    Returns:
        dict: status plus the value, or an error code
    """
    requested = _requested_dimensions(dimensions)
    logger.info("Resolving setting {} with {}", name, requested)

    try:
        resolver = SettingResolver(store or _get_store())
        result = resolver.resolve_request(ResolutionRequest(name, tuple(_build_keys(requested))))
    except SettingNotFoundError as e:
        logger.warning(str(e))
        return _error("not_found", e, name, requested)
    except AmbiguousResolutionError as e:
        logger.error(str(e))
        return _error("ambiguous", e, name, requested)
    except (InvalidVersionFormatError, ReservedDimensionError, ValueError) as e:
        logger.error(str(e))
        return _error("invalid", e, name, requested)
    except DataSourceError as e:
        logger.error(str(e))
        return _error("data_source", e, name, requested)

    return {
        "status": "success",
        "name": result.setting_name,
        "value": result.value,
        "dimensions": requested,
        "matched": result.record.assignment,
    }


async def put_setting(
    name: str,
    value: str | None,
    dimensions: dict[str, str] | None = None,
    store: DataStore | None = None,
) -> dict:
    """Write one setting row addressed exactly by name and dimensions."""
    requested = _requested_dimensions(dimensions)
    logger.info("Updating setting {} with {}", name, requested)

    try:
        if any(k.casefold() == DEFAULT_KEY_NAME.casefold() for k in requested):
            raise ReservedDimensionError(DEFAULT_KEY_NAME)
        resolver = SettingResolver(store or _get_store())
        rows_affected = resolver.persist(
            {DEFAULT_KEY_NAME: name, **requested},
            value,
            version_dimensions=[k for k in requested if _is_version_dimension(k)],
        )
    except (ReservedDimensionError, ValueError) as e:
        logger.error(str(e))
        return _error("invalid", e, name, requested)
    except DataSourceError as e:
        logger.error(str(e))
        return _error("data_source", e, name, requested)

    return {
        "status": "success",
        "name": name,
        "dimensions": requested,
        "rows_affected": rows_affected,
    }

