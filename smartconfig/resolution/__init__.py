"""Setting resolution engine.

Responsibilities:
- Model dimension keys and stored candidate records
- Narrow candidates per dimension (exact/wildcard and semantic version filters)
- Select exactly one record or fail with a descriptive error
- Address writes to one exact row
"""

from .engine import SettingResolver
from .exceptions import (
    AmbiguousResolutionError,
    ConversionError,
    DataSourceError,
    InvalidVersionFormatError,
    ReservedDimensionError,
    ResolutionError,
    SettingNotFoundError,
    SmartConfigError,
)
from .filters import FILTER_STRATEGIES, filter_by_string, filter_by_version, get_strategy, register_strategy
from .keys import (
    DEFAULT_KEY_NAME,
    ENVIRONMENT_KEY_NAME,
    VERSION_KEY_NAME,
    WILDCARD,
    DimensionKey,
    check_versions,
    item_name,
    order_keys,
    same_dimensions,
    split_assignment,
    split_item_name,
)
from .models import CandidateRecord, ResolutionRequest, ResolutionResult
from .pipeline import ResolutionPipeline
from .semver import SemanticVersion

__all__ = [
    "SettingResolver",
    "ResolutionPipeline",
    "CandidateRecord",
    "ResolutionRequest",
    "ResolutionResult",
    "DimensionKey",
    "SemanticVersion",
    "DEFAULT_KEY_NAME",
    "ENVIRONMENT_KEY_NAME",
    "VERSION_KEY_NAME",
    "WILDCARD",
    "FILTER_STRATEGIES",
    "filter_by_string",
    "filter_by_version",
    "get_strategy",
    "register_strategy",
    "order_keys",
    "split_assignment",
    "same_dimensions",
    "check_versions",
    "item_name",
    "split_item_name",
    "SmartConfigError",
    "ResolutionError",
    "SettingNotFoundError",
    "AmbiguousResolutionError",
    "InvalidVersionFormatError",
    "DataSourceError",
    "ReservedDimensionError",
    "ConversionError",
]
