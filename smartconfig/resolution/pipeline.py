from typing import Sequence

from loguru import logger

from .exceptions import AmbiguousResolutionError, SettingNotFoundError
from .filters import get_strategy
from .models import CandidateRecord, ResolutionRequest


class ResolutionPipeline:
    """Narrows fetched candidates to the single record a request applies to.

    The pipeline holds no state between calls: every run starts from the
    full candidate set and applies the default key, then each dimension key
    in evaluation order.
    """

    def run(
        self,
        records: Sequence[CandidateRecord],
        request: ResolutionRequest,
    ) -> CandidateRecord:
        """Resolve ``request`` against ``records``.

        Raises:
            SettingNotFoundError: if a filter leaves no candidate
            AmbiguousResolutionError: if more than one candidate survives
            InvalidVersionFormatError: if a version dimension cannot be parsed
        """
        requested = request.requested_values
        name = request.setting_name.casefold()

        candidates = [r for r in records if r.setting_name.casefold() == name]
        logger.debug("Resolving {}: {} candidate(s) after name filter", request.setting_name, len(candidates))
        if not candidates:
            raise SettingNotFoundError(request.setting_name, requested)

        for key in request.keys:
            strategy = get_strategy(key.strategy)
            candidates = strategy(candidates, key.name, key.requested_value)
            logger.debug(
                "Resolving {}: {} candidate(s) after {}={!r}",
                request.setting_name,
                len(candidates),
                key.name,
                key.requested_value,
            )
            if not candidates:
                raise SettingNotFoundError(request.setting_name, requested)

        if len(candidates) > 1:
            raise AmbiguousResolutionError(request.setting_name, requested, candidates)

        return candidates[0]
