"""Abstract base class for event readers."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime
from typing import Any


class EventReader(ABC):
    """Abstract base class for event readers."""

    @abstractmethod
    async def fetch_events(
        self,
        source_ids: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> dict[str, Any]:
        """
        Fetch events for several calendars over a half-open time range.

        Args:
            source_ids: Calendar ids to query
            start: Inclusive range start (timezone-aware)
            end: Exclusive range end (timezone-aware)

        Returns:
            Mapping of source id to ``{"events": [...]}``

        Raises:
            FetchUnavailableError: If the transport is not configured
            FetchFailedError: If the transport rejects the request
        """
