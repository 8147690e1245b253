"""Home Assistant calendar reader using the REST service API."""

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, tzinfo
from typing import Any, Optional

import requests

from ..config import HomeAssistantConfig
from ..utils.date_utils import iso_with_offset
from ..utils.exceptions import FetchFailedError, FetchUnavailableError
from .base import EventReader

logger = logging.getLogger(__name__)


class HomeAssistantEventReader(EventReader):
    """Read events through the ``calendar.get_events`` service."""

    def __init__(
        self,
        config: HomeAssistantConfig,
        tz: Optional[tzinfo] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Home Assistant reader.

        Args:
            config: Home Assistant connection settings
            tz: Zone used to format the range bounds (None for local)
            session: Optional requests session to reuse
        """
        self.config = config
        self.tz = tz
        self._session = session

    @property
    def session(self) -> requests.Session:
        """Lazy-load requests session."""
        if self._session is None:
            self._session = requests.Session()
        return self._session

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Content-Type": "application/json",
        }

    async def fetch_events(
        self,
        source_ids: Sequence[str],
        start: datetime,
        end: datetime,
    ) -> dict[str, Any]:
        if not self.config.url or not self.config.token:
            raise FetchUnavailableError("Home Assistant URL and token are not configured")
        if not source_ids:
            return {}
        return await asyncio.to_thread(self._get_events, list(source_ids), start, end)

    def _get_events(
        self,
        source_ids: list[str],
        start: datetime,
        end: datetime,
    ) -> dict[str, Any]:
        url = f"{self.config.url.rstrip('/')}/api/services/calendar/get_events?return_response"
        payload = {
            "entity_id": source_ids,
            "start_date_time": iso_with_offset(start, self.tz),
            "end_date_time": iso_with_offset(end, self.tz),
        }
        logger.debug(f"Requesting events for {', '.join(source_ids)}: {payload['start_date_time']} - {payload['end_date_time']}")

        try:
            resp = self.session.post(
                url,
                headers=self._headers(),
                json=payload,
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            raise FetchFailedError(f"Home Assistant request failed: {e}") from e
        except ValueError as e:
            raise FetchFailedError(f"Home Assistant returned invalid JSON: {e}") from e

        response = data.get("service_response") if isinstance(data, dict) else None
        if not isinstance(response, dict):
            raise FetchFailedError("Home Assistant response has no service_response")

        logger.info(f"Fetched events for {len(response)} calendar(s) from Home Assistant")
        return response
