"""Health polling of the backing platform."""

import asyncio
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from ..config import settings

logger = logging.getLogger(__name__)


class ConnectionStatus(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    DEGRADED = "degraded"
    CHECKING = "checking"


class ConnectionMonitor:
    """
    Polls ``url`` with HEAD requests.

    - 2xx response: online
    - any other response, or a timeout: degraded
    - any other transport error: offline
    """

    def __init__(
        self,
        url: Optional[str] = None,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url or settings.connection_check_url
        self.interval = interval or settings.connection_check_interval
        self.timeout = timeout or settings.connection_check_timeout
        self.transport = transport

        self.status = ConnectionStatus.CHECKING
        self.detail = "Connection has not been checked yet"
        self.last_checked_at: Optional[datetime] = None
        self.last_successful_check: Optional[datetime] = None
        self._task: Optional[asyncio.Task] = None

    async def check(self) -> ConnectionStatus:
        self.status = ConnectionStatus.CHECKING
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.head(self.url)
        except httpx.TimeoutException:
            self.status = ConnectionStatus.DEGRADED
            self.detail = f"Connection timed out after {self.timeout:g}s"
        except httpx.HTTPError as e:
            self.status = ConnectionStatus.OFFLINE
            self.detail = f"Unable to reach server: {e}"
        else:
            if response.is_success:
                self.status = ConnectionStatus.ONLINE
                self.detail = "Connected"
                self.last_successful_check = datetime.now(timezone.utc)
            else:
                self.status = ConnectionStatus.DEGRADED
                self.detail = f"Server responded with status {response.status_code}"

        self.last_checked_at = datetime.now(timezone.utc)
        if self.status != ConnectionStatus.ONLINE:
            logger.warning(f"Connection check {self.status.value}: {self.detail}")
        return self.status

    def snapshot(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "detail": self.detail,
            "url": self.url,
            "lastCheckedAt": self.last_checked_at.isoformat() if self.last_checked_at else None,
            "lastSuccessfulCheck": (
                self.last_successful_check.isoformat() if self.last_successful_check else None
            ),
        }

    async def _poll(self):
        while True:
            try:
                await self.check()
            except Exception as e:
                logger.error(f"Connection check failed unexpectedly: {e}")
            await asyncio.sleep(self.interval)

    def start(self):
        if self._task is None or self._task.done():
            logger.info(f"Starting connection monitor for {self.url} every {self.interval:g}s")
            self._task = asyncio.create_task(self._poll())

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None


_connection_monitor: Optional[ConnectionMonitor] = None


def get_connection_monitor() -> ConnectionMonitor:
    global _connection_monitor
    if _connection_monitor is None:
        _connection_monitor = ConnectionMonitor()
    return _connection_monitor
