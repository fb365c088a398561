from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, time
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from zk import ZK

from hrdesk.config import get_settings
from hrdesk.schemas.biometric import FetchLogsResponse, PunchLog

if TYPE_CHECKING:
    from hrdesk.schemas.biometric import FetchLogsPayload

logger = logging.getLogger(__name__)

PUNCH_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True)
class Punch:
    """One attendance punch as reported by the device."""

    user_id: str
    timestamp: datetime


@runtime_checkable
class DeviceClient(Protocol):
    """Interface to a biometric attendance terminal."""

    def read_punches(self, ip: str, port: int) -> list[Punch]:
        """Connect, read every stored punch and disconnect. Blocking."""
        ...


class ZKDeviceClient:
    """ZKTeco terminals over the pyzk TCP/UDP protocol."""

    def __init__(self, timeout: int | None = None) -> None:
        self.timeout = timeout if timeout is not None else get_settings().biometric_timeout

    def read_punches(self, ip: str, port: int) -> list[Punch]:
        conn = None
        try:
            conn = ZK(ip, port=port, timeout=self.timeout).connect()
            conn.enable_device()
            records = conn.get_attendance() or []
            return [Punch(user_id=str(record.user_id), timestamp=record.timestamp) for record in records]
        finally:
            if conn is not None:
                conn.disconnect()


_device_client: DeviceClient = ZKDeviceClient()


def get_device_client() -> DeviceClient:
    """FastAPI dependency for the biometric device client."""
    return _device_client


def set_device_client(client: DeviceClient) -> None:
    """Override the client (for testing)."""
    global _device_client
    _device_client = client


def filter_punches(punches: list[Punch], payload: FetchLogsPayload) -> list[PunchLog]:
    """Keep punches from the start of ``date_from`` through the end of ``date_to``."""
    start = datetime.combine(payload.date_from, time.min)
    end = datetime.combine(payload.date_to, time(23, 59, 59))
    return [
        PunchLog(idno=punch.user_id, punch_time=punch.timestamp.strftime(PUNCH_TIME_FORMAT))
        for punch in sorted(punches, key=lambda p: p.timestamp)
        if start <= punch.timestamp.replace(tzinfo=None) <= end
    ]


async def fetch_logs(client: DeviceClient, payload: FetchLogsPayload) -> FetchLogsResponse:
    """Read punches off the device in a worker thread and filter them to the requested dates."""
    punches = await asyncio.to_thread(client.read_punches, payload.ip, payload.port)
    logs = filter_punches(punches, payload)
    logger.info(
        "Fetched %d punch(es) from %s:%s, %d within %s..%s",
        len(punches),
        payload.ip,
        payload.port,
        len(logs),
        payload.date_from,
        payload.date_to,
    )
    return FetchLogsResponse(success=True, logs=logs)
