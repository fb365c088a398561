# ruff: noqa: B008
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from hrdesk.api.deps import PrivilegedDep
from hrdesk.schemas.biometric import FetchLogsPayload, FetchLogsResponse
from hrdesk.services import biometric as biometric_service
from hrdesk.services.biometric import DeviceClient, get_device_client

logger = logging.getLogger(__name__)

biometric_router = APIRouter(prefix="/biometric", tags=["biometric"])

DeviceClientDep = Annotated[DeviceClient, Depends(get_device_client)]


@biometric_router.post(
    "/fetch-logs",
    response_model=FetchLogsResponse,
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": FetchLogsResponse}},
)
async def fetch_logs(
    payload: FetchLogsPayload,
    client: DeviceClientDep,
    actor: PrivilegedDep,
) -> FetchLogsResponse | JSONResponse:
    """Pull punches from a ZKTeco device for a date range."""
    try:
        return await biometric_service.fetch_logs(client, payload)
    except Exception as exc:
        logger.exception("Biometric fetch from %s:%s failed (user_id=%s)", payload.ip, payload.port, actor.user_id)
        body = FetchLogsResponse(success=False, message=f"Error fetching logs: {exc}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(),
        )
