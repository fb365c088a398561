# ruff: noqa: B008
"""Router factory for approvable request types.

Annotations in this module are evaluated eagerly: the payload and response
classes are taken from the ``RequestKind`` at router build time.
"""

import os
from typing import Annotated, Any

from fastapi import APIRouter, Query, Response, status
from fastapi.responses import FileResponse, JSONResponse
from starlette.background import BackgroundTask

from hrdesk.api.deps import ActorDep
from hrdesk.db import SessionDep
from hrdesk.exceptions import ErrorResponse, error_response
from hrdesk.schemas.request import (
    BulkResult,
    BulkStatusPayload,
    CreateResult,
    RequestFilters,
    RequestListParams,
    RequestListResponse,
    StatusUpdatePayload,
)
from hrdesk.services import approval
from hrdesk.services.export import XLSX_MEDIA_TYPE, export_filename, write_export
from hrdesk.services.request_kinds import RequestKind

FORBIDDEN = {status.HTTP_403_FORBIDDEN: {"model": ErrorResponse}}


def _forbidden(outcome: approval.Outcome) -> JSONResponse:
    return error_response("Forbidden", outcome.message, outcome.status_code)


def build_request_router(kind: RequestKind) -> APIRouter:
    """List, export, read, file, decide and delete endpoints for one request type."""
    router = APIRouter(prefix=kind.prefix, tags=[kind.prefix.strip("/")])
    create_payload = kind.create_schema
    item_response = kind.response_schema

    @router.get("", response_model=RequestListResponse[item_response])
    async def list_requests(
        session: SessionDep,
        actor: ActorDep,
        params: Annotated[RequestListParams, Query()],
    ) -> Any:
        return await approval.list_requests(session, kind, actor, params, params.offset, params.limit)

    @router.get("/export", response_class=FileResponse)
    async def export_requests(
        session: SessionDep,
        actor: ActorDep,
        filters: Annotated[RequestFilters, Query()],
    ) -> FileResponse:
        rows = await approval.export_rows(session, kind, actor, filters)
        path = write_export(kind, rows)
        return FileResponse(
            path,
            media_type=XLSX_MEDIA_TYPE,
            filename=export_filename(kind),
            background=BackgroundTask(os.remove, path),
        )

    @router.get("/{request_id}", response_model=item_response)
    async def get_request(request_id: int, session: SessionDep, actor: ActorDep) -> Any:
        return await approval.get_request(session, kind, actor, request_id)

    @router.post("", response_model=CreateResult[item_response], status_code=status.HTTP_201_CREATED)
    async def create_requests(
        payload: create_payload,  # ty: ignore[invalid-type-form]
        session: SessionDep,
        actor: ActorDep,
    ) -> Any:
        return await approval.create_requests(session, kind, actor, payload)

    @router.patch("/{request_id}/status", response_model=item_response, responses=FORBIDDEN)
    async def update_status(
        request_id: int,
        payload: StatusUpdatePayload,
        session: SessionDep,
        actor: ActorDep,
    ) -> Any:
        outcome = await approval.update_status(session, kind, actor, request_id, payload)
        if not outcome.ok:
            return _forbidden(outcome)
        return outcome.item

    @router.post("/bulk-status", response_model=BulkResult)
    async def bulk_update_status(payload: BulkStatusPayload, session: SessionDep, actor: ActorDep) -> BulkResult:
        return await approval.bulk_update_status(session, kind, actor, payload)

    @router.delete(
        "/{request_id}",
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        responses=FORBIDDEN,
    )
    async def delete_request(request_id: int, session: SessionDep, actor: ActorDep) -> Response:
        outcome = await approval.delete_request(session, kind, actor, request_id)
        if not outcome.ok:
            return _forbidden(outcome)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return router
