"""
Checkins Backend — Check-in Route Handlers
============================================

What:  GET /v1/checkins (read) and POST /v1/checkins (create).
How:   Handlers stay thin: the body is bounded and validated by a dependency
       before the handler runs, the repository does the store work, and
       failures are raised as exceptions that the global handlers in
       main.py turn into status codes.

Status mapping:
    GET  → 200 with one check-in, or null on an empty store
    POST → 201 with an empty body (the stored row is not echoed back)
    400  → malformed or incomplete JSON
    413  → body larger than 16384 bytes
    500  → pool or store failure, empty body
"""

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Request, Response

from checkins.schemas.checkin import (
    CheckinRequest,
    CheckinResponse,
    ErrorResponse,
    NewCheckin,
)
from checkins.services.checkin_repository import CheckinRepository
from checkins.services.payload_validator import read_checkin_request

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["Checkins"])


def get_repository(request: Request) -> CheckinRepository:
    """The repository built by create_app() for this application."""
    return request.app.state.repository


@router.get(
    "/checkins",
    response_model=Optional[Union[CheckinResponse, List[CheckinResponse]]],
    responses={
        200: {"description": "Most recent check-in (null when none are stored)"},
        500: {"description": "Store failure (empty body)"},
    },
    summary="Read stored check-ins",
    description=(
        "Returns the most recent check-in, or null when none exist. When the "
        "server runs with CHECKINS_LIST_POLICY=full_list, returns every "
        "check-in, most recent first."
    ),
)
async def list_checkins(
    repository: CheckinRepository = Depends(get_repository),
) -> Optional[Union[CheckinResponse, List[CheckinResponse]]]:
    return await repository.list()


@router.post(
    "/checkins",
    status_code=201,
    response_class=Response,
    responses={
        201: {"description": "Check-in stored (empty body)"},
        400: {"description": "Malformed JSON or missing field", "model": ErrorResponse},
        413: {"description": "Body larger than 16384 bytes", "model": ErrorResponse},
        500: {"description": "Store failure (empty body)"},
    },
    summary="Report a check-in",
    # The body is read by read_checkin_request, so document it explicitly
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": CheckinRequest.model_json_schema()}},
        }
    },
)
async def create_checkin(
    checkin: CheckinRequest = Depends(read_checkin_request),
    repository: CheckinRepository = Depends(get_repository),
) -> Response:
    logger.info("create_checkin from client %s", checkin.client_id)
    await repository.create(NewCheckin.from_request(checkin))
    return Response(status_code=201)
