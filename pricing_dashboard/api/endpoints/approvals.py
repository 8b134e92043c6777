"""Approval request endpoints.

Responses use the ``{success, data, message}`` envelope the dashboard reads.
"""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.api.errors import http_error
from pricing_dashboard.core.auth import get_current_user, require_admin
from pricing_dashboard.core.database import get_async_session
from pricing_dashboard.core.exceptions import AppError
from pricing_dashboard.schemas.approvals import (
    ApprovalCreateRequest,
    ApprovalDecisionRequest,
    ApprovalResponse,
)
from pricing_dashboard.schemas.auth import CurrentUser
from pricing_dashboard.services.approval_service import ApprovalService
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_approval_service(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> ApprovalService:
    return ApprovalService(db_session)


def create_api_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    response: Dict[str, Any] = {"success": True}
    if data is not None:
        response["data"] = data
    if message:
        response["message"] = message
    return response


def _dump(request) -> Dict[str, Any]:
    return ApprovalResponse.model_validate(request).model_dump(by_alias=True, mode="json")


@router.post(
    "",
    summary="Request approval for a calculation",
    operation_id="create_approval_request",
)
async def create_approval_request(
    payload: ApprovalCreateRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    approval_service: Annotated[ApprovalService, Depends(get_approval_service)],
) -> Dict[str, Any]:
    try:
        request = await approval_service.create_request(current_user.id, payload)
    except AppError as e:
        raise http_error(e) from e
    return create_api_response(_dump(request), "Approval request created successfully")


@router.get(
    "",
    summary="List approval requests",
    operation_id="list_approval_requests",
)
async def list_approval_requests(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    approval_service: Annotated[ApprovalService, Depends(get_approval_service)],
    status_filter: Optional[str] = Query(None, alias="status"),
) -> Dict[str, Any]:
    requests = await approval_service.list_requests(status_filter)
    return create_api_response([_dump(r) for r in requests])


@router.get(
    "/stats",
    summary="Count approval requests by status",
    operation_id="get_approval_stats",
)
async def approval_stats(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    approval_service: Annotated[ApprovalService, Depends(get_approval_service)],
) -> Dict[str, Any]:
    stats = await approval_service.stats()
    return create_api_response(stats.model_dump(by_alias=True))


@router.get(
    "/my-requests",
    summary="List the current user's approval requests",
    operation_id="list_my_approval_requests",
)
async def my_requests(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    approval_service: Annotated[ApprovalService, Depends(get_approval_service)],
) -> Dict[str, Any]:
    requests = await approval_service.my_requests(current_user.id)
    return create_api_response([_dump(r) for r in requests])


@router.patch(
    "/{request_id}",
    summary="Approve or reject a pending request",
    operation_id="decide_approval_request",
)
async def decide_approval_request(
    request_id: str,
    payload: ApprovalDecisionRequest,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    approval_service: Annotated[ApprovalService, Depends(get_approval_service)],
) -> Dict[str, Any]:
    try:
        request = await approval_service.decide(
            request_id, current_user.id, payload.action, payload.admin_comment
        )
    except AppError as e:
        raise http_error(e) from e
    return create_api_response(_dump(request), f"Request {request.status} successfully")


@router.delete(
    "/{request_id}",
    summary="Delete an approval request",
    operation_id="delete_approval_request",
)
async def delete_approval_request(
    request_id: str,
    current_user: Annotated[CurrentUser, Depends(require_admin)],
    approval_service: Annotated[ApprovalService, Depends(get_approval_service)],
) -> Dict[str, Any]:
    try:
        await approval_service.delete_request(request_id)
    except AppError as e:
        raise http_error(e) from e
    return create_api_response(message="Approval request deleted successfully")
