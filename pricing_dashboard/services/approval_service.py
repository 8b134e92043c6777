"""Approval workflow for pricing calculations outside the business rules."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from pricing_dashboard.core.exceptions import (
    ApprovalNotFoundError,
    ApprovalStateError,
    ValidationError,
)
from pricing_dashboard.database.models import ApprovalRequest
from pricing_dashboard.repositories.approval_repository import ApprovalRepository
from pricing_dashboard.schemas.approvals import ApprovalCreateRequest, ApprovalStats
from pricing_dashboard.services.pricing_validation import (
    extract_pricing_input,
    has_pricing_fields,
    snapshot_hash,
    validate_pricing,
)
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)

DEFAULT_REASON = "Calculation requires approval based on business rules"
DECISION_ACTIONS = {"approve": "approved", "reject": "rejected"}


def parse_request_id(raw_id: str) -> UUID:
    """Parse a path id.

    Raises:
        ValidationError: If the id is not a UUID
    """
    try:
        return UUID(str(raw_id))
    except ValueError as e:
        raise ValidationError("Invalid request ID", original_error=e) from e


class ApprovalService:
    """Creates, lists and decides approval requests."""

    def __init__(self, db_session: AsyncSession):
        self.repository = ApprovalRepository(db_session)

    async def create_request(self, user_id: UUID, payload: ApprovalCreateRequest) -> ApprovalRequest:
        """Create a pending approval request for a calculation.

        The business justification (or a default reason) comes first; when the
        snapshot carries pricing fields the rule violations are appended.

        Raises:
            ValidationError: If calculationId or calculationSnapshot is missing
        """
        if payload.calculation_id in (None, "") or not payload.calculation_snapshot:
            raise ValidationError("Missing required fields")

        snapshot: Dict[str, Any] = payload.calculation_snapshot
        reasons: List[str] = [payload.business_justification or DEFAULT_REASON]
        if has_pricing_fields(snapshot):
            result = validate_pricing(extract_pricing_input(snapshot))
            reasons.extend(r for r in result.reasons if r not in reasons)

        star_category = snapshot.get("stars") or 0
        try:
            star_category = int(star_category)
        except (TypeError, ValueError):
            star_category = 0

        request = await self.repository.create(
            created_by_user_id=user_id,
            calculation_id=str(payload.calculation_id),
            status="pending",
            star_category=star_category,
            input_snapshot={
                "calculationId": payload.calculation_id,
                "calculationSnapshot": snapshot,
                "businessJustification": payload.business_justification,
            },
            calculation_snapshot=snapshot,
            reasons=reasons,
            input_hash=snapshot_hash(snapshot),
        )
        LOGGER.info(
            "Approval request created",
            extra={"approval_id": str(request.id), "user_id": str(user_id), "reasons": len(reasons)},
        )
        return request

    async def list_requests(self, status: Optional[str] = None) -> List[ApprovalRequest]:
        if status == "all":
            status = None
        return await self.repository.list_requests(status)

    async def my_requests(self, user_id: UUID) -> List[ApprovalRequest]:
        return await self.repository.list_for_creator(user_id)

    async def stats(self) -> ApprovalStats:
        counts = await self.repository.count_by_status()
        pending = counts.get("pending", 0)
        approved = counts.get("approved", 0)
        rejected = counts.get("rejected", 0)
        return ApprovalStats(
            pending=pending,
            approved=approved,
            rejected=rejected,
            total=pending + approved + rejected,
        )

    async def decide(
        self,
        raw_id: str,
        admin_id: UUID,
        action: Optional[str],
        admin_comment: Optional[str] = None,
    ) -> ApprovalRequest:
        """Approve or reject a pending request.

        Args:
            raw_id: Request id from the path
            admin_id: Deciding administrator
            action: ``approve`` or ``reject``
            admin_comment: Required when rejecting

        Raises:
            ValidationError: On an unknown action, a missing rejection comment or a bad id
            ApprovalNotFoundError: If the request does not exist
            ApprovalStateError: If the request was already decided
        """
        if action not in DECISION_ACTIONS:
            raise ValidationError("Action must be 'approve' or 'reject'")
        if action == "reject" and not (admin_comment or "").strip():
            raise ValidationError("Admin comment is required when rejecting")

        request_id = parse_request_id(raw_id)
        request = await self.repository.get_by_id(request_id)
        if request is None:
            raise ApprovalNotFoundError("Approval request not found")
        if request.status != "pending":
            raise ApprovalStateError(f"Approval request is already {request.status}")

        updated = await self.repository.update(
            request_id,
            status=DECISION_ACTIONS[action],
            approved_by_user_id=admin_id,
            admin_comment=admin_comment,
            decided_at=datetime.now(timezone.utc),
        )
        LOGGER.info(
            f"Approval request {DECISION_ACTIONS[action]}",
            extra={"approval_id": str(request_id), "admin_id": str(admin_id)},
        )
        return updated

    async def delete_request(self, raw_id: str) -> None:
        request_id = parse_request_id(raw_id)
        if not await self.repository.delete(request_id):
            raise ApprovalNotFoundError("Approval request not found")
        LOGGER.info("Approval request deleted", extra={"approval_id": str(request_id)})
