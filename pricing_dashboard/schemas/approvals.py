"""Schemas for pricing approval requests."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union
from uuid import UUID

from pydantic import Field

from pricing_dashboard.schemas.documents import CamelModel

ApprovalStatus = Literal["pending", "approved", "rejected"]


class ApprovalCreateRequest(CamelModel):
    """Payload posted when a calculation needs sign-off.

    Required fields are checked by the service so that a missing field
    yields the same 400 message as an empty one.
    """

    calculation_id: Optional[Union[str, int]] = None
    calculation_snapshot: Optional[Dict[str, Any]] = None
    business_justification: Optional[str] = None


class ApprovalDecisionRequest(CamelModel):
    action: Optional[str] = None
    admin_comment: Optional[str] = None


class ApprovalResponse(CamelModel):
    id: UUID
    created_by_user_id: UUID
    approved_by_user_id: Optional[UUID] = None
    calculation_id: str
    status: ApprovalStatus
    star_category: int = 0
    input_snapshot: Dict[str, Any] = Field(default_factory=dict)
    calculation_snapshot: Dict[str, Any] = Field(default_factory=dict)
    reasons: List[str] = Field(default_factory=list)
    admin_comment: Optional[str] = None
    input_hash: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None


class ApprovalStats(CamelModel):
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    total: int = 0

