"""Tests for the approval workflow service."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from pricing_dashboard.core.exceptions import (
    ApprovalNotFoundError,
    ApprovalStateError,
    ValidationError,
)
from pricing_dashboard.repositories.approval_repository import ApprovalRepository
from pricing_dashboard.schemas.approvals import ApprovalCreateRequest
from pricing_dashboard.services.approval_service import (
    DEFAULT_REASON,
    ApprovalService,
    parse_request_id,
)
from pricing_dashboard.services.pricing_validation import snapshot_hash


@pytest.fixture
def repository(approval_factory) -> AsyncMock:
    repo = AsyncMock(spec=ApprovalRepository)
    repo.create.side_effect = lambda **kwargs: approval_factory(**kwargs)
    repo.update.side_effect = lambda request_id, **kwargs: approval_factory(id=request_id, **kwargs)
    return repo


@pytest.fixture
def service(repository: AsyncMock) -> ApprovalService:
    approval_service = ApprovalService(MagicMock())
    approval_service.repository = repository
    return approval_service


class TestCreateRequest:
    @pytest.mark.asyncio
    async def test_justification_comes_first_then_rule_violations(
        self, service: ApprovalService, repository: AsyncMock
    ) -> None:
        user_id = uuid4()
        snapshot = {"stars": 4, "averagePrice": "65,00", "voucherPrice": 30, "projectCosts": 10000,
                    "profitMargin": 300, "totalPrice": 1000}
        payload = ApprovalCreateRequest(
            calculation_id=17,
            calculation_snapshot=snapshot,
            business_justification="Messezeitraum",
        )

        request = await service.create_request(user_id, payload)

        kwargs = repository.create.call_args.kwargs
        assert kwargs["created_by_user_id"] == user_id
        assert kwargs["calculation_id"] == "17"
        assert kwargs["status"] == "pending"
        assert kwargs["star_category"] == 4
        assert kwargs["reasons"] == [
            "Messezeitraum",
            "Realistischer Hotelverkaufspreis 65.00 € überschreitet das 4★ Limit von 60.00 €",
        ]
        assert kwargs["input_snapshot"] == {
            "calculationId": 17,
            "calculationSnapshot": snapshot,
            "businessJustification": "Messezeitraum",
        }
        assert kwargs["input_hash"] == snapshot_hash(snapshot)
        assert request.status == "pending"

    @pytest.mark.asyncio
    async def test_default_reason_without_justification(
        self, service: ApprovalService, repository: AsyncMock
    ) -> None:
        payload = ApprovalCreateRequest(calculation_id="c-1", calculation_snapshot={"hotel": "Sonnenhof"})

        await service.create_request(uuid4(), payload)

        kwargs = repository.create.call_args.kwargs
        assert kwargs["reasons"] == [DEFAULT_REASON]
        assert kwargs["star_category"] == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            ApprovalCreateRequest(calculation_snapshot={"stars": 4}),
            ApprovalCreateRequest(calculation_id="", calculation_snapshot={"stars": 4}),
            ApprovalCreateRequest(calculation_id="c-1"),
            ApprovalCreateRequest(calculation_id="c-1", calculation_snapshot={}),
        ],
    )
    async def test_missing_fields_are_rejected(
        self, service: ApprovalService, repository: AsyncMock, payload: ApprovalCreateRequest
    ) -> None:
        with pytest.raises(ValidationError, match="Missing required fields"):
            await service.create_request(uuid4(), payload)

        repository.create.assert_not_called()


class TestQueries:
    @pytest.mark.asyncio
    async def test_all_filter_means_no_filter(self, service: ApprovalService, repository: AsyncMock) -> None:
        repository.list_requests.return_value = []

        await service.list_requests("all")
        await service.list_requests("pending")

        assert [c.args[0] for c in repository.list_requests.call_args_list] == [None, "pending"]

    @pytest.mark.asyncio
    async def test_stats_totals(self, service: ApprovalService, repository: AsyncMock) -> None:
        repository.count_by_status.return_value = {"pending": 2, "rejected": 1}

        stats = await service.stats()

        assert stats.model_dump() == {"pending": 2, "approved": 0, "rejected": 1, "total": 3}


class TestDecide:
    @pytest.mark.asyncio
    async def test_approve_pending_request(
        self, service: ApprovalService, repository: AsyncMock, approval_factory
    ) -> None:
        pending = approval_factory()
        repository.get_by_id.return_value = pending
        admin_id = uuid4()

        updated = await service.decide(str(pending.id), admin_id, "approve")

        assert updated.status == "approved"
        kwargs = repository.update.call_args.kwargs
        assert kwargs["approved_by_user_id"] == admin_id
        assert kwargs["decided_at"] is not None

    @pytest.mark.asyncio
    async def test_reject_requires_comment(self, service: ApprovalService, repository: AsyncMock) -> None:
        with pytest.raises(ValidationError, match="Admin comment is required when rejecting"):
            await service.decide(str(uuid4()), uuid4(), "reject", "   ")

        repository.get_by_id.assert_not_called()

    @pytest.mark.asyncio
    async def test_reject_with_comment(
        self, service: ApprovalService, repository: AsyncMock, approval_factory
    ) -> None:
        pending = approval_factory()
        repository.get_by_id.return_value = pending

        updated = await service.decide(str(pending.id), uuid4(), "reject", "Marge zu gering")

        assert updated.status == "rejected"
        assert updated.admin_comment == "Marge zu gering"

    @pytest.mark.asyncio
    async def test_unknown_action(self, service: ApprovalService) -> None:
        with pytest.raises(ValidationError, match="Action must be 'approve' or 'reject'"):
            await service.decide(str(uuid4()), uuid4(), "maybe")

    @pytest.mark.asyncio
    async def test_already_decided(
        self, service: ApprovalService, repository: AsyncMock, approval_factory
    ) -> None:
        repository.get_by_id.return_value = approval_factory(status="approved")

        with pytest.raises(ApprovalStateError, match="already approved"):
            await service.decide(str(uuid4()), uuid4(), "reject", "zu spät")

        repository.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_request(self, service: ApprovalService, repository: AsyncMock) -> None:
        repository.get_by_id.return_value = None

        with pytest.raises(ApprovalNotFoundError):
            await service.decide(str(uuid4()), uuid4(), "approve")

    @pytest.mark.asyncio
    async def test_invalid_id(self, service: ApprovalService) -> None:
        with pytest.raises(ValidationError, match="Invalid request ID"):
            await service.decide("abc", uuid4(), "approve")


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_missing_request(self, service: ApprovalService, repository: AsyncMock) -> None:
        repository.delete.return_value = False

        with pytest.raises(ApprovalNotFoundError):
            await service.delete_request(str(uuid4()))

    @pytest.mark.asyncio
    async def test_delete(self, service: ApprovalService, repository: AsyncMock) -> None:
        request_id = uuid4()
        repository.delete.return_value = True

        await service.delete_request(str(request_id))

        repository.delete.assert_awaited_once_with(request_id)


def test_parse_request_id_rejects_garbage() -> None:
    with pytest.raises(ValidationError):
        parse_request_id("42")
