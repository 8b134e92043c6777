"""Tests for registration and credential checks."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from pricing_dashboard.core.exceptions import ValidationError
from pricing_dashboard.core.security import hash_password
from pricing_dashboard.repositories.user_repository import UserRepository
from pricing_dashboard.schemas.auth import RegisterRequest
from pricing_dashboard.services.user_service import UserService


@pytest.fixture
def repository() -> AsyncMock:
    repo = AsyncMock(spec=UserRepository)
    repo.create.side_effect = lambda **kwargs: SimpleNamespace(id=uuid4(), is_active=True, **kwargs)
    return repo


@pytest.fixture
def service(repository: AsyncMock) -> UserService:
    user_service = UserService(MagicMock())
    user_service.repository = repository
    return user_service


class TestRegister:
    @pytest.mark.asyncio
    async def test_creates_user_with_default_role(self, service: UserService, repository: AsyncMock) -> None:
        repository.get_by_email.return_value = None
        payload = RegisterRequest(email="Anna@Example.com", password="secret1", firstName="Anna")

        user = await service.register(payload)

        assert user.email == "anna@example.com"
        assert user.role == "user"
        assert user.first_name == "Anna"
        assert user.password_hash != "secret1"

    @pytest.mark.asyncio
    async def test_duplicate_email(self, service: UserService, repository: AsyncMock) -> None:
        repository.get_by_email.return_value = SimpleNamespace(id=uuid4())

        with pytest.raises(ValidationError, match="User already exists"):
            await service.register(RegisterRequest(email="anna@example.com", password="secret1"))

        repository.create.assert_not_called()


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_valid_credentials(self, service: UserService, repository: AsyncMock) -> None:
        user = SimpleNamespace(id=uuid4(), is_active=True, password_hash=hash_password("secret1"))
        repository.get_by_email.return_value = user

        assert await service.authenticate("anna@example.com", "secret1") is user

    @pytest.mark.asyncio
    async def test_wrong_password(self, service: UserService, repository: AsyncMock) -> None:
        repository.get_by_email.return_value = SimpleNamespace(
            id=uuid4(), is_active=True, password_hash=hash_password("secret1")
        )

        assert await service.authenticate("anna@example.com", "wrong") is None

    @pytest.mark.asyncio
    async def test_inactive_user(self, service: UserService, repository: AsyncMock) -> None:
        repository.get_by_email.return_value = SimpleNamespace(
            id=uuid4(), is_active=False, password_hash=hash_password("secret1")
        )

        assert await service.authenticate("anna@example.com", "secret1") is None

    @pytest.mark.asyncio
    async def test_unknown_email(self, service: UserService, repository: AsyncMock) -> None:
        repository.get_by_email.return_value = None

        assert await service.authenticate("nobody@example.com", "secret1") is None
