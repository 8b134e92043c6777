"""Async HTTP client for the dashboard backend."""

import os
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

import httpx

from pricing_dashboard.core.config import settings
from pricing_dashboard.core.exceptions import APIClientError, ValidationError
from pricing_dashboard.utils.logging import get_logger

LOGGER = get_logger(__name__)


class DashboardAPIError(APIClientError):
    """A backend call returned a non-2xx status or could not be sent."""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_error=original_error, status_code=status_code)


def _server_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()

    if isinstance(body, dict):
        detail = body.get("detail")
        if isinstance(detail, dict) and detail.get("message"):
            return str(detail["message"])
        if isinstance(detail, str):
            return detail
        if body.get("message"):
            return str(body["message"])
    return ""


class DashboardClient:
    """One coroutine per backend endpoint.

    The session cookie set by login/register is kept in the underlying
    ``httpx.AsyncClient`` cookie jar.

    Example:
        async with DashboardClient() as client:
            await client.login("user@example.com", "secret")
            uploads = await client.list_uploads()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url or settings.dashboard.base_url).rstrip("/")
        self.max_upload_size_bytes = settings.storage.max_upload_size_bytes
        self._client = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.dashboard.request_timeout,
        )

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a request and decode the JSON body.

        Returns:
            Decoded JSON, or None for empty responses

        Raises:
            DashboardAPIError: On transport errors and non-2xx responses
        """
        try:
            response = await self._client.request(method, path, json=json, params=params, files=files)
        except httpx.TimeoutException as e:
            LOGGER.error(f"{method} {path} timed out")
            raise DashboardAPIError(None, f"Request timed out: {path}", original_error=e) from e
        except httpx.RequestError as e:
            LOGGER.error(f"{method} {path} failed: {e}")
            raise DashboardAPIError(None, f"Request failed: {e}", original_error=e) from e

        if response.status_code >= 400:
            message = _server_message(response)
            LOGGER.warning(
                f"{method} {path} returned {response.status_code}",
                extra={"status_code": response.status_code, "server_message": message},
            )
            raise DashboardAPIError(response.status_code, message)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # Auth

    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self.request("POST", "/api/auth/login", json={"email": email, "password": password})

    async def register(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {"email": email, "password": password, "firstName": first_name, "lastName": last_name}
        return await self.request("POST", "/api/auth/register", json=payload)

    async def current_user(self) -> Dict[str, Any]:
        return await self.request("GET", "/api/auth/user")

    async def logout(self) -> None:
        await self.request("POST", "/api/auth/logout")
        self._client.cookies.clear()

    # Documents

    async def list_uploads(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/api/document-uploads")

    async def upload_document(self, path: Union[str, os.PathLike]) -> Dict[str, Any]:
        """Upload a file as the multipart field ``file``.

        Raises:
            ValidationError: If the file is larger than the upload limit
        """
        size = os.path.getsize(path)
        if size > self.max_upload_size_bytes:
            raise ValidationError(
                f"File exceeds the maximum upload size of {self.max_upload_size_bytes // (1024 * 1024)} MB"
            )

        with open(path, "rb") as handle:
            files = {"file": (os.path.basename(path), handle)}
            return await self.request("POST", "/api/document-uploads", files=files)

    async def delete_upload(self, upload_id: Union[str, UUID]) -> None:
        await self.request("DELETE", f"/api/document-uploads/{upload_id}")

    async def list_analyses(self, upload_id: Optional[Union[str, UUID]] = None) -> List[Dict[str, Any]]:
        params = {"uploadId": str(upload_id)} if upload_id else None
        return await self.request("GET", "/api/document-analyses", params=params)

    async def list_insights(self) -> List[Dict[str, Any]]:
        return await self.request("GET", "/api/document-insights")

    async def process_ocr(self, upload_id: Union[str, UUID], file_name: str) -> Dict[str, Any]:
        return await self.request(
            "POST", "/api/process-ocr", json={"uploadId": str(upload_id), "fileName": file_name}
        )

    # AI operations

    async def mass_summary(self) -> Dict[str, Any]:
        return await self.request("POST", "/api/ai/mass-summary", json={})

    async def fresh_analysis(self) -> Dict[str, Any]:
        return await self.request("POST", "/api/ai/fresh-analysis", json={})

    async def intelligent_restoration(self) -> Dict[str, Any]:
        return await self.request("POST", "/api/ai/intelligent-restoration", json={})

    async def comprehensive_analysis(self) -> Dict[str, Any]:
        return await self.request("POST", "/api/ai/comprehensive-analysis", json={})

    async def analytics_query(self, query: str) -> Dict[str, Any]:
        return await self.request("POST", "/api/ai/analytics-query", json={"query": query})

    # Approvals

    async def create_approval(
        self,
        calculation_id: Union[str, int],
        calculation_snapshot: Dict[str, Any],
        business_justification: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload = {
            "calculationId": calculation_id,
            "calculationSnapshot": calculation_snapshot,
            "businessJustification": business_justification,
        }
        return await self.request("POST", "/api/approvals", json=payload)

    async def list_approvals(self, status: Optional[str] = None) -> Dict[str, Any]:
        params = {"status": status} if status else None
        return await self.request("GET", "/api/approvals", params=params)

    async def approval_stats(self) -> Dict[str, Any]:
        return await self.request("GET", "/api/approvals/stats")

    async def my_approval_requests(self) -> Dict[str, Any]:
        return await self.request("GET", "/api/approvals/my-requests")

    async def decide_approval(
        self, request_id: Union[str, UUID], action: str, admin_comment: Optional[str] = None
    ) -> Dict[str, Any]:
        payload = {"action": action, "adminComment": admin_comment}
        return await self.request("PATCH", f"/api/approvals/{request_id}", json=payload)

    async def delete_approval(self, request_id: Union[str, UUID]) -> Dict[str, Any]:
        return await self.request("DELETE", f"/api/approvals/{request_id}")
