"""
Selected subjects API client.

Async httpx client for /student/selected-subjects. Implements the store
interface the selection reconciler consumes.
"""

from typing import Any, Callable, Optional, Protocol

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from config.settings import settings
from models.selection import SelectableItem, SelectionCreate, SelectionRecord
from exceptions import SelectionStoreError, SelectionAlreadyExistsError

logger = structlog.get_logger(__name__)

ALREADY_SELECTED_CODE = "SUBJECT_ALREADY_SELECTED"
ALREADY_SELECTED_TEXT = "already selected"


class SelectionStore(Protocol):
    """Remote system of record for a student's selections."""

    async def list_selections(self) -> list[SelectionRecord]:
        ...

    async def create_selection(self, item: SelectableItem) -> SelectionRecord:
        """Raises SelectionAlreadyExistsError when the key is already stored."""
        ...

    async def delete_selection(self, selection_id: str) -> None:
        ...


def extract_error_message(body: Any, status_code: int) -> tuple[Optional[str], str]:
    """
    Pull (code, message) out of an error body.

    Accepts the AppError envelope {"error": {"code", "message"}} as well as
    the flat {"success": false, "error": "..."} shape.
    """
    fallback = f"Request failed with status {status_code}"

    if not isinstance(body, dict):
        return None, fallback

    error = body.get("error")
    if isinstance(error, dict):
        return error.get("code"), error.get("message") or fallback
    if isinstance(error, str) and error:
        return None, error

    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return None, detail

    return None, fallback


def _expect_list(body: dict, field: str) -> list:
    value = body.get(field)
    if value is None:
        return []
    if not isinstance(value, list):
        raise SelectionStoreError(f"Server error: {field!r} is not a list")
    return value


def _parse_record(row: Any) -> SelectionRecord:
    try:
        return SelectionRecord.model_validate(row)
    except PydanticValidationError as e:
        logger.error("selection_record_invalid", error=str(e))
        raise SelectionStoreError("Server error: malformed selection record") from e


class HttpSelectionStore:
    """
    Selection store backed by the HTTP API.

    Usage:
        async with HttpSelectionStore(lambda: token) as store:
            records = await store.list_selections()
    """

    def __init__(
        self,
        token_provider: Callable[[], Optional[str]],
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        self.token_provider = token_provider
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.on_unauthorized = on_unauthorized
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    async def __aenter__(self) -> "HttpSelectionStore":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ===================
    # STORE OPERATIONS
    # ===================

    async def list_selections(self) -> list[SelectionRecord]:
        body = await self._request("GET", "/student/selected-subjects")
        return [_parse_record(row) for row in _expect_list(body, "subjects")]

    async def create_selection(self, item: SelectableItem) -> SelectionRecord:
        payload = SelectionCreate.from_item(item).model_dump()
        body = await self._request("POST", "/student/selected-subjects", json=payload)
        return _parse_record(body.get("data"))

    async def delete_selection(self, selection_id: str) -> None:
        await self._request("DELETE", f"/student/selected-subjects/{selection_id}")

    async def find_catalog_item(self, code: str) -> Optional[SelectableItem]:
        """
        Look a subject up in the HSC catalog by code.

        Returns:
            SelectableItem built from the catalog row, or None if no row matches
        """
        body = await self._request("GET", "/student/hsc-subjects")
        wanted = code.strip().upper()

        for row in _expect_list(body, "subjects"):
            if isinstance(row, dict) and str(row.get("code", "")).upper() == wanted:
                return SelectableItem.from_subject(row)

        return None

    # ===================
    # TRANSPORT
    # ===================

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        """
        Send an authenticated request and return the JSON body.

        Raises:
            SelectionAlreadyExistsError: Server reports the subject is already selected
            SelectionStoreError: Any other failure
        """
        token = self.token_provider()
        if not token:
            logger.warning("selection_request_without_token", method=method, path=path)
            raise SelectionStoreError("Not authenticated")

        url = f"{self.base_url}{path}"
        logger.debug("selection_request", method=method, url=url)

        try:
            response = await self._client.request(
                method,
                url,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.error("selection_request_failed", method=method, url=url, error=str(e))
            raise SelectionStoreError(f"Network error: {e}") from e

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            logger.error(
                "selection_non_json_response",
                status_code=response.status_code,
                body=response.text[:500]
            )
            raise SelectionStoreError(
                f"Server error: {response.text[:200]}",
                status_code=response.status_code
            )

        try:
            body = response.json()
        except ValueError as e:
            logger.error("selection_invalid_json", status_code=response.status_code, error=str(e))
            raise SelectionStoreError(
                f"Server error: invalid JSON response ({e})",
                status_code=response.status_code
            ) from e

        if response.is_success:
            if not isinstance(body, dict):
                logger.error("selection_unexpected_body", status_code=response.status_code, body_type=type(body).__name__)
                raise SelectionStoreError(
                    "Server error: unexpected response body",
                    status_code=response.status_code
                )
            return body

        code, message = extract_error_message(body, response.status_code)

        logger.info(
            "selection_request_rejected",
            method=method,
            url=url,
            status_code=response.status_code,
            code=code
        )

        if response.status_code == 401 and self.on_unauthorized:
            self.on_unauthorized()

        if (
            response.status_code == 409
            or code == ALREADY_SELECTED_CODE
            or ALREADY_SELECTED_TEXT in message
        ):
            raise SelectionAlreadyExistsError(message, status_code=response.status_code)

        raise SelectionStoreError(message, status_code=response.status_code)
