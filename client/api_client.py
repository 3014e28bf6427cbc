"""
Creator Style API Client
========================

Async httpx client for the creator style service. Responses are parsed
back into the domain models and HTTP failures are raised as the same
exception taxonomy the service uses:

    401 -> Unauthenticated (after the on_unauthenticated hook runs)
    404 -> CreatorNotFoundError / NotFoundError
    422 -> ValidationError with per-field messages
    207 -> PartialBatchFailure carrying the import report
    503, connection failures -> UnavailableError (bulk stats degrade to
                                 empty snapshots instead)

Nothing is retried.
"""

from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

import httpx
from loguru import logger
from pydantic import TypeAdapter

from api.schemas import ResponseExamplePage
from core.exceptions import (
    CreatorNotFoundError,
    CreatorStyleException,
    NotFoundError,
    PartialBatchFailure,
    Unauthenticated,
    UnavailableError,
    ValidationError,
)
from core.models import (
    Creator,
    CreatorStatsSnapshot,
    CreatorStyle,
    ImportReport,
    Page,
    StyleExample,
)

UnauthenticatedHook = Callable[[], Union[None, Awaitable[None]]]

_bulk_stats_adapter = TypeAdapter(Dict[int, CreatorStatsSnapshot])


class CreatorStyleClient:
    """
    Thin async client over the HTTP surface.

    Use as an async context manager, or call ``close()`` when done.
    ``on_unauthenticated`` is invoked (sync or async) whenever the
    service rejects the bearer credential, so the caller can tear down
    its session.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        on_unauthenticated: Optional[UnauthenticatedHook] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.on_unauthenticated = on_unauthenticated
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "CreatorStyleClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    async def _request(
        self, method: str, path: str, *, creator_id: Optional[int] = None, **kwargs: Any
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise UnavailableError(f"Service unreachable: {e}", operation=path, cause=e) from e

        if response.status_code == 401:
            await self._handle_unauthenticated()
            raise Unauthenticated(self._detail(response, "Authentication required"))

        if response.is_success and response.status_code != 207:
            return response

        self._raise_for_status(response, path, creator_id)
        return response

    async def _handle_unauthenticated(self) -> None:
        if self.on_unauthenticated is None:
            return
        result = self.on_unauthenticated()
        if result is not None:
            await result

    @staticmethod
    def _body(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    def _detail(self, response: httpx.Response, default: str) -> str:
        detail = self._body(response).get("detail")
        return detail if isinstance(detail, str) else default

    def _raise_for_status(
        self, response: httpx.Response, path: str, creator_id: Optional[int]
    ) -> None:
        body = self._body(response)
        detail = self._detail(response, response.reason_phrase or "Request failed")
        error_code = body.get("error_code")
        status_code = response.status_code

        if status_code == 207:
            raise PartialBatchFailure(ImportReport.model_validate(body["report"]), detail)
        if status_code == 404:
            if error_code == "CREATOR_NOT_FOUND" and creator_id is not None:
                raise CreatorNotFoundError(creator_id, detail)
            raise NotFoundError("Resource", path, detail, error_code=error_code)
        if status_code == 422:
            raise ValidationError(detail, field_errors=body.get("fields") or {})
        if status_code == 503:
            raise UnavailableError(detail, operation=path)
        raise CreatorStyleException(
            detail, error_code=error_code, context={"status_code": status_code, "path": path}
        )

    # =========================================================================
    # CREATORS
    # =========================================================================

    async def list_creators(
        self,
        *,
        search: Optional[str] = None,
        status: str = "all",
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Page[Creator]:
        params: Dict[str, Any] = {"status": status, "skip": skip}
        if search:
            params["search"] = search
        if limit is not None:
            params["limit"] = limit
        response = await self._request("GET", "/creators", params=params)
        return Page[Creator].model_validate(response.json())

    async def get_creator(self, creator_id: int) -> Creator:
        response = await self._request("GET", f"/creators/{creator_id}", creator_id=creator_id)
        return Creator.model_validate(response.json())

    async def create_creator(self, **fields: Any) -> Creator:
        response = await self._request("POST", "/creators", json=fields)
        return Creator.model_validate(response.json())

    async def update_creator(self, creator_id: int, **changes: Any) -> Creator:
        response = await self._request(
            "PATCH", f"/creators/{creator_id}", creator_id=creator_id, json=changes
        )
        return Creator.model_validate(response.json())

    async def set_creator_active(self, creator_id: int, is_active: bool) -> Creator:
        response = await self._request(
            "PUT",
            f"/creators/{creator_id}/status",
            creator_id=creator_id,
            json={"is_active": is_active},
        )
        return Creator.model_validate(response.json())

    async def delete_creator(self, creator_id: int) -> None:
        await self._request("DELETE", f"/creators/{creator_id}", creator_id=creator_id)

    # =========================================================================
    # STYLE PROFILE
    # =========================================================================

    async def get_style_profile(self, creator_id: int) -> CreatorStyle:
        response = await self._request(
            "GET", f"/creators/{creator_id}/style", creator_id=creator_id
        )
        return CreatorStyle.model_validate(response.json())

    async def update_style_profile(self, creator_id: int, profile: Dict[str, Any]) -> CreatorStyle:
        response = await self._request(
            "PUT", f"/creators/{creator_id}/style", creator_id=creator_id, json=profile
        )
        return CreatorStyle.model_validate(response.json())

    # =========================================================================
    # EXAMPLES
    # =========================================================================

    async def list_style_examples(
        self,
        creator_id: int,
        *,
        search: Optional[str] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Page[StyleExample]:
        response = await self._request(
            "GET",
            f"/creators/{creator_id}/style-examples",
            creator_id=creator_id,
            params=_listing_params(search, category, skip, limit),
        )
        return Page[StyleExample].model_validate(response.json())

    async def create_style_example(self, creator_id: int, **fields: Any) -> StyleExample:
        response = await self._request(
            "POST", f"/creators/{creator_id}/style-examples", creator_id=creator_id, json=fields
        )
        return StyleExample.model_validate(response.json())

    async def list_response_examples(
        self,
        creator_id: int,
        *,
        search: Optional[str] = None,
        category: Optional[str] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> ResponseExamplePage:
        response = await self._request(
            "GET",
            f"/creators/{creator_id}/response-examples",
            creator_id=creator_id,
            params=_listing_params(search, category, skip, limit),
        )
        return ResponseExamplePage.model_validate(response.json())

    async def import_examples(self, creator_id: int, kind: str, content: bytes) -> ImportReport:
        """
        Upload a CSV file of ``kind`` ("style" or "response") examples.

        Raises:
            PartialBatchFailure: Some rows were rejected; the rest are committed
        """
        response = await self._request(
            "POST",
            f"/creators/{creator_id}/bulk-{kind}-examples",
            creator_id=creator_id,
            files={"file": (f"{kind}-examples.csv", content, "text/csv")},
        )
        return ImportReport.model_validate(response.json()["report"])

    async def export_examples(
        self,
        creator_id: int,
        kind: str,
        *,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> str:
        response = await self._request(
            "GET",
            f"/creators/{creator_id}/{kind}-examples/export",
            creator_id=creator_id,
            params=_listing_params(search, category, None, None),
        )
        return response.text

    # =========================================================================
    # STATISTICS
    # =========================================================================

    async def get_stats(self, creator_id: int) -> CreatorStatsSnapshot:
        response = await self._request(
            "GET", f"/creators/{creator_id}/stats", creator_id=creator_id
        )
        return CreatorStatsSnapshot.model_validate(response.json())

    async def get_bulk_stats(
        self,
        creator_ids: List[int],
        known_creators: Optional[Mapping[int, Creator]] = None,
    ) -> Dict[int, CreatorStatsSnapshot]:
        """
        Snapshots for every requested id.

        When the service is unavailable each id gets a zeroed snapshot,
        labelled from ``known_creators`` where the caller has the record.
        """
        try:
            response = await self._request(
                "POST", "/creators/stats/bulk", json={"creator_ids": creator_ids}
            )
        except UnavailableError as e:
            logger.warning(f"Bulk stats unavailable, returning empty snapshots: {e.message}")
            known = known_creators or {}
            return {
                creator_id: CreatorStatsSnapshot.empty(known.get(creator_id), creator_id)
                for creator_id in dict.fromkeys(creator_ids)
            }
        return _bulk_stats_adapter.validate_python(response.json())


def _listing_params(
    search: Optional[str], category: Optional[str], skip: Optional[int], limit: Optional[int]
) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if search:
        params["search"] = search
    if category:
        params["category"] = category
    if skip is not None:
        params["skip"] = skip
    if limit is not None:
        params["limit"] = limit
    return params


__all__ = ["CreatorStyleClient"]
