"""ERP REST API client returning {success, data, message} envelopes"""

import httpx
from datetime import date
from typing import Any, Dict, List, Optional
from zakat_admin.domain.models import ApiResult, Application, AuthContext, DistributionPhase, Pagination
from zakat_admin.domain.exceptions import ErpAPIError
from zakat_admin.config import settings
from zakat_admin.infrastructure.observability.metrics import erp_request_failures_counter


def _clean(params: Dict[str, Any] | None) -> Dict[str, Any]:
    return {k: v for k, v in (params or {}).items() if v is not None and v != ""}


def parse_pagination(data: Dict[str, Any] | None) -> Pagination:
    info = (data or {}).get("pagination") or {}
    return Pagination(
        page=int(info.get("page", 1)),
        limit=int(info.get("limit", settings.default_page_limit)),
        total=int(info.get("total", 0)),
        pages=int(info.get("pages", 1)),
    )


def parse_application(raw: Dict[str, Any]) -> Application:
    """
    Map an application document to the domain model.

    Raises:
        KeyError / ValueError / TypeError: On malformed documents
    """
    timeline = [
        DistributionPhase(
            description=phase["description"],
            percentage=float(phase["percentage"]),
            days_from_approval=phase.get("daysFromApproval"),
            expected_date=date.fromisoformat(phase["expectedDate"][:10]) if phase.get("expectedDate") else None,
            requires_verification=bool(phase.get("requiresVerification", False)),
            notes=phase.get("notes"),
        )
        for phase in raw.get("distributionTimeline") or []
    ]
    beneficiary = raw.get("beneficiary") or {}
    scheme = raw.get("scheme") or {}
    return Application(
        id=str(raw.get("_id") or raw["id"]),
        application_number=raw.get("applicationNumber", ""),
        status=raw.get("status", "pending"),
        requested_amount=int(raw["requestedAmount"]),
        beneficiary_name=beneficiary.get("name") if isinstance(beneficiary, dict) else None,
        scheme_name=scheme.get("name") if isinstance(scheme, dict) else None,
        distribution_timeline=timeline,
    )


class ErpClient:
    """Client for the welfare ERP REST API"""

    def __init__(
        self,
        base_url: str | None = None,
        auth: AuthContext | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.erp_api_base).rstrip("/")
        self.auth = auth
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

        self.applications = ApplicationsAPI(self, "/applications")
        self.payments = ResourceAPI(self, "/payments")
        self.schemes = SchemesAPI(self, "/schemes")
        self.locations = LocationsAPI(self, "/locations")
        self.users = UsersAPI(self, "/users")
        self.budget = BudgetAPI(self)
        self.website = WebsiteAPI(self)
        self.activity_logs = ActivityLogsAPI(self, "/activity-logs")

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.auth is not None:
            headers["Authorization"] = f"Bearer {self.auth.token}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Dict[str, Any] | None = None,
    ) -> ApiResult[Any]:
        """
        Send one request and unwrap the response envelope.

        Non-2xx responses raise; a 2xx envelope with success=false comes back
        as a failed ApiResult. Nothing is retried.

        Raises:
            ErpAPIError: On expired credentials, timeout, connection failure,
                HTTP errors, or a body that is not an envelope
        """
        if self.auth is not None and self.auth.is_expired():
            raise ErpAPIError("Session expired, please sign in again", status_code=401)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    params=_clean(params),
                    json=json,
                    headers=self._headers(),
                )

                if response.is_error:
                    try:
                        message = response.json().get("message")
                    except (ValueError, AttributeError):
                        message = None
                    raise ErpAPIError(
                        message or f"HTTP error! status: {response.status_code}",
                        status_code=response.status_code,
                    )

                return ApiResult.from_envelope(response.json())

            except ErpAPIError:
                erp_request_failures_counter.labels(reason="http_status").inc()
                raise
            except httpx.TimeoutException as e:
                erp_request_failures_counter.labels(reason="timeout").inc()
                raise ErpAPIError(f"ERP API timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                erp_request_failures_counter.labels(reason="unavailable").inc()
                raise ErpAPIError(f"ERP API unavailable: {e}") from e
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                erp_request_failures_counter.labels(reason="invalid_response").inc()
                raise ErpAPIError(f"Invalid response from ERP API: {e}") from e


class ResourceAPI:
    """CRUD endpoints of one collection"""

    def __init__(self, client: ErpClient, path: str):
        self.client = client
        self.path = path

    async def list(self, **params: Any) -> ApiResult[Any]:
        return await self.client.request("GET", self.path, params=params)

    async def get(self, resource_id: str) -> ApiResult[Any]:
        return await self.client.request("GET", f"{self.path}/{resource_id}")

    async def create(self, data: Dict[str, Any]) -> ApiResult[Any]:
        return await self.client.request("POST", self.path, json=data)

    async def update(self, resource_id: str, data: Dict[str, Any]) -> ApiResult[Any]:
        return await self.client.request("PUT", f"{self.path}/{resource_id}", json=data)

    async def delete(self, resource_id: str) -> ApiResult[Any]:
        return await self.client.request("DELETE", f"{self.path}/{resource_id}")


class ApplicationsAPI(ResourceAPI):
    async def review(self, application_id: str, data: Dict[str, Any]) -> ApiResult[Any]:
        return await self.client.request("PATCH", f"{self.path}/{application_id}/review", json=data)

    async def approve(self, application_id: str, data: Dict[str, Any]) -> ApiResult[Any]:
        return await self.client.request("PATCH", f"{self.path}/{application_id}/approve", json=data)

    async def pending_committee(self, **params: Any) -> ApiResult[Any]:
        return await self.client.request("GET", f"{self.path}/committee/pending", params=params)

    async def committee_decision(self, application_id: str, payload: Dict[str, Any]) -> ApiResult[Any]:
        return await self.client.request("POST", f"{self.path}/{application_id}/committee-decision", json=payload)

    async def get_application(self, application_id: str) -> Optional[Application]:
        """Typed fetch; None when the API reports failure"""
        result = await self.get(application_id)
        if not result.success or not result.data:
            return None
        raw = result.data.get("application", result.data)
        try:
            return parse_application(raw)
        except (KeyError, ValueError, TypeError) as e:
            raise ErpAPIError(f"Invalid application data from ERP API: {e}") from e

    async def list_pending_committee(self, **params: Any) -> tuple[List[Application], Pagination]:
        result = await self.pending_committee(**params)
        if not result.success:
            raise ErpAPIError(result.message or "Failed to load applications")
        data = result.data or {}
        try:
            apps = [parse_application(raw) for raw in data.get("applications") or []]
        except (KeyError, ValueError, TypeError) as e:
            raise ErpAPIError(f"Invalid application data from ERP API: {e}") from e
        return apps, parse_pagination(data)


class SchemesAPI(ResourceAPI):
    async def publish_form(self, scheme_id: str, is_published: bool) -> ApiResult[Any]:
        return await self.client.request(
            "PATCH",
            f"{self.path}/{scheme_id}/form-config/publish",
            json={"isPublished": is_published},
        )


class LocationsAPI(ResourceAPI):
    async def stats(self) -> ApiResult[Any]:
        return await self.client.request("GET", f"{self.path}/statistics")

    async def by_type(self, location_type: str, **params: Any) -> ApiResult[Any]:
        return await self.client.request("GET", f"{self.path}/by-type/{location_type}", params=params)


class UsersAPI(ResourceAPI):
    async def stats(self) -> ApiResult[Any]:
        return await self.client.request("GET", f"{self.path}/statistics")


class BudgetAPI:
    def __init__(self, client: ErpClient):
        self.client = client

    async def overview(self, period: str | None = None) -> ApiResult[Any]:
        return await self.client.request("GET", "/budget/overview", params={"period": period})

    async def projects(self, period: str | None = None) -> ApiResult[Any]:
        return await self.client.request("GET", "/budget/projects", params={"period": period})

    async def schemes(self, period: str | None = None) -> ApiResult[Any]:
        return await self.client.request("GET", "/budget/schemes", params={"period": period})

    async def transactions(self, limit: int | None = None, **filters: Any) -> ApiResult[Any]:
        return await self.client.request("GET", "/budget/transactions", params={"limit": limit, **filters})


class WebsiteAPI:
    def __init__(self, client: ErpClient):
        self.client = client
        self.banners = ResourceAPI(client, "/banners")
        self.news = ResourceAPI(client, "/news-events")
        self.brochures = ResourceAPI(client, "/brochures")

    async def settings(self) -> ApiResult[Any]:
        return await self.client.request("GET", "/website/settings")

    async def update_settings(self, data: Dict[str, Any]) -> ApiResult[Any]:
        return await self.client.request("PUT", "/website/settings", json=data)


class ActivityLogsAPI(ResourceAPI):
    async def stats(self, **params: Any) -> ApiResult[Any]:
        return await self.client.request("GET", f"{self.path}/stats", params=params)

    async def trends(self, **params: Any) -> ApiResult[Any]:
        return await self.client.request("GET", f"{self.path}/trends", params=params)

    async def export(self, **params: Any) -> ApiResult[Any]:
        return await self.client.request("GET", f"{self.path}/export", params=params)
