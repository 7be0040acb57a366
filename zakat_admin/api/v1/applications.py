"""GET /v1/applications - filtered, paginated application list with status tabs"""

import logging
from dataclasses import asdict
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Query

from zakat_admin.api.v1.schemas import ApplicationListResponse, PaginationSchema
from zakat_admin.api.v1.committee import upstream_status
from zakat_admin.api.dependencies import get_erp_client
from zakat_admin.config import settings
from zakat_admin.infrastructure.clients.erp import ErpClient, parse_pagination
from zakat_admin.domain.listing import ALL, ListFilters, derive_tab_view
from zakat_admin.domain.exceptions import ErpAPIError

router = APIRouter()


@router.get("/applications", response_model=ApplicationListResponse)
async def list_applications(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_page_limit, ge=1, le=100),
    search: str = Query(""),
    status: str = Query(ALL),
    project: str = Query(ALL),
    district: str = Query(ALL),
    area: str = Query(ALL),
    unit: str = Query(ALL),
    scheme: str = Query(ALL),
    gender: str = Query(ALL),
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    quick_date_filter: str | None = Query(None),
    tab: str = Query(ALL, description="Status tab applied to the fetched page"),
    erp_client: ErpClient = Depends(get_erp_client),
):
    """
    Proxy the ERP application list.

    Filters and pagination are applied server-side; `tab` only narrows the
    page that came back, and `counts_scope` says whether the tab counts
    cover all results or just this page.
    """
    filters = ListFilters(
        search=search,
        status=status,
        project=project,
        district=district,
        area=area,
        unit=unit,
        scheme=scheme,
        gender=gender,
        from_date=from_date,
        to_date=to_date,
        quick_date_filter=quick_date_filter,
        page=page,
        limit=limit,
    )

    try:
        result = await erp_client.applications.list(**filters.to_params())
    except ErpAPIError as e:
        logging.error(f"ERP API error: {e}")
        raise HTTPException(status_code=upstream_status(e), detail=str(e))

    if not result.success:
        raise HTTPException(status_code=502, detail=result.message or "Failed to load applications")

    data = result.data or {}
    items = data.get("applications")
    items = items if isinstance(items, list) else []
    pagination = parse_pagination(data)

    try:
        view = derive_tab_view(items, tab, pagination)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ApplicationListResponse(
        items=view.items,
        pagination=PaginationSchema(**asdict(pagination)),
        active_tab=view.active_tab,
        tab_counts=view.counts,
        counts_scope=view.counts_scope,
    )
