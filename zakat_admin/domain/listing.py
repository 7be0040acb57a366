"""Filter, pagination and status-tab state for list pages"""

import logging
from dataclasses import dataclass, replace, fields
from datetime import date, datetime, time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
from zakat_admin.domain.models import ApiResult, Pagination
from zakat_admin.domain.exceptions import ErpAPIError
from zakat_admin.utils.date_utils import quick_date_range

ALL = "all"

# Status tab -> application status
APPLICATION_STATUS_TABS: Dict[str, str] = {
    "pending": "pending",
    "review": "under_review",
    "field_verification": "field_verification",
    "interview_scheduled": "interview_scheduled",
    "interview_completed": "interview_completed",
    "approved": "approved",
    "rejected": "rejected",
    "on_hold": "on_hold",
    "cancelled": "cancelled",
    "disbursed": "disbursed",
    "completed": "completed",
}

# ListFilters field -> API query parameter
_SELECT_FILTERS = {
    "status": "status",
    "project": "project",
    "district": "district",
    "area": "area",
    "unit": "unit",
    "scheme": "scheme",
    "gender": "gender",
}


@dataclass(frozen=True)
class ListFilters:
    """Filter bar state; "all" means the filter is off"""

    search: str = ""
    status: str = ALL
    project: str = ALL
    district: str = ALL
    area: str = ALL
    unit: str = ALL
    scheme: str = ALL
    gender: str = ALL
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    quick_date_filter: Optional[str] = None
    page: int = 1
    limit: int = 10

    def to_params(self, today: date | None = None) -> Dict[str, Any]:
        """Query parameters for the list endpoint, inactive filters omitted"""
        params: Dict[str, Any] = {"page": self.page, "limit": self.limit}

        if self.search and self.search.strip():
            params["search"] = self.search.strip()

        for attr, param in _SELECT_FILTERS.items():
            value = getattr(self, attr)
            if value and value != ALL:
                params[param] = value

        from_date, to_date = self.from_date, self.to_date
        if self.quick_date_filter:
            params["quickDateFilter"] = self.quick_date_filter
            resolved = quick_date_range(self.quick_date_filter, today)
            if resolved and from_date is None and to_date is None:
                from_date, to_date = resolved

        if from_date:
            params["fromDate"] = datetime.combine(from_date, time.min).isoformat()
        if to_date:
            params["toDate"] = datetime.combine(to_date, time.max).isoformat()

        return params

    def is_filter_field(self, name: str) -> bool:
        return name not in ("page", "limit") and name in {f.name for f in fields(self)}


@dataclass
class TabView:
    """Items shown under the active status tab plus the per-tab badge counts"""

    active_tab: str
    items: List[Dict[str, Any]]
    counts: Dict[str, int]
    counts_scope: str  # "page" when counts only cover the fetched page


def derive_tab_view(
    items: Sequence[Dict[str, Any]],
    active_tab: str = ALL,
    pagination: Pagination | None = None,
    tabs: Dict[str, str] = APPLICATION_STATUS_TABS,
    status_key: str = "status",
) -> TabView:
    """
    Split an already-fetched page into status tabs.

    Counts are derived from the page in hand, not from server aggregates, so
    they only describe the whole result set when it fits on one page;
    counts_scope says which.
    """
    if active_tab != ALL and active_tab not in tabs:
        raise ValueError(f"Unknown tab: {active_tab}")

    counts = {ALL: len(items)}
    for tab, status in tabs.items():
        counts[tab] = sum(1 for item in items if item.get(status_key) == status)

    if active_tab == ALL:
        visible = list(items)
    else:
        visible = [item for item in items if item.get(status_key) == tabs[active_tab]]

    total = pagination.total if pagination else len(items)
    scope = "global" if total <= len(items) else "page"

    return TabView(active_tab=active_tab, items=visible, counts=counts, counts_scope=scope)


class RequestSequencer:
    """Monotonic request tokens; only the most recently issued one is current"""

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def next(self) -> int:
        self._latest += 1
        return self._latest

    def is_current(self, token: int) -> bool:
        return token == self._latest


Fetcher = Callable[[Dict[str, Any]], Awaitable[ApiResult]]


class ListController:
    """
    Server-side filtered, paginated list.

    Every filter or page change re-fetches. Responses that arrive after a
    newer request was issued are dropped, so a slow early request can never
    overwrite the result of a later one. A failed fetch keeps the last good
    page and records the error.
    """

    def __init__(
        self,
        fetch: Fetcher,
        items_key: str,
        filters: ListFilters | None = None,
        tabs: Dict[str, str] = APPLICATION_STATUS_TABS,
    ):
        self._fetch = fetch
        self.items_key = items_key
        self.filters = filters or ListFilters()
        self.tabs = tabs
        self.sequencer = RequestSequencer()

        self.items: List[Dict[str, Any]] = []
        self.pagination = Pagination(page=self.filters.page, limit=self.filters.limit)
        self.error: Optional[str] = None
        self.loading = False
        self.discarded_responses = 0

    async def refresh(self) -> bool:
        """Fetch the current page; False if the response failed or went stale"""
        token = self.sequencer.next()
        params = self.filters.to_params()
        self.loading = True

        try:
            result = await self._fetch(params)
        except ErpAPIError as e:
            if not self.sequencer.is_current(token):
                self.discarded_responses += 1
                return False
            self.error = str(e) or "Failed to load"
            logging.error(f"List fetch failed: {e}", extra={"items_key": self.items_key, "params": params})
            return False
        finally:
            # A newer request still in flight owns the flag
            if self.sequencer.is_current(token):
                self.loading = False

        if not self.sequencer.is_current(token):
            self.discarded_responses += 1
            logging.debug("Discarded stale list response", extra={"token": token, "latest": self.sequencer.latest})
            return False

        if not result.success:
            self.error = result.message or "Failed to load"
            return False

        data = result.data or {}
        items = data.get(self.items_key)
        self.items = items if isinstance(items, list) else []
        page_info = data.get("pagination") or {}
        self.pagination = Pagination(
            page=page_info.get("page", self.filters.page),
            limit=page_info.get("limit", self.filters.limit),
            total=page_info.get("total", len(self.items)),
            pages=page_info.get("pages", 1),
        )
        self.error = None
        return True

    async def set_filters(self, **changes: Any) -> bool:
        """Apply filter changes and go back to page 1"""
        for name in changes:
            if not self.filters.is_filter_field(name):
                raise ValueError(f"Unknown filter: {name}")
        self.filters = replace(self.filters, page=1, **changes)
        return await self.refresh()

    async def set_page(self, page: int) -> bool:
        if page < 1:
            raise ValueError("Page numbers start at 1")
        self.filters = replace(self.filters, page=page)
        return await self.refresh()

    async def set_limit(self, limit: int) -> bool:
        if limit < 1:
            raise ValueError("Page size must be positive")
        self.filters = replace(self.filters, page=1, limit=limit)
        return await self.refresh()

    def tab_view(self, active_tab: str = ALL) -> TabView:
        return derive_tab_view(self.items, active_tab, self.pagination, tabs=self.tabs)
