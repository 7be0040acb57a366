"""Unit tests for list filters, status tabs and stale-response handling"""

import asyncio
import pytest
from datetime import date
from zakat_admin.domain.models import ApiResult, Pagination
from zakat_admin.domain.exceptions import ErpAPIError
from zakat_admin.domain.listing import (
    ListController,
    ListFilters,
    RequestSequencer,
    derive_tab_view,
)
from zakat_admin.utils.date_utils import quick_date_range

TODAY = date(2026, 5, 14)  # Thursday


def page_of(*statuses, total=None):
    items = [{"_id": f"app_{i}", "status": s} for i, s in enumerate(statuses)]
    return ApiResult(
        success=True,
        data={
            "applications": items,
            "pagination": {"page": 1, "limit": 10, "total": total or len(items), "pages": 1},
        },
    )


def test_default_filters_only_send_paging():
    assert ListFilters().to_params() == {"page": 1, "limit": 10}


def test_active_filters_are_sent():
    filters = ListFilters(search="  APP2025  ", status="approved", district="dist_1", gender="all", page=2, limit=25)

    assert filters.to_params() == {
        "page": 2,
        "limit": 25,
        "search": "APP2025",
        "status": "approved",
        "district": "dist_1",
    }


def test_blank_search_is_omitted():
    assert "search" not in ListFilters(search="   ").to_params()


def test_explicit_date_range_covers_whole_days():
    params = ListFilters(from_date=date(2026, 5, 1), to_date=date(2026, 5, 31)).to_params()

    assert params["fromDate"] == "2026-05-01T00:00:00"
    assert params["toDate"] == "2026-05-31T23:59:59.999999"


def test_quick_date_filter_resolves_range():
    params = ListFilters(quick_date_filter="this_month").to_params(today=TODAY)

    assert params["quickDateFilter"] == "this_month"
    assert params["fromDate"].startswith("2026-05-01")
    assert params["toDate"].startswith("2026-05-31")


def test_explicit_dates_win_over_quick_filter():
    params = ListFilters(quick_date_filter="today", from_date=date(2026, 1, 1)).to_params(today=TODAY)

    assert params["fromDate"].startswith("2026-01-01")
    assert "toDate" not in params


@pytest.mark.parametrize(
    "name, expected",
    [
        ("today", (date(2026, 5, 14), date(2026, 5, 14))),
        ("this_week", (date(2026, 5, 10), date(2026, 5, 16))),
        ("this_month", (date(2026, 5, 1), date(2026, 5, 31))),
        ("this_quarter", (date(2026, 4, 1), date(2026, 6, 30))),
        ("custom", None),
    ],
)
def test_quick_date_range(name, expected):
    assert quick_date_range(name, TODAY) == expected


def test_this_week_starting_on_sunday():
    assert quick_date_range("this_week", date(2026, 5, 10)) == (date(2026, 5, 10), date(2026, 5, 16))


def test_tab_view_counts_and_active_tab():
    items = page_of("approved", "pending", "approved", "rejected").data["applications"]
    view = derive_tab_view(items, "approved")

    assert view.counts["all"] == 4
    assert view.counts["approved"] == 2
    assert view.counts["pending"] == 1
    assert view.counts["disbursed"] == 0
    assert [i["_id"] for i in view.items] == ["app_0", "app_2"]
    assert view.counts_scope == "global"


def test_tab_view_review_tab_maps_to_under_review():
    view = derive_tab_view([{"status": "under_review"}], "review")
    assert len(view.items) == 1
    assert view.counts["review"] == 1


def test_tab_counts_are_page_scoped_when_more_pages_exist():
    items = page_of("approved", "pending").data["applications"]
    view = derive_tab_view(items, pagination=Pagination(page=1, limit=2, total=40, pages=20))

    assert view.counts["all"] == 2
    assert view.counts_scope == "page"


def test_unknown_tab():
    with pytest.raises(ValueError):
        derive_tab_view([], "archived")


def test_sequencer_only_latest_is_current():
    sequencer = RequestSequencer()
    first = sequencer.next()
    second = sequencer.next()

    assert sequencer.is_current(second)
    assert not sequencer.is_current(first)
    assert sequencer.latest == 2


async def test_refresh_loads_items_and_pagination():
    calls = []

    async def fetch(params):
        calls.append(params)
        return page_of("pending", "approved", total=12)

    controller = ListController(fetch, "applications")
    assert await controller.refresh() is True

    assert calls == [{"page": 1, "limit": 10}]
    assert len(controller.items) == 2
    assert controller.pagination.total == 12
    assert controller.error is None
    assert controller.loading is False


async def test_filter_change_resets_to_first_page():
    calls = []

    async def fetch(params):
        calls.append(params)
        return page_of("pending")

    controller = ListController(fetch, "applications")
    await controller.set_page(3)
    await controller.set_filters(status="approved", search="APP")

    assert calls[0]["page"] == 3
    assert calls[1] == {"page": 1, "limit": 10, "search": "APP", "status": "approved"}


async def test_limit_change_resets_to_first_page():
    async def fetch(params):
        return page_of()

    controller = ListController(fetch, "applications", filters=ListFilters(page=4))
    await controller.set_limit(50)

    assert controller.filters.page == 1
    assert controller.filters.limit == 50


async def test_invalid_paging_and_filter_names():
    async def fetch(params):
        return page_of()

    controller = ListController(fetch, "applications")
    with pytest.raises(ValueError):
        await controller.set_page(0)
    with pytest.raises(ValueError):
        await controller.set_limit(0)
    with pytest.raises(ValueError):
        await controller.set_filters(page=2)
    with pytest.raises(ValueError):
        await controller.set_filters(colour="red")


async def test_stale_response_is_discarded():
    """A slow first request resolving after a faster second one must not win"""
    release_first = asyncio.Event()

    async def fetch(params):
        if params.get("status") == "pending":
            await release_first.wait()
            return page_of("pending", "pending", "pending")
        return page_of("approved")

    controller = ListController(fetch, "applications")

    slow = asyncio.create_task(controller.set_filters(status="pending"))
    await asyncio.sleep(0)
    assert await controller.set_filters(status="approved") is True

    release_first.set()
    assert await slow is False

    assert [i["status"] for i in controller.items] == ["approved"]
    assert controller.discarded_responses == 1


async def test_stale_error_is_discarded():
    release_first = asyncio.Event()

    async def fetch(params):
        if params.get("search") == "slow":
            await release_first.wait()
            raise ErpAPIError("ERP API timeout after 10s")
        return page_of("approved")

    controller = ListController(fetch, "applications")

    slow = asyncio.create_task(controller.set_filters(search="slow"))
    await asyncio.sleep(0)
    await controller.set_filters(search="fast")

    release_first.set()
    assert await slow is False
    assert controller.error is None
    assert controller.discarded_responses == 1


async def test_failed_fetch_keeps_last_page():
    responses = [page_of("approved", "approved"), ApiResult(success=False, message="Access denied")]

    async def fetch(params):
        return responses.pop(0)

    controller = ListController(fetch, "applications")
    await controller.refresh()
    assert await controller.set_page(2) is False

    assert controller.error == "Access denied"
    assert len(controller.items) == 2


async def test_fetch_error_is_recorded():
    async def fetch(params):
        raise ErpAPIError("ERP API unavailable: connection refused")

    controller = ListController(fetch, "applications")
    assert await controller.refresh() is False

    assert controller.error == "ERP API unavailable: connection refused"
    assert controller.loading is False


async def test_controller_tab_view_uses_pagination():
    async def fetch(params):
        return page_of("approved", "rejected", total=30)

    controller = ListController(fetch, "applications")
    await controller.refresh()
    view = controller.tab_view("rejected")

    assert len(view.items) == 1
    assert view.counts_scope == "page"


async def test_unexpected_fetch_error_clears_loading():
    async def fetch(params):
        raise RuntimeError("fetcher bug")

    controller = ListController(fetch, "applications")
    with pytest.raises(RuntimeError):
        await controller.refresh()

    assert controller.loading is False


async def test_stale_response_leaves_newer_request_loading():
    release_first = asyncio.Event()
    release_second = asyncio.Event()

    async def fetch(params):
        if params.get("search") == "first":
            await release_first.wait()
        else:
            await release_second.wait()
        return page_of("approved")

    controller = ListController(fetch, "applications")
    first = asyncio.create_task(controller.set_filters(search="first"))
    await asyncio.sleep(0)
    second = asyncio.create_task(controller.set_filters(search="second"))
    await asyncio.sleep(0)

    release_first.set()
    assert await first is False
    assert controller.loading is True

    release_second.set()
    assert await second is True
    assert controller.loading is False
