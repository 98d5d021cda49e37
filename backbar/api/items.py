"""Item endpoints: filtered listing, stock adjustments, create/edit/delete."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from backbar.api.auth import get_session
from backbar.core.exceptions import ItemNotFoundError, TransportError, ValidationError
from backbar.schemas.item import (
    Brand,
    ItemListResponse,
    MutationResponse,
    StockItem,
    StockStatus,
)
from backbar.services.classification import StockSummary, summarize
from backbar.services.mutations import MutationResult
from backbar.services.search import ItemFilter
from backbar.services.session import InventorySession

router = APIRouter(prefix="/items", tags=["items"])

OPERATION_FAILED = "Operation failed"


def _bad_gateway() -> HTTPException:
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=OPERATION_FAILED)


def _invalid(e: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail={"fields": e.fields},
    )


def _to_response(result: MutationResult) -> MutationResponse:
    if not result.ok:
        raise _bad_gateway()
    return MutationResponse(
        ok=True, item_id=result.item_id, quantity_in_stock=result.quantity_in_stock
    )


def _list_response(
    session: InventorySession, items: list[StockItem], summary: StockSummary
) -> ItemListResponse:
    return ItemListResponse(
        items=items,
        total=len(items),
        low_stock=summary.low_stock,
        out_of_stock=summary.out_of_stock,
        is_loading=session.cache.is_loading,
        is_refreshing=session.cache.is_refreshing,
        is_stale=session.cache.is_stale,
    )


async def _get_item(session: InventorySession, item_id: str) -> StockItem:
    try:
        return await session.get_item(item_id)
    except ItemNotFoundError:
        raise HTTPException(status_code=404, detail="Item not found")
    except TransportError:
        raise _bad_gateway()


@router.get("", response_model=ItemListResponse)
async def list_items(
    brand: list[Brand] | None = Query(None),
    q: str | None = None,
    status_filter: StockStatus | None = Query(None, alias="status"),
    session: InventorySession = Depends(get_session),
):
    """Cached items run through the brand, search and status stages."""
    criteria = ItemFilter(
        brands=frozenset(brand) if brand else None,
        query=q,
        status=status_filter,
    )
    try:
        items, summary = await session.query(criteria)
    except TransportError:
        raise _bad_gateway()
    return _list_response(session, items, summary)


@router.post("/refresh", response_model=ItemListResponse)
async def refresh_items(session: InventorySession = Depends(get_session)):
    """Force a refetch (pull-to-refresh)."""
    try:
        items = await session.cache.refresh()
    except TransportError:
        raise _bad_gateway()
    return _list_response(session, items, summarize(items))


@router.get("/{item_id}", response_model=StockItem)
async def get_item(item_id: str, session: InventorySession = Depends(get_session)):
    return await _get_item(session, item_id)


@router.post("", response_model=MutationResponse, status_code=status.HTTP_201_CREATED)
async def create_item(
    data: dict[str, Any] = Body(...),
    session: InventorySession = Depends(get_session),
):
    try:
        result = await session.mutations.create(data)
    except ValidationError as e:
        raise _invalid(e)
    return _to_response(result)


@router.patch("/{item_id}", response_model=MutationResponse)
async def edit_item(
    item_id: str,
    data: dict[str, Any] = Body(...),
    session: InventorySession = Depends(get_session),
):
    await _get_item(session, item_id)
    try:
        result = await session.mutations.edit(item_id, data)
    except ValidationError as e:
        raise _invalid(e)
    return _to_response(result)


@router.post("/{item_id}/increase", response_model=MutationResponse)
async def increase_stock(item_id: str, session: InventorySession = Depends(get_session)):
    item = await _get_item(session, item_id)
    return _to_response(await session.mutations.increase_stock(item))


@router.post("/{item_id}/decrease", response_model=MutationResponse)
async def decrease_stock(item_id: str, session: InventorySession = Depends(get_session)):
    item = await _get_item(session, item_id)
    return _to_response(await session.mutations.decrease_stock(item))


@router.delete("/{item_id}", response_model=MutationResponse)
async def delete_item(item_id: str, session: InventorySession = Depends(get_session)):
    await _get_item(session, item_id)
    return _to_response(await session.mutations.delete(item_id))
