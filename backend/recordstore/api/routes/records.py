"""Record Routes: HTTP surface over the configured RecordStore.

Invariants:
    - Routes only translate HTTP <-> store calls; no index logic here
    - Missing records surface as NotFoundError (404 via the global handler)
    - GET /records: offset/count/scan/id are reserved params, every other query
      param is a lookup criterion
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, status

from recordstore.api.dependencies import get_store
from recordstore.core.errors import ErrorContext, NotFoundError
from recordstore.schemas.record import ExistsResponse, RecordBody, RepairResponse
from recordstore.services.record_store import RecordStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/records", tags=["records"])

_PAGINATION_PARAMS = ("offset", "count")


def _find_query(request: Request) -> dict:
    """Build a store query from query params, coercing pagination to int."""
    params = request.query_params
    query: dict = {}
    ids = params.getlist("id")
    if ids:
        query["id"] = ids
    for name, value in params.items():
        if name == "id":
            continue
        if name in _PAGINATION_PARAMS:
            # Non-numeric values reach the store as str and are dropped with a warning
            query[name] = int(value) if value.isdigit() else value
        else:
            query[name] = value
    return query


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_record(
    body: RecordBody,
    expire: int | None = Query(None, ge=1),
    no_index: bool | None = Query(None),
    store: RecordStore = Depends(get_store),
):
    """Create a record and its index memberships."""
    return await store.create(body.to_record(), expire=expire, no_index=no_index)


@router.get("")
async def find_records(request: Request, store: RecordStore = Depends(get_store)):
    """Find live records by lookup criteria, explicit ids, scan pattern, or recency."""
    records = await store.find(_find_query(request))
    return {"records": records, "count": len(records)}


@router.post("/maintenance/repair", response_model=RepairResponse)
async def repair_indexes(
    count: int | None = Query(None, ge=1),
    store: RecordStore = Depends(get_store),
):
    """Re-derive index memberships from stored documents."""
    report = await store.repair_index(count)
    return report.to_dict()


@router.get("/{record_id}")
async def get_record(
    record_id: str,
    deleted: bool = Query(False),
    store: RecordStore = Depends(get_store),
):
    record = await store.get(record_id, deleted=deleted)
    if not record:
        raise NotFoundError(
            store.key, record_id,
            ErrorContext(store_key=store.key, record_id=record_id, operation="get"),
        )
    return record


@router.get("/{record_id}/exists", response_model=ExistsResponse)
async def record_exists(record_id: str, store: RecordStore = Depends(get_store)):
    return {"id": record_id, "exists": await store.exists(record_id)}


@router.put("/{record_id}")
async def update_record(
    record_id: str,
    body: RecordBody,
    expire: int | None = Query(None, ge=1),
    store: RecordStore = Depends(get_store),
):
    """Replace a record; the path id wins over any id in the body."""
    record = body.to_record()
    record["id"] = record_id
    return await store.update(record, expire=expire)


@router.delete("/{record_id}")
async def delete_record(
    record_id: str,
    hard: bool = Query(False),
    store: RecordStore = Depends(get_store),
):
    """Soft delete by default; ?hard=true removes the document."""
    record = await store.delete(record_id, hard_delete=hard)
    if not record:
        raise NotFoundError(
            store.key, record_id,
            ErrorContext(store_key=store.key, record_id=record_id, operation="delete"),
        )
    return record
