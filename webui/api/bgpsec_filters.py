"""BGPsec Filter Management API"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Query, Request, Response

from bgpsec_filter.database.exceptions import StoreUnavailable
from bgpsec_filter.filters.service import FilterService
from bgpsec_filter.models import AddFilter
from bgpsec_filter.slurm import export_slurm, import_slurm
from bgpsec_filter.utils.error_handling import ValidationError
from webui.core.audit import audit_log
from webui.schemas import BgpsecFilterEntry, BgpsecFilterList, BgpsecFilterRequest, FilterCreated

router = APIRouter()


def get_service(request: Request) -> FilterService:
    return request.app.state.filter_service


def _entry(filter_id, record) -> BgpsecFilterEntry:
    return BgpsecFilterEntry(
        id=filter_id, asn=record.asn, ski=record.ski_hex, comment=record.comment
    )


def _store_failure(action: str, e: StoreUnavailable) -> HTTPException:
    return HTTPException(503, f"Failed to {action}: {e.message}")


@router.get("", response_model=BgpsecFilterList)
def list_filters(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=500),
    service: FilterService = Depends(get_service)
):
    """List BGPsec filters with pagination"""
    try:
        entries = list(service.entries())
    except StoreUnavailable as e:
        raise _store_failure("list filters", e)

    start = (page - 1) * per_page
    end = start + per_page
    return BgpsecFilterList(
        filters=[_entry(filter_id, record) for filter_id, record in entries[start:end]],
        total=len(entries),
        page=page,
        per_page=per_page
    )


@router.post("", response_model=FilterCreated, status_code=201)
def add_filter(
    request: BgpsecFilterRequest,
    service: FilterService = Depends(get_service),
    remote_user: Optional[str] = Header(None)
):
    """Add a BGPsec filter"""
    command = AddFilter(
        asn=str(request.asn) if request.asn is not None else None,
        ski=request.ski,
        comment=request.comment
    )
    try:
        filter_id = service.add(command)
    except ValidationError as e:
        raise HTTPException(400, e.message)
    except StoreUnavailable as e:
        raise _store_failure("add filter", e)

    audit_log(
        "bgpsec_filter_added",
        user=remote_user,
        resource=f"bgpsec-filter/{filter_id}",
        details={"asn": command.asn, "ski": command.ski}
    )
    return FilterCreated(id=filter_id)


@router.delete("", status_code=204)
def clear_filters(
    service: FilterService = Depends(get_service),
    remote_user: Optional[str] = Header(None)
):
    """Remove all BGPsec filters"""
    try:
        service.clear()
    except StoreUnavailable as e:
        raise _store_failure("clear filters", e)

    audit_log("bgpsec_filters_cleared", user=remote_user)
    return Response(status_code=204)


@router.get("/slurm")
def get_slurm(service: FilterService = Depends(get_service)) -> Dict[str, Any]:
    """Export filters as a SLURM document"""
    try:
        return export_slurm(service)
    except StoreUnavailable as e:
        raise _store_failure("export filters", e)


@router.post("/slurm")
def put_slurm(
    document: Dict[str, Any] = Body(...),
    service: FilterService = Depends(get_service),
    remote_user: Optional[str] = Header(None)
):
    """Replace all BGPsec filters with those of a SLURM document"""
    try:
        filter_ids = import_slurm(service, document)
    except ValidationError as e:
        raise HTTPException(400, e.message)
    except StoreUnavailable as e:
        raise _store_failure("import filters", e)

    audit_log(
        "bgpsec_filters_imported",
        user=remote_user,
        details={"count": len(filter_ids)}
    )
    return {"ids": filter_ids, "total": len(filter_ids)}


@router.get("/{filter_id}", response_model=BgpsecFilterEntry)
def get_filter(filter_id: int, service: FilterService = Depends(get_service)):
    """Get a single BGPsec filter"""
    try:
        record = service.get(filter_id)
    except StoreUnavailable as e:
        raise _store_failure("read filter", e)

    if record is None:
        raise HTTPException(404, f"BGPsec filter {filter_id} not found")
    return _entry(filter_id, record)


@router.delete("/{filter_id}", status_code=204)
def remove_filter(
    filter_id: int,
    service: FilterService = Depends(get_service),
    remote_user: Optional[str] = Header(None)
):
    """Remove a BGPsec filter; unknown ids are accepted"""
    try:
        removed = service.remove(filter_id)
    except StoreUnavailable as e:
        raise _store_failure("remove filter", e)

    if removed:
        audit_log(
            "bgpsec_filter_removed",
            user=remote_user,
            resource=f"bgpsec-filter/{filter_id}"
        )
    return Response(status_code=204)
