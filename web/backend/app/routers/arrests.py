"""Arrests router -- file and read your own arrest reports."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from blotter.auth.models import User
from blotter.services.reports import ReportService
from web.backend.app.middleware.auth import get_current_user, get_reports
from web.backend.app.models.api import ArrestCreateRequest, ArrestResponse

router = APIRouter(prefix="/api/arrests", tags=["arrests"])


@router.post(
    "",
    response_model=ArrestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File an arrest report",
)
async def create_arrest(
    body: ArrestCreateRequest,
    user: User = Depends(get_current_user),
    reports: ReportService = Depends(get_reports),
):
    """Validate, post to Discord with the mugshot attached (best effort), then persist.

    Returns ``400`` when the roster or penal-code arrays are inconsistent.
    """
    arrest = await reports.file_arrest(body.to_draft(), filer=user)
    return ArrestResponse.from_record(arrest)


@router.get("", response_model=list[ArrestResponse], summary="List your arrest reports")
async def list_arrests(
    user: User = Depends(get_current_user),
    reports: ReportService = Depends(get_reports),
):
    """Arrest reports filed by the caller, newest first."""
    return [ArrestResponse.from_record(a) for a in reports.arrests_for(user)]


@router.get("/{arrest_id}", response_model=ArrestResponse, summary="Get one arrest report")
async def get_arrest(
    arrest_id: str,
    user: User = Depends(get_current_user),
    reports: ReportService = Depends(get_reports),
):
    arrest = reports.records.arrests.get(arrest_id)
    if arrest is None or (arrest.issued_by != user.id and not user.is_admin):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Arrest report not found")
    return ArrestResponse.from_record(arrest)
