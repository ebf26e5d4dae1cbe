"""Citations router -- file and read your own citations."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from blotter.auth.models import User
from blotter.services.reports import ReportService
from web.backend.app.middleware.auth import get_current_user, get_reports
from web.backend.app.models.api import CitationCreateRequest, CitationResponse

router = APIRouter(prefix="/api/citations", tags=["citations"])


@router.post(
    "",
    response_model=CitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File a citation",
)
async def create_citation(
    body: CitationCreateRequest,
    user: User = Depends(get_current_user),
    reports: ReportService = Depends(get_reports),
):
    """Validate, post to Discord (best effort), then persist.

    Returns ``400`` when the roster or penal-code arrays are inconsistent.
    """
    citation = await reports.file_citation(body.to_draft(), filer=user)
    return CitationResponse.from_record(citation)


@router.get("", response_model=list[CitationResponse], summary="List your citations")
async def list_citations(
    user: User = Depends(get_current_user),
    reports: ReportService = Depends(get_reports),
):
    """Citations filed by the caller, newest first."""
    return [CitationResponse.from_record(c) for c in reports.citations_for(user)]


@router.get("/{citation_id}", response_model=CitationResponse, summary="Get one citation")
async def get_citation(
    citation_id: str,
    user: User = Depends(get_current_user),
    reports: ReportService = Depends(get_reports),
):
    citation = reports.records.citations.get(citation_id)
    if citation is None or (citation.issued_by != user.id and not user.is_admin):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Citation not found")
    return CitationResponse.from_record(citation)
