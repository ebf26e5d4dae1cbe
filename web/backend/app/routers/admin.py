"""Admin router -- user moderation, record moderation and username lists.

Every endpoint requires an admin session.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from blotter.auth.models import User
from blotter.services.accounts import AccountService
from blotter.services.reports import ReportService
from web.backend.app.middleware.auth import get_accounts, get_reports, require_admin
from web.backend.app.models.api import (
    AdminFlagRequest,
    ArrestAdjustRequest,
    ArrestResponse,
    CitationResponse,
    DeleteAllResponse,
    MessageResponse,
    RankUpdateRequest,
    StatsResponse,
    UsernameMarkResponse,
    UsernameRequest,
    UserResponse,
)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _not_found(what: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{what} not found")


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@router.get("/users", response_model=list[UserResponse], summary="List all users")
async def list_users(
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    return [UserResponse.from_user(u) for u in accounts.records.users.list()]


@router.delete("/users/{user_id}", response_model=MessageResponse, summary="Delete a user")
async def delete_user(
    user_id: int,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    """Delete an account and block its username.

    Protected accounts and your own account return ``403``.
    """
    if not accounts.delete_user(admin, user_id):
        raise _not_found("User")
    return MessageResponse(message="User deleted")


@router.put("/users/{user_id}/admin", response_model=UserResponse, summary="Grant or revoke admin")
async def set_admin(
    user_id: int,
    body: AdminFlagRequest,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    user = accounts.set_admin(admin, user_id, body.is_admin)
    if user is None:
        raise _not_found("User")
    return UserResponse.from_user(user)


@router.put("/users/{user_id}/rank", response_model=UserResponse, summary="Change a user's rank")
async def set_rank(
    user_id: int,
    body: RankUpdateRequest,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    user = accounts.set_rank(admin, user_id, body.rank)
    if user is None:
        raise _not_found("User")
    return UserResponse.from_user(user)


@router.get("/stats", response_model=StatsResponse, summary="Portal statistics")
async def stats(
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    """User and admin counts plus the lifetime citation/arrest counters."""
    return StatsResponse(**accounts.stats())


# ---------------------------------------------------------------------------
# Citations
# ---------------------------------------------------------------------------


@router.get("/citations", response_model=list[CitationResponse], summary="List all citations")
async def list_citations(
    admin: User = Depends(require_admin),
    reports: ReportService = Depends(get_reports),
):
    return [CitationResponse.from_record(c) for c in reports.all_citations()]


# Registered before ``/citations/{citation_id}`` so "all" is not taken as an id.
@router.delete("/citations/all", response_model=DeleteAllResponse, summary="Delete every citation")
async def delete_all_citations(
    admin: User = Depends(require_admin),
    reports: ReportService = Depends(get_reports),
):
    """Remove every citation, reset the counter and retract their Discord messages."""
    return DeleteAllResponse(deleted_count=await reports.delete_all_citations())


@router.delete("/citations/{citation_id}", response_model=MessageResponse, summary="Delete a citation")
async def delete_citation(
    citation_id: str,
    admin: User = Depends(require_admin),
    reports: ReportService = Depends(get_reports),
):
    if not await reports.delete_citation(citation_id):
        raise _not_found("Citation")
    return MessageResponse(message="Citation deleted")


# ---------------------------------------------------------------------------
# Arrests
# ---------------------------------------------------------------------------


@router.get("/arrests", response_model=list[ArrestResponse], summary="List all arrest reports")
async def list_arrests(
    admin: User = Depends(require_admin),
    reports: ReportService = Depends(get_reports),
):
    return [ArrestResponse.from_record(a) for a in reports.all_arrests()]


@router.patch("/arrests/{arrest_id}", response_model=ArrestResponse, summary="Adjust an arrest report")
async def adjust_arrest(
    arrest_id: str,
    body: ArrestAdjustRequest,
    admin: User = Depends(require_admin),
    reports: ReportService = Depends(get_reports),
):
    """Override the jail total and/or the time-served flag; the warrant status follows."""
    arrest = reports.adjust_arrest(
        arrest_id, total_jail_time=body.total_jail_time, time_served=body.time_served
    )
    if arrest is None:
        raise _not_found("Arrest report")
    return ArrestResponse.from_record(arrest)


@router.delete("/arrests/all", response_model=DeleteAllResponse, summary="Delete every arrest report")
async def delete_all_arrests(
    admin: User = Depends(require_admin),
    reports: ReportService = Depends(get_reports),
):
    return DeleteAllResponse(deleted_count=await reports.delete_all_arrests())


@router.delete("/arrests/{arrest_id}", response_model=MessageResponse, summary="Delete an arrest report")
async def delete_arrest(
    arrest_id: str,
    admin: User = Depends(require_admin),
    reports: ReportService = Depends(get_reports),
):
    if not await reports.delete_arrest(arrest_id):
        raise _not_found("Arrest report")
    return MessageResponse(message="Arrest report deleted")


# ---------------------------------------------------------------------------
# Blocked / terminated usernames
# ---------------------------------------------------------------------------


@router.get("/blocked-usernames", response_model=list[UsernameMarkResponse], summary="List blocked usernames")
async def list_blocked(
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    return [UsernameMarkResponse.from_mark(m) for m in accounts.records.blocked.list()]


@router.post(
    "/blocked-usernames",
    response_model=UsernameMarkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Block a username from registering",
)
async def block_username(
    body: UsernameRequest,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    return UsernameMarkResponse.from_mark(accounts.block(admin, body.username))


@router.delete("/blocked-usernames/{username}", response_model=MessageResponse, summary="Unblock a username")
async def unblock_username(
    username: str,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    if not accounts.unblock(username):
        raise _not_found("Blocked username")
    return MessageResponse(message="Username unblocked")


@router.get(
    "/terminated-usernames",
    response_model=list[UsernameMarkResponse],
    summary="List terminated usernames",
)
async def list_terminated(
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    return [UsernameMarkResponse.from_mark(m) for m in accounts.records.terminated.list()]


@router.post(
    "/terminated-usernames",
    response_model=UsernameMarkResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Terminate a username",
)
async def terminate_username(
    body: UsernameRequest,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    """Terminated usernames can neither log in nor register; live sessions are revoked."""
    return UsernameMarkResponse.from_mark(accounts.terminate(admin, body.username))


@router.delete(
    "/terminated-usernames/{username}",
    response_model=MessageResponse,
    summary="Lift a termination",
)
async def unterminate_username(
    username: str,
    admin: User = Depends(require_admin),
    accounts: AccountService = Depends(get_accounts),
):
    if not accounts.unterminate(username):
        raise _not_found("Terminated username")
    return MessageResponse(message="Username unterminated")
