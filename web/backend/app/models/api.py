"""Pydantic models for API request/response serialization.

These models mirror the Blotter dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from blotter.auth.models import User, UsernameMark
from blotter.records.models import Arrest, Citation


# ---------------------------------------------------------------------------
# Auth models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Mirrors blotter.auth.models.User (without the password hash)."""

    id: int
    username: str
    badge_number: str = ""
    is_admin: bool = False
    rp_name: Optional[str] = None
    rank: Optional[str] = None
    discord_id: Optional[str] = None
    display_name: str = ""

    @classmethod
    def from_user(cls, u: User) -> "UserResponse":
        return cls(
            id=u.id,
            username=u.username,
            badge_number=u.badge_number,
            is_admin=u.is_admin,
            rp_name=u.rp_name,
            rank=u.rank,
            discord_id=u.discord_id,
            display_name=u.display_name,
        )


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class SignupRequest(BaseModel):
    """Signup must present the token issued by the Discord verification callback."""

    verification_token: str = Field(min_length=1)
    username: Optional[str] = None
    password: str = Field(min_length=6)
    badge_number: str = Field(min_length=1)
    rp_name: Optional[str] = None
    rank: Optional[str] = None


class LoginResponse(BaseModel):
    token: str
    expires_at: str = ""
    user: UserResponse


class AuthStatusResponse(BaseModel):
    authenticated: bool
    user: Optional[UserResponse] = None


class ProfileUpdateRequest(BaseModel):
    rp_name: Optional[str] = None
    rank: Optional[str] = None
    discord_id: Optional[str] = None
    badge_number: Optional[str] = None


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)


class DiscordUrlResponse(BaseModel):
    url: str = ""
    demo_mode: bool = False


class DiscordVerificationResponse(BaseModel):
    verification_token: str
    discord_id: str
    discord_username: str


# ---------------------------------------------------------------------------
# Report models
# ---------------------------------------------------------------------------


class ReportCreateRequest(BaseModel):
    """Fields shared by citation and arrest submissions."""

    officer_badges: list[str] = Field(default_factory=list)
    officer_usernames: list[str] = Field(default_factory=list)
    officer_ranks: list[str] = Field(default_factory=list)
    officer_user_ids: list[str] = Field(default_factory=list)
    penal_codes: list[str] = Field(default_factory=list)
    amounts_due: list[str] = Field(default_factory=list)
    jail_times: list[str] = Field(default_factory=list)
    additional_notes: Optional[str] = None


class CitationCreateRequest(ReportCreateRequest):
    violator_username: str = ""
    violator_signature: str = ""
    violation_type: str = "Citation"

    def to_draft(self) -> Citation:
        return Citation.from_dict(self.model_dump())


class ArrestCreateRequest(ReportCreateRequest):
    arrestee_username: str = ""
    arrestee_signature: str = ""
    mugshot_base64: Optional[str] = None
    time_served: bool = False
    court_date: str = ""
    court_location: str = ""
    court_phone: str = ""
    officer_signatures: list[str] = Field(default_factory=list)
    description: Optional[str] = None

    def to_draft(self) -> Arrest:
        return Arrest.from_dict(self.model_dump())


class ReportResponse(BaseModel):
    id: str
    officer_badges: list[str] = Field(default_factory=list)
    officer_usernames: list[str] = Field(default_factory=list)
    officer_ranks: list[str] = Field(default_factory=list)
    officer_user_ids: list[str] = Field(default_factory=list)
    penal_codes: list[str] = Field(default_factory=list)
    amounts_due: list[str] = Field(default_factory=list)
    jail_times: list[str] = Field(default_factory=list)
    total_amount: str = "0.00"
    total_jail_time: str = "0 Seconds"
    additional_notes: Optional[str] = None
    discord_message_id: Optional[str] = None
    issued_by: Optional[int] = None
    created_at: str = ""
    updated_at: str = ""


class CitationResponse(ReportResponse):
    """Mirrors blotter.records.models.Citation."""

    violator_username: str = ""
    violator_signature: str = ""
    violation_type: str = "Citation"

    @classmethod
    def from_record(cls, c: Citation) -> "CitationResponse":
        return cls(**c.to_dict())


class ArrestResponse(ReportResponse):
    """Mirrors blotter.records.models.Arrest, plus the derived warrant flag."""

    arrestee_username: str = ""
    arrestee_signature: str = ""
    mugshot_base64: Optional[str] = None
    time_served: bool = False
    court_date: str = ""
    court_location: str = ""
    court_phone: str = ""
    officer_signatures: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    warrant_required: bool = False

    @classmethod
    def from_record(cls, a: Arrest) -> "ArrestResponse":
        return cls(**a.to_dict(), warrant_required=a.warrant_required)


class ArrestAdjustRequest(BaseModel):
    total_jail_time: Optional[str] = None
    time_served: Optional[bool] = None


class DeleteAllResponse(BaseModel):
    deleted_count: int


# ---------------------------------------------------------------------------
# Admin models
# ---------------------------------------------------------------------------


class AdminFlagRequest(BaseModel):
    is_admin: bool


class RankUpdateRequest(BaseModel):
    rank: Optional[str] = None


class UsernameRequest(BaseModel):
    username: str = Field(min_length=1)


class UsernameMarkResponse(BaseModel):
    """Mirrors blotter.auth.models.UsernameMark."""

    id: int
    username: str
    timestamp: str = ""

    @classmethod
    def from_mark(cls, m: UsernameMark) -> "UsernameMarkResponse":
        return cls(id=m.id, username=m.username, timestamp=m.timestamp)


class StatsResponse(BaseModel):
    user_count: int = 0
    admin_count: int = 0
    citation_count: int = 0
    arrest_count: int = 0


class MessageResponse(BaseModel):
    ok: bool = True
    message: str = ""
