"""Plain-text Discord messages for filed citations and arrest reports."""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from blotter.records.models import Arrest, Citation
from blotter.records.penal_codes import describe

logger = logging.getLogger(__name__)

# Discord rejects message content longer than this.
MAX_CONTENT_LENGTH = 2000

_DATA_URL_PREFIX = re.compile(r"^data:image/[a-z]+;base64,")
_RANK_SUFFIX = re.compile(r"\s+\d+$")


@dataclass
class OutgoingMessage:
    content: str
    files: list[tuple[str, bytes]] = field(default_factory=list)


def _money(amount: str) -> str:
    return f"{Decimal(amount):,.2f}"


def _ping(value: str) -> str:
    """Snowflake-looking values become mentions; anything else is bolded."""
    return f"<@{value}>" if value.isdigit() else f"**{value}**"


def _rank_signatures(report) -> list[str]:
    out = []
    for i, rank in enumerate(report.officer_ranks):
        clean = _RANK_SUFFIX.sub("", rank).strip()
        user_id = report.officer_user_ids[i] if i < len(report.officer_user_ids) else ""
        out.append(f"{clean} <@{user_id}>" if user_id.isdigit() else clean)
    return out


def _truncate(content: str) -> str:
    if len(content) <= MAX_CONTENT_LENGTH:
        return content
    return content[: MAX_CONTENT_LENGTH - 3] + "..."


def decode_mugshot(data: Optional[str]) -> Optional[bytes]:
    """Decode a base64 (optionally data-URL) image. Bad input yields ``None``."""
    if not data:
        return None
    try:
        return base64.b64decode(_DATA_URL_PREFIX.sub("", data), validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Ignoring malformed mugshot attachment")
        return None


def render_citation(citation: Citation) -> OutgoingMessage:
    ticket_types = []
    for code in citation.penal_codes:
        label = describe(code, fallback=citation.violation_type or "Citation")
        if label not in ticket_types:
            ticket_types.append(label)

    lines = [
        f"Ping User Receiving Ticket: {_ping(citation.violator_username)}",
        f"Type of Ticket: **{', '.join(ticket_types)}**",
        f"Penal Code: {', '.join(f'**{c}**' for c in citation.penal_codes)}",
        f"Total Amount Due: **${_money(citation.total_amount)}**",
        f"Additional Notes: **{citation.additional_notes or 'N/A'}**",
        f"Rank and Signature: **{chr(10).join(_rank_signatures(citation))}**",
        f"Law Enforcement Name(s): **{', '.join(citation.officer_usernames)}**",
        f"Badge Number: **{', '.join(citation.officer_badges)}**",
        "",
        "By signing this citation, you acknowledge that this is NOT an admission of guilt. "
        "Failure to appear on your court date will result in a warrant for your arrest.",
        f"Sign at the X: {_ping(citation.violator_signature)}",
    ]
    return OutgoingMessage(_truncate("\n".join(lines)))


def render_arrest(arrest: Arrest) -> OutgoingMessage:
    mugshot = decode_mugshot(arrest.mugshot_base64)
    if arrest.description:
        description = arrest.description
    else:
        description = "See attached mugshot" if mugshot else "No description provided"

    offenses = [
        f"**{code}** {describe(code)} - ${_money(arrest.amounts_due[i])} + {arrest.jail_times[i]}".rstrip()
        for i, code in enumerate(arrest.penal_codes)
    ]
    seconds = arrest.total_jail_seconds
    signatures = [
        f"Arresting officer #{i + 1} signature X: "
        + (f"<@{uid}>" if uid.isdigit() else _rank_signatures(arrest)[i])
        for i, uid in enumerate(arrest.officer_user_ids)
    ]

    lines = [
        "**Arrest Report**",
        "",
        f"Law Enforcement username(s): {', '.join(f'**{u}**' for u in arrest.officer_usernames)}",
        f"Ranks: **{', '.join(arrest.officer_ranks)}**",
        f"Badge Number: **{', '.join(arrest.officer_badges)}**",
        "",
        "Description/Mugshot",
        f"**{description}**",
        "",
        "Offense:",
        *offenses,
        "",
        f"Total: **${_money(arrest.total_amount)}** + **{seconds} Seconds**"
        + (" **(TIME SERVED)**" if arrest.time_served else ""),
        "",
        "Warrant Information:",
        f"Warrant Needed: **{'Yes' if arrest.warrant_required else 'No'}**",
        f"Time Needed for Warrant: **{f'{seconds} Seconds' if arrest.warrant_required else 'N/A'}**",
        "",
        f"Sign at the X: {_ping(arrest.arrestee_signature)}",
        "",
        *signatures,
    ]
    if arrest.court_location:
        lines += ["", arrest.court_location]
    if arrest.court_date:
        lines.append(f"Court date: **{arrest.court_date}**")
    if arrest.court_phone:
        lines.append(f"Please call **{arrest.court_phone}** for further inquiry.")

    files = [("mugshot.png", mugshot)] if mugshot else []
    return OutgoingMessage(_truncate("\n".join(lines)), files)


def render_report(report) -> OutgoingMessage:
    if isinstance(report, Arrest):
        return render_arrest(report)
    return render_citation(report)
