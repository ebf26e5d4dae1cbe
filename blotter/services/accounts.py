"""Account admission and admin actions.

Signup is refused for blocked, terminated, previously deleted or taken
usernames; login is refused for terminated ones. Every admin action that
targets an account goes through the protected-account check first.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from blotter import settings
from blotter.auth.models import Session, User, UsernameMark
from blotter.auth.passwords import hash_password, verify_password
from blotter.auth.permissions import ensure_not_protected
from blotter.errors import AdmissionError
from blotter.storage import RecordStore

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        records: RecordStore,
        admin_usernames: Optional[Iterable[str]] = None,
        protected_usernames: Optional[Iterable[str]] = None,
    ) -> None:
        self.records = records
        names = settings.ADMIN_USERNAMES if admin_usernames is None else admin_usernames
        self.admin_usernames = {n.lower() for n in names}
        self.protected_usernames = list(
            settings.PROTECTED_USERNAMES if protected_usernames is None else protected_usernames
        )

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def check_can_register(self, username: str) -> None:
        name = username.strip()
        if not name:
            raise AdmissionError("Username is required", reason="invalid")
        if self.records.terminated.contains(name):
            raise AdmissionError("This username has been terminated", reason="terminated")
        if self.records.blocked.contains(name):
            raise AdmissionError("This username has been blocked from registering", reason="blocked")
        if self.records.users.is_deleted_username(name):
            raise AdmissionError("This username belonged to a deleted account", reason="deleted")
        if self.records.users.get_by_username(name) is not None:
            raise AdmissionError("Username already exists", reason="taken")

    def signup(
        self,
        username: str,
        password: str,
        badge_number: str,
        rp_name: Optional[str] = None,
        rank: Optional[str] = None,
        discord_id: Optional[str] = None,
    ) -> User:
        try:
            self.check_can_register(username)
        except AdmissionError as exc:
            logger.info("Refused signup for %r: %s", username, exc.reason)
            raise
        user = self.records.users.create(
            User(
                username=username.strip(),
                password_hash=hash_password(password),
                badge_number=badge_number,
                is_admin=username.strip().lower() in self.admin_usernames,
                rp_name=rp_name,
                rank=rank,
                discord_id=discord_id,
            )
        )
        logger.info("Created user %s (%s)%s", user.id, user.username, " as admin" if user.is_admin else "")
        return user

    def login(self, username: str, password: str) -> tuple[User, Session]:
        user = self.records.users.get_by_username(username)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %r", username)
            raise AdmissionError("Invalid credentials", reason="credentials")
        if self.records.terminated.contains(user.username):
            logger.info("Refused login for terminated user %r", username)
            raise AdmissionError("This account has been terminated", reason="terminated")
        return user, self.records.sessions.create(user.id)

    def logout(self, token: str) -> bool:
        return self.records.sessions.revoke(token)

    def resolve_session(self, token: str) -> Optional[User]:
        """Return the user behind a live session, unless since deleted or terminated."""
        user_id = self.records.sessions.resolve(token)
        if user_id is None:
            return None
        user = self.records.users.get(user_id)
        if user is None or self.records.terminated.contains(user.username):
            self.records.sessions.revoke(token)
            return None
        return user

    def update_profile(
        self,
        user: User,
        rp_name: Optional[str] = None,
        rank: Optional[str] = None,
        discord_id: Optional[str] = None,
        badge_number: Optional[str] = None,
    ) -> Optional[User]:
        """Change only the profile fields that were supplied."""
        changes = {
            k: v
            for k, v in {
                "rp_name": rp_name,
                "rank": rank,
                "discord_id": discord_id,
                "badge_number": badge_number,
            }.items()
            if v is not None
        }
        if not changes:
            return self.records.users.get(user.id)
        return self.records.users.update(user.id, **changes)

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        stored = self.records.users.get(user.id)
        if stored is None or not verify_password(current_password, stored.password_hash):
            raise AdmissionError("Current password is incorrect", reason="credentials")
        self.records.users.update(user.id, password_hash=hash_password(new_password))
        logger.info("User %s changed their password", user.id)

    # ------------------------------------------------------------------
    # Admin actions
    # ------------------------------------------------------------------

    def _protect(self, actor: Optional[User], target_username: str, action: str) -> None:
        ensure_not_protected(actor, target_username, action, self.protected_usernames)

    def delete_user(self, actor: User, user_id: int) -> bool:
        """Delete an account. The username is remembered and blocked."""
        target = self.records.users.get(user_id)
        if target is None:
            return False
        self._protect(actor, target.username, "delete")
        self.records.users.delete(user_id)
        self.records.blocked.add(target.username)
        self.records.sessions.revoke_user(user_id)
        logger.info("Admin %s deleted user %s (%s)", actor.username, user_id, target.username)
        return True

    def set_admin(self, actor: User, user_id: int, is_admin: bool) -> Optional[User]:
        target = self.records.users.get(user_id)
        if target is None:
            return None
        self._protect(actor, target.username, "promote" if is_admin else "demote")
        return self.records.users.update(user_id, is_admin=bool(is_admin))

    def set_rank(self, actor: User, user_id: int, rank: Optional[str]) -> Optional[User]:
        target = self.records.users.get(user_id)
        if target is None:
            return None
        self._protect(actor, target.username, "change the rank of")
        return self.records.users.update(user_id, rank=rank)

    def block(self, actor: Optional[User], username: str) -> UsernameMark:
        self._protect(actor, username, "block")
        mark = self.records.blocked.add(username)
        logger.info("%s blocked username %s", _who(actor), mark.username)
        return mark

    def unblock(self, username: str) -> bool:
        """Lift a block; a deleted account's username becomes available again."""
        removed = self.records.blocked.remove(username)
        forgotten = self.records.users.forget_deleted_username(username)
        return removed or forgotten

    def terminate(self, actor: Optional[User], username: str) -> UsernameMark:
        self._protect(actor, username, "terminate")
        mark = self.records.terminated.add(username)
        target = self.records.users.get_by_username(username)
        if target is not None:
            self.records.sessions.revoke_user(target.id)
        logger.info("%s terminated username %s", _who(actor), mark.username)
        return mark

    def unterminate(self, username: str) -> bool:
        return self.records.terminated.remove(username)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def stats(self) -> dict:
        users = self.records.users.list()
        return {
            "user_count": len(users),
            "admin_count": sum(1 for u in users if u.is_admin),
            "citation_count": self.records.citations.get_count(),
            "arrest_count": self.records.arrests.get_count(),
        }


def _who(actor: Optional[User]) -> str:
    return f"Admin {actor.username}" if actor is not None else "Console"
