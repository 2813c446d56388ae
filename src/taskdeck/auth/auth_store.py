# src/taskdeck/auth/auth_store.py

from __future__ import annotations

import json
import logging
from typing import Any

from ..core.lifecycle import AsyncStateContainer, OperationOutcome, OperationRejected
from ..core.ports import CredentialDirectory, KeyValueStorage
from .models import PROFILE_FIELDS, AuthPhase, AuthState, User, is_provided

logger = logging.getLogger(__name__)

AUTH_KEY = "auth"


class AuthStore(AsyncStateContainer):
    """
    Session/user identity plus the login, register, check, logout and profile flows.

    The session is mirrored to storage as {"isAuthenticated": true, "user": {...}}
    and only while authenticated.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        credentials: CredentialDirectory,
        *,
        discard_stale: bool = False,
    ) -> None:
        super().__init__("auth", discard_stale=discard_stale)
        self._storage = storage
        self._credentials = credentials
        self.is_authenticated = False
        self.user: User | None = None

    # ---- state ----

    def snapshot(self) -> AuthState:
        return AuthState(
            is_authenticated=self.is_authenticated,
            user=self.user,
            loading=self.loading,
            error=self.error,
        )

    @property
    def phase(self) -> AuthPhase:
        return self.snapshot().phase

    def _sign_in(self, user: User) -> None:
        """Fulfilled effect of login/register: persist first, then publish."""
        self._persist_session(user)
        self._set_authenticated(user)

    def _set_authenticated(self, user: User) -> None:
        self.is_authenticated = True
        self.user = user
        self.loading = False
        self.error = None

    def _persist_session(self, user: User) -> None:
        self._storage.set(
            AUTH_KEY,
            json.dumps({"isAuthenticated": True, "user": user.to_dict()}, ensure_ascii=False),
        )

    def _read_session(self) -> User | None:
        raw = self._storage.get(AUTH_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict) or data.get("isAuthenticated") is not True:
                raise ValueError("session record is not authenticated")
            user = data.get("user")
            if not isinstance(user, dict):
                raise ValueError("session record has no user")
            return User.from_dict(user)
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed stored session: %s", exc)
            return None

    # ---- operations ----

    async def login(self, email: str, password: str) -> OperationOutcome:
        async def work() -> User:
            record = await self._credentials.find_by_email_and_password(email, password)
            if record is None:
                raise OperationRejected("Invalid email or password")
            return record.public_profile()

        return await self._run(
            "login",
            work,
            on_fulfilled=self._sign_in,
            fallback_error="Login failed. Please try again.",
        )

    async def register(self, name: str, email: str, password: str) -> OperationOutcome:
        async def work() -> User:
            if await self._credentials.find_by_email(email) is not None:
                raise OperationRejected("Email already in use")
            record = await self._credentials.create(name=name, email=email, password=password)
            return record.public_profile()

        return await self._run(
            "register",
            work,
            on_fulfilled=self._sign_in,
            fallback_error="Registration failed. Please try again.",
        )

    async def check_auth(self) -> OperationOutcome:
        """Restore the persisted session. Absent or malformed -> silent anonymous reset."""

        async def work() -> User:
            user = self._read_session()
            if user is None:
                raise OperationRejected("Not authenticated")
            return user

        def on_rejected(_message: str) -> None:
            self.is_authenticated = False
            self.user = None
            self.loading = False

        return await self._run(
            "check_auth",
            work,
            on_fulfilled=self._set_authenticated,
            on_rejected=on_rejected,
            fallback_error="Authentication check failed",
        )

    async def logout(self) -> OperationOutcome:
        async def work() -> None:
            try:
                self._storage.remove(AUTH_KEY)
            except Exception:
                logger.exception("Failed to remove stored session; clearing in-memory session anyway.")

        def on_fulfilled(_value: None) -> None:
            self.is_authenticated = False
            self.user = None

        return await self._run(
            "logout",
            work,
            on_fulfilled=on_fulfilled,
            fallback_error="Logout failed",
            mark_pending=False,
        )

    async def update_user(self, **fields: Any) -> OperationOutcome:
        """
        Merge profile fields over the current user.

        Only provided, non-empty values overwrite; `id` is never changed.
        """
        unknown = set(fields) - set(PROFILE_FIELDS) - {"id"}
        if unknown:
            raise ValueError(f"unknown profile fields: {sorted(unknown)}")

        async def work() -> User:
            current = self.user
            if current is None:
                raise OperationRejected("User not found")

            new_email = fields.get("email")
            if is_provided(new_email) and new_email != current.email:
                owner = await self._credentials.find_by_email(new_email)
                if owner is not None and owner.id != current.id:
                    raise OperationRejected("Email already in use")

            updated = current.merged(fields)
            record = await self._credentials.update(current.id, **fields)
            if record is None:
                logger.info("No credential record for user id=%s; updating session only.", current.id)
            return updated

        def on_fulfilled(user: User) -> None:
            self._persist_session(user)
            self.user = user
            self.loading = False
            self.error = None

        return await self._run(
            "update_user",
            work,
            on_fulfilled=on_fulfilled,
            fallback_error="Failed to update user profile",
        )
