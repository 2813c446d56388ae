# src/taskdeck/auth/models.py

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import Any

PROFILE_FIELDS = ("name", "email", "bio", "location", "phone", "avatar")


class AuthPhase(StrEnum):
    ANONYMOUS = "anonymous"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    FAILED = "failed"


def is_provided(value: Any) -> bool:
    """Blank strings count as not provided."""
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


@dataclass(frozen=True, slots=True)
class User:
    """Public profile. Never carries a password."""

    id: str
    name: str
    email: str
    bio: str | None = None
    location: str | None = None
    phone: str | None = None
    avatar: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        user_id = data["id"]
        name = data["name"]
        email = data["email"]
        if not all(isinstance(v, str) for v in (user_id, name, email)):
            raise TypeError("user id/name/email must be strings")

        def _opt(key: str) -> str | None:
            v = data.get(key)
            return v if isinstance(v, str) else None

        return cls(
            id=user_id,
            name=name,
            email=email,
            bio=_opt("bio"),
            location=_opt("location"),
            phone=_opt("phone"),
            avatar=_opt("avatar"),
        )

    def merged(self, fields: dict[str, Any]) -> User:
        """Overlay profile fields; empty or missing values keep the current value. `id` never changes."""
        current = asdict(self)
        for key in PROFILE_FIELDS:
            value = fields.get(key)
            if is_provided(value):
                current[key] = value
        return User(**current)


@dataclass(slots=True)
class CredentialRecord:
    """Credential directory row. Plaintext password: demo directory only."""

    id: str
    name: str
    email: str
    password: str
    bio: str = ""
    location: str = ""
    phone: str = ""
    avatar: str | None = None

    def public_profile(self) -> User:
        return User(
            id=self.id,
            name=self.name,
            email=self.email,
            bio=self.bio,
            location=self.location,
            phone=self.phone,
            avatar=self.avatar,
        )


@dataclass(frozen=True, slots=True)
class AuthState:
    is_authenticated: bool = False
    user: User | None = None
    loading: bool = False
    error: str | None = None

    @property
    def phase(self) -> AuthPhase:
        if self.loading:
            return AuthPhase.CHECKING
        if self.is_authenticated:
            return AuthPhase.AUTHENTICATED
        if self.error:
            return AuthPhase.FAILED
        return AuthPhase.ANONYMOUS
