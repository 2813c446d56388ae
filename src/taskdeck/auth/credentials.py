# src/taskdeck/auth/credentials.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any

from .models import PROFILE_FIELDS, CredentialRecord, is_provided

logger = logging.getLogger(__name__)


def seed_users() -> list[CredentialRecord]:
    return [
        CredentialRecord(
            id="1",
            name="John Doe",
            email="john@example.com",
            password="password123",
            bio="Frontend developer with a passion for UI/UX design",
            location="San Francisco, CA",
            phone="+1 (555) 123-4567",
        ),
        CredentialRecord(
            id="2",
            name="Jane Smith",
            email="jane@example.com",
            password="password123",
            bio="Product manager and tech enthusiast",
            location="New York, NY",
            phone="+1 (555) 987-6543",
        ),
    ]


class InMemoryCredentialDirectory:
    """
    Demo credential backend.

    - lives in process memory (registrations are lost on restart)
    - email matching is exact and case-sensitive
    - `latency_seconds` simulates a round-trip to a real backend
    """

    def __init__(
        self,
        records: list[CredentialRecord] | None = None,
        *,
        latency_seconds: float = 0.0,
    ) -> None:
        self._records: list[CredentialRecord] = list(seed_users() if records is None else records)
        self._latency = max(0.0, float(latency_seconds))

    async def _round_trip(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    def __len__(self) -> int:
        return len(self._records)

    def _next_id(self) -> str:
        numeric = [int(r.id) for r in self._records if r.id.isdigit()]
        return str(max(numeric, default=0) + 1)

    async def find_by_email(self, email: str) -> CredentialRecord | None:
        await self._round_trip()
        for r in self._records:
            if r.email == email:
                return replace(r)
        return None

    async def find_by_email_and_password(self, email: str, password: str) -> CredentialRecord | None:
        await self._round_trip()
        for r in self._records:
            if r.email == email and r.password == password:
                return replace(r)
        return None

    async def create(self, *, name: str, email: str, password: str) -> CredentialRecord:
        await self._round_trip()
        record = CredentialRecord(id=self._next_id(), name=name, email=email, password=password)
        self._records.append(record)
        logger.info("Credential record created id=%s", record.id)
        return replace(record)

    async def update(self, user_id: str, **fields: Any) -> CredentialRecord | None:
        """Overwrite profile fields that are provided and non-empty."""
        await self._round_trip()
        for i, r in enumerate(self._records):
            if r.id != user_id:
                continue
            changes = {k: fields[k] for k in PROFILE_FIELDS if is_provided(fields.get(k))}
            self._records[i] = replace(r, **changes)
            logger.info("Credential record updated id=%s fields=%s", user_id, sorted(changes))
            return replace(self._records[i])
        return None
