"""Bearer token model."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, model_validator


class Token(BaseModel):
    """Bearer credential with its issuance and expiry instants.

    ``issued_at`` is taken when the refresh request was started, so that
    the newer of two racing refreshes is the one that began later.
    """

    model_config = ConfigDict(frozen=True)

    credential: str
    issued_at: datetime
    expires_at: datetime

    @model_validator(mode="after")
    def _check_lifetime(self) -> Token:
        if self.expires_at <= self.issued_at:
            msg = "Token expires_at must be after issued_at"
            raise ValueError(msg)
        return self

    @classmethod
    def from_lifetime(cls, credential: str, issued_at: datetime, expires_in: float) -> Token:
        """Build a token that expires ``expires_in`` seconds after issuance."""
        return cls(
            credential=credential,
            issued_at=issued_at,
            expires_at=issued_at + timedelta(seconds=expires_in),
        )

    def is_valid(self, now: datetime | None = None) -> bool:
        """Return True while ``now`` is strictly before expiry."""
        now = now or datetime.now(timezone.utc)
        return now < self.expires_at
