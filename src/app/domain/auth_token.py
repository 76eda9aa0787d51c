"""AuthToken: bearer token emitido pelo gateway para um subject."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from app.domain.clock import parse_datetime

SYSTEM_SUBJECT = "system"


@dataclass(frozen=True, slots=True)
class AuthToken:
    """Token imutável; renovação troca o objeto inteiro.

    `value` fica fora do repr e dos dicts de log.
    """

    subject: str
    value: str = field(repr=False)
    issued_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def needs_refresh(self, now: datetime, safety_margin_seconds: float) -> bool:
        """True se expirado ou dentro da margem de segurança.

        A margem é limitada à metade da vida útil do token; sem isso um
        token curto seria renovado a cada chamada.
        """
        lifetime = (self.expires_at - self.issued_at).total_seconds()
        margin = min(safety_margin_seconds, max(lifetime, 0.0) / 2)
        return now >= self.expires_at - timedelta(seconds=margin)

    def to_log_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    def to_dict(self) -> dict[str, Any]:
        """Serializa para persistência (inclui value)."""
        return {**self.to_log_dict(), "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthToken:
        issued_at = parse_datetime(data["issued_at"])
        expires_at = parse_datetime(data["expires_at"])
        if issued_at is None or expires_at is None:
            raise ValueError("AuthToken persistido sem datas")
        return cls(
            subject=data["subject"],
            value=data["value"],
            issued_at=issued_at,
            expires_at=expires_at,
        )
