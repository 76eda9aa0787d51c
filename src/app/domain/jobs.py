"""Jobs de envio de mensagem e de sincronização de produto.

Estados terminais nunca são deixados: sent/synced, failed, abandoned.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import StrEnum
from typing import Any

from app.domain.clock import format_datetime, parse_datetime, utc_now


class MessageStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    ABANDONED = "abandoned"


class SyncStatus(StrEnum):
    PENDING = "pending"
    SYNCED = "synced"
    FAILED = "failed"
    ABANDONED = "abandoned"


TERMINAL_MESSAGE_STATUSES = frozenset(
    {MessageStatus.SENT, MessageStatus.FAILED, MessageStatus.ABANDONED}
)
TERMINAL_SYNC_STATUSES = frozenset(
    {SyncStatus.SYNCED, SyncStatus.FAILED, SyncStatus.ABANDONED}
)


def new_job_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class MessageJob:
    """Envio de uma mensagem templated para o gateway.

    Atributos:
        job_id: Identificador do job
        vendor_id: Vendor dono da sessão usada no envio
        template_name: Template renderizado
        variables: Variáveis do template
        recipient: Telefone de destino (somente dígitos)
        payload: Payload renderizado (None se a renderização falhou)
        status: pending | sent | failed | abandoned
        attempts: Tentativas de envio consumidas
        next_retry_at: Próxima tentativa (somente pending)
        last_error: Mensagem genérica do último erro
        error_kind: Tipo estável do último erro
        gateway_message_id: Id devolvido pelo gateway no sucesso
        backoff_history: Delays aplicados, em segundos
    """

    vendor_id: str
    template_name: str
    variables: dict[str, Any] = field(default_factory=dict)
    recipient: str | None = None
    payload: dict[str, Any] | None = None
    status: MessageStatus = MessageStatus.PENDING
    attempts: int = 0
    next_retry_at: datetime | None = None
    last_error: str | None = None
    error_kind: str | None = None
    gateway_message_id: str | None = None
    backoff_history: tuple[float, ...] = ()
    job_id: str = field(default_factory=new_job_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_MESSAGE_STATUSES

    def is_due(self, now: datetime) -> bool:
        if self.status != MessageStatus.PENDING:
            return False
        return self.next_retry_at is None or self.next_retry_at <= now

    def evolve(self, **changes: Any) -> MessageJob:
        """Cópia com alterações; recusa sair de estado terminal."""
        if self.is_terminal and changes.get("status", self.status) != self.status:
            raise ValueError(f"Job {self.job_id} já está em estado terminal")
        changes.setdefault("updated_at", utc_now())
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "vendor_id": self.vendor_id,
            "template_name": self.template_name,
            "variables": self.variables,
            "recipient": self.recipient,
            "payload": self.payload,
            "status": self.status.value,
            "attempts": self.attempts,
            "next_retry_at": format_datetime(self.next_retry_at),
            "last_error": self.last_error,
            "error_kind": self.error_kind,
            "gateway_message_id": self.gateway_message_id,
            "backoff_history": list(self.backoff_history),
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MessageJob:
        return cls(
            job_id=data["job_id"],
            vendor_id=data["vendor_id"],
            template_name=data["template_name"],
            variables=data.get("variables") or {},
            recipient=data.get("recipient"),
            payload=data.get("payload"),
            status=MessageStatus(data.get("status", MessageStatus.PENDING.value)),
            attempts=int(data.get("attempts", 0)),
            next_retry_at=parse_datetime(data.get("next_retry_at")),
            last_error=data.get("last_error"),
            error_kind=data.get("error_kind"),
            gateway_message_id=data.get("gateway_message_id"),
            backoff_history=tuple(data.get("backoff_history") or ()),
            created_at=parse_datetime(data.get("created_at")) or utc_now(),
            updated_at=parse_datetime(data.get("updated_at")) or utc_now(),
        )

    def to_public_dict(self) -> dict[str, Any]:
        """Visão sem variáveis nem destinatário."""
        return {
            "job_id": self.job_id,
            "template_name": self.template_name,
            "status": self.status.value,
            "attempts": self.attempts,
            "next_retry_at": format_datetime(self.next_retry_at),
            "error_kind": self.error_kind,
            "gateway_message_id": self.gateway_message_id,
        }


@dataclass(frozen=True, slots=True)
class SyncJob:
    """Sincronização de um produto no catálogo do vendor no gateway."""

    vendor_id: str
    product_id: str
    product_data: dict[str, Any] = field(default_factory=dict)
    status: SyncStatus = SyncStatus.PENDING
    attempts: int = 0
    next_retry_at: datetime | None = None
    last_error: str | None = None
    error_kind: str | None = None
    catalog_product_id: str | None = None
    backoff_history: tuple[float, ...] = ()
    job_id: str = field(default_factory=new_job_id)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def key(self) -> tuple[str, str]:
        return (self.vendor_id, self.product_id)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_SYNC_STATUSES

    def is_due(self, now: datetime) -> bool:
        if self.status != SyncStatus.PENDING:
            return False
        return self.next_retry_at is None or self.next_retry_at <= now

    def evolve(self, **changes: Any) -> SyncJob:
        if self.is_terminal and changes.get("status", self.status) != self.status:
            raise ValueError(f"Job {self.job_id} já está em estado terminal")
        changes.setdefault("updated_at", utc_now())
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "vendor_id": self.vendor_id,
            "product_id": self.product_id,
            "product_data": self.product_data,
            "status": self.status.value,
            "attempts": self.attempts,
            "next_retry_at": format_datetime(self.next_retry_at),
            "last_error": self.last_error,
            "error_kind": self.error_kind,
            "catalog_product_id": self.catalog_product_id,
            "backoff_history": list(self.backoff_history),
            "created_at": format_datetime(self.created_at),
            "updated_at": format_datetime(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncJob:
        return cls(
            job_id=data["job_id"],
            vendor_id=data["vendor_id"],
            product_id=str(data["product_id"]),
            product_data=data.get("product_data") or {},
            status=SyncStatus(data.get("status", SyncStatus.PENDING.value)),
            attempts=int(data.get("attempts", 0)),
            next_retry_at=parse_datetime(data.get("next_retry_at")),
            last_error=data.get("last_error"),
            error_kind=data.get("error_kind"),
            catalog_product_id=data.get("catalog_product_id"),
            backoff_history=tuple(data.get("backoff_history") or ()),
            created_at=parse_datetime(data.get("created_at")) or utc_now(),
            updated_at=parse_datetime(data.get("updated_at")) or utc_now(),
        )
