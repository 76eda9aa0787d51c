"""Payloads de request e RequestResult das ações admin/frontend."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from utils.errors import GatewayBridgeError

DEFAULT_TEST_MESSAGE = "This is a test message from your store's WhatsApp integration."

# Falha de Redis/armazenamento; nunca expõe detalhes do backend
STORAGE_UNAVAILABLE_KIND = "StorageUnavailable"


class ActionPayload(BaseModel):
    """Base dos payloads: campos extras são ignorados."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class VendorPayload(ActionPayload):
    vendor_id: str = Field(min_length=1)


class StartPairingPayload(VendorPayload):
    session_name: str = ""


class SendMessagePayload(VendorPayload):
    template_name: str = Field(min_length=1)
    variables: dict[str, Any] = Field(default_factory=dict)
    recipient: str | None = None


class SendTestMessagePayload(VendorPayload):
    recipient: str = Field(min_length=1)
    message: str = DEFAULT_TEST_MESSAGE


class SyncProductsPayload(VendorPayload):
    products: list[dict[str, Any]] = Field(default_factory=list)


class TemplateIdPayload(VendorPayload):
    template_id: str = Field(min_length=1)


class SessionMetadataPayload(VendorPayload):
    metadata: dict[str, Any] = Field(default_factory=dict)


class SaveTemplatePayload(VendorPayload):
    template_id: str = ""
    template_name: str = Field(min_length=1)
    template_content: str = Field(min_length=1)


class AutoMessagePayload(ActionPayload):
    status: str = Field(min_length=1)
    template_id: str = Field(min_length=1)
    enabled: bool = True


class OrderStatusPayload(VendorPayload):
    order_number: str = Field(min_length=1)
    new_status: str = Field(min_length=1)
    variables: dict[str, Any] = Field(default_factory=dict)
    recipient: str | None = None


class RequestResult(BaseModel):
    """Resultado de uma ação: `data` no sucesso, `error_kind` + `message` na falha."""

    success: bool
    data: dict[str, Any] | None = None
    error_kind: str | None = None
    message: str | None = None

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None) -> RequestResult:
        return cls(success=True, data=data or {})

    @classmethod
    def fail(cls, error: GatewayBridgeError) -> RequestResult:
        return cls(success=False, error_kind=error.kind, message=error.message)

    @classmethod
    def storage_unavailable(cls) -> RequestResult:
        return cls(
            success=False,
            error_kind=STORAGE_UNAVAILABLE_KIND,
            message="Armazenamento temporariamente indisponível",
        )

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)
