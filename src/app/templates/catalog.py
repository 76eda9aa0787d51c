"""Catálogo de templates: globais + sobrescritas por vendor.

Template de vendor com o mesmo id substitui o global; o vendor também
pode ocultar um global.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from app.templates.models import MessageTemplate, TemplateKind
from utils.errors import TemplateNotFound

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES: tuple[MessageTemplate, ...] = (
    MessageTemplate(
        template_id="order_confirmation",
        name="Order Confirmation",
        content=(
            "*Thank you for your order!*\n\n"
            "*Order #:* {order_number}\n"
            "*Total:* {order_total}\n\n"
            "*Your order details:*\n{order_items}\n\n"
            "We will process your order soon. Thank you for shopping with {shop_name}!"
        ),
    ),
    MessageTemplate(
        template_id="order_shipped",
        name="Order Shipped",
        content=(
            "*Your order has been shipped!*\n\n"
            "*Order #:* {order_number}\n\n"
            "Your order has been shipped and is on its way to you. "
            "Thank you for shopping with {shop_name}!"
        ),
    ),
    MessageTemplate(
        template_id="order_status_update",
        name="Order Status Update",
        content=(
            "*Order Status Update*\n\n"
            "*Order #:* {order_number}\n"
            "*New Status:* {order_status}\n\n"
            "Thank you for shopping with {shop_name}!"
        ),
    ),
    MessageTemplate(
        template_id="order_update",
        name="Order Update",
        content=(
            "Hello {customer_name}, your order #{order_number} "
            "at {shop_name} is now *{order_status}*."
        ),
    ),
    MessageTemplate(
        template_id="product_sync_notice",
        name="Product Sync Notice",
        content=(
            "*{product_name}* is now available in the {shop_name} "
            "WhatsApp catalog: {product_url}"
        ),
    ),
    MessageTemplate(
        template_id="welcome_message",
        name="Welcome Message",
        content=(
            "*Welcome to {shop_name}!*\n\n"
            "Thank you for connecting with us on WhatsApp. We're here to help "
            "with any questions about our products or your orders.\n\n"
            "Visit our store: {store_url}"
        ),
    ),
    MessageTemplate(
        template_id="follow_up",
        name="Order Follow-up",
        content=(
            "*Hello {customer_name}!*\n\n"
            "How are you enjoying your recent purchase from {shop_name}?\n\n"
            "We'd love to hear your feedback. Thank you for choosing {shop_name}!"
        ),
    ),
    MessageTemplate(
        template_id="test_message",
        name="Test Message",
        content="{message}",
    ),
)


class TemplateCatalog:
    """Resolve templates por nome, considerando o vendor."""

    def __init__(self, templates: tuple[MessageTemplate, ...] = DEFAULT_TEMPLATES) -> None:
        self._globals: dict[str, MessageTemplate] = {t.template_id: t for t in templates}
        self._vendor: dict[str, dict[str, MessageTemplate]] = {}
        self._hidden: dict[str, set[str]] = {}

    def register_global(self, template: MessageTemplate) -> None:
        self._globals[template.template_id] = replace(template, scope="global")

    def set_vendor_template(self, vendor_id: str, template: MessageTemplate) -> None:
        """Cria/sobrescreve template do vendor (mesmo id de global = override)."""
        self._vendor.setdefault(vendor_id, {})[template.template_id] = replace(
            template, scope="vendor"
        )
        logger.info(
            "vendor_template_saved",
            extra={"vendor_id": vendor_id, "template_id": template.template_id},
        )

    def remove_vendor_template(self, vendor_id: str, template_id: str) -> bool:
        return self._vendor.get(vendor_id, {}).pop(template_id, None) is not None

    def hide_global(self, vendor_id: str, template_id: str) -> None:
        if template_id not in self._globals:
            raise TemplateNotFound(template_id)
        self._hidden.setdefault(vendor_id, set()).add(template_id)

    def delete_for_vendor(self, vendor_id: str, template_id: str) -> str:
        """Remove template do vendor; global não é removido, só ocultado.

        Returns:
            "hidden" para global, "deleted" para template do vendor

        Raises:
            TemplateNotFound: Id desconhecido para o vendor
        """
        if template_id in self._globals:
            self.remove_vendor_template(vendor_id, template_id)
            self.hide_global(vendor_id, template_id)
            return "hidden"
        if not self.remove_vendor_template(vendor_id, template_id):
            raise TemplateNotFound(template_id)
        return "deleted"

    def get(self, template_name: str, vendor_id: str | None = None) -> MessageTemplate:
        """Resolve template; vendor sobrescreve global.

        Raises:
            TemplateNotFound: Nome desconhecido ou global oculto pelo vendor.
        """
        if vendor_id is not None:
            vendor_template = self._vendor.get(vendor_id, {}).get(template_name)
            if vendor_template is not None:
                return vendor_template
            if template_name in self._hidden.get(vendor_id, set()):
                raise TemplateNotFound(template_name)
        template = self._globals.get(template_name)
        if template is None:
            raise TemplateNotFound(template_name)
        return template

    def list_for_vendor(self, vendor_id: str | None = None) -> list[MessageTemplate]:
        hidden = self._hidden.get(vendor_id, set()) if vendor_id else set()
        merged = {k: v for k, v in self._globals.items() if k not in hidden}
        if vendor_id:
            merged.update(self._vendor.get(vendor_id, {}))
        return [merged[k] for k in sorted(merged)]


def build_gateway_template(
    template_id: str,
    gateway_name: str,
    content: str,
    language: str = "pt_BR",
) -> MessageTemplate:
    """Atalho para template registrado no gateway."""
    return MessageTemplate(
        template_id=template_id,
        name=gateway_name,
        content=content,
        kind=TemplateKind.GATEWAY,
        gateway_name=gateway_name,
        language=language,
    )


def build_media_template(
    template_id: str,
    media_type: str,
    media_url: str,
    caption: str = "",
    filename: str = "",
) -> MessageTemplate:
    """Imagem, vídeo, áudio ou documento; a legenda aceita slots."""
    return MessageTemplate(
        template_id=template_id,
        name=template_id,
        content=caption,
        kind=TemplateKind.MEDIA,
        media_type=media_type,
        media_url=media_url,
        filename=filename,
    )


def build_buttons_template(
    template_id: str,
    body: str,
    buttons: Iterable[str | tuple[str, str]],
    header: str = "",
    footer: str = "",
) -> MessageTemplate:
    """Mensagem interativa com até 3 botões.

    Botões podem ser só o título (id gerado `btn_N`) ou `(id, título)`.
    """
    normalized = tuple(("", b) if isinstance(b, str) else (b[0], b[1]) for b in buttons)
    return MessageTemplate(
        template_id=template_id,
        name=template_id,
        content=body,
        kind=TemplateKind.BUTTONS,
        buttons=normalized,
        header=header,
        footer=footer,
    )


def build_list_template(
    template_id: str,
    body: str,
    button_text: str,
    sections: Iterable[Mapping[str, Any]],
    header: str = "",
    footer: str = "",
) -> MessageTemplate:
    return MessageTemplate(
        template_id=template_id,
        name=template_id,
        content=body,
        kind=TemplateKind.LIST,
        button_text=button_text,
        sections=tuple(dict(s) for s in sections),
        header=header,
        footer=footer,
    )
