"""Template Renderer: payload pronto para o gateway.

Puro e determinístico: mesmas entradas, mesmo payload. Nenhum payload
é gerado com slot sem valor.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.templates.models import (
    CAPTIONED_MEDIA_TYPES,
    SLOT_PATTERN,
    MessageTemplate,
    TemplateKind,
)
from utils.errors import MissingVariable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.templates.catalog import TemplateCatalog


def _stringify(value: Any) -> str:
    if isinstance(value, list | tuple):
        return "\n".join(str(item) for item in value)
    return str(value)


def _resolve_values(
    template: MessageTemplate, variables: Mapping[str, Any]
) -> dict[str, str]:
    missing = [
        slot for slot in template.slots
        if variables.get(slot) is None or _stringify(variables[slot]) == ""
    ]
    if missing:
        raise MissingVariable(template.template_id, missing)
    return {slot: _stringify(variables[slot]) for slot in template.slots}


def render_template(
    template: MessageTemplate, variables: Mapping[str, Any]
) -> dict[str, Any]:
    """Renderiza um template resolvido.

    Args:
        template: Template
        variables: Valores dos slots (extras são ignorados)

    Returns:
        Payload `{"type", "content", "template"}`; `type` é text, template,
        o tipo da mídia ou interactive

    Raises:
        MissingVariable: Lista todos os slots sem valor
    """
    values = _resolve_values(template, variables)

    if template.kind == TemplateKind.GATEWAY:
        parameters = [{"type": "text", "text": values[slot]} for slot in template.slots]
        return {
            "type": "template",
            "template": template.template_id,
            "content": {
                "template": {
                    "name": template.gateway_name or template.template_id,
                    "language": {"code": template.language},
                    "components": [{"type": "body", "parameters": parameters}],
                }
            },
        }

    # Substituição em passo único: valores com "{x}" não são reinterpretados
    text = SLOT_PATTERN.sub(lambda m: values[m.group(1)], template.content)

    if template.kind == TemplateKind.MEDIA:
        return {
            "type": template.media_type,
            "template": template.template_id,
            "content": {template.media_type: _media_body(template, text)},
        }
    if template.kind in (TemplateKind.BUTTONS, TemplateKind.LIST):
        return {
            "type": "interactive",
            "template": template.template_id,
            "content": {"interactive": _interactive_body(template, text)},
        }
    return {
        "type": "text",
        "template": template.template_id,
        "content": {"text": text},
    }


def _media_body(template: MessageTemplate, caption: str) -> dict[str, Any]:
    body: dict[str, Any] = {"url": template.media_url}
    if caption and template.media_type in CAPTIONED_MEDIA_TYPES:
        body["caption"] = caption
    if template.media_type == "document" and template.filename:
        body["filename"] = template.filename
    return body


def _interactive_body(template: MessageTemplate, text: str) -> dict[str, Any]:
    if template.kind == TemplateKind.BUTTONS:
        interactive: dict[str, Any] = {
            "type": "button",
            "body": {"text": text},
            "action": {
                "buttons": [
                    {"id": button_id or f"btn_{index}", "title": title}
                    for index, (button_id, title) in enumerate(template.buttons, start=1)
                ]
            },
        }
    else:
        interactive = {
            "type": "list",
            "body": {"text": text},
            "action": {
                "button": template.button_text,
                "sections": [dict(section) for section in template.sections],
            },
        }
    if template.header:
        interactive["header"] = {"type": "text", "text": template.header}
    if template.footer:
        interactive["footer"] = {"text": template.footer}
    return interactive


class TemplateRenderer:
    """Resolve no catálogo e renderiza."""

    def __init__(self, catalog: TemplateCatalog) -> None:
        self._catalog = catalog

    @property
    def catalog(self) -> TemplateCatalog:
        return self._catalog

    def render(
        self,
        template_name: str,
        variables: Mapping[str, Any],
        vendor_id: str | None = None,
    ) -> dict[str, Any]:
        """Renderiza template por nome.

        Raises:
            TemplateNotFound: Nome desconhecido
            MissingVariable: Slots sem valor
        """
        template = self._catalog.get(template_name, vendor_id)
        return render_template(template, variables)
