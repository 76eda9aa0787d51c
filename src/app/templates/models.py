"""Modelos de template de mensagem."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

# {nome_do_slot}; chaves duplas e nomes inválidos não são slots
SLOT_PATTERN = re.compile(r"(?<!\{)\{([A-Za-z_][A-Za-z0-9_]*)\}(?!\})")

MEDIA_TYPES = ("image", "video", "audio", "document")
CAPTIONED_MEDIA_TYPES = ("image", "video", "document")
MAX_BUTTONS = 3


class TemplateKind(str, Enum):
    """Forma do payload gerado."""

    TEXT = "text"
    GATEWAY = "template"
    MEDIA = "media"
    BUTTONS = "buttons"
    LIST = "list"


@dataclass(frozen=True)
class MessageTemplate:
    """Template de mensagem.

    Para TEXT, `content` é o corpo com slots `{nome}`. Para GATEWAY,
    `gateway_name`/`language` identificam o template registrado no gateway
    e os slots de `content` viram parâmetros do componente body, na ordem
    em que aparecem.

    Para MEDIA, `content` é a legenda (pode ser vazia). Para BUTTONS e
    LIST, `content` é o corpo da mensagem interativa; `header` e `footer`
    são texto fixo.
    """

    template_id: str
    name: str
    content: str
    kind: TemplateKind = TemplateKind.TEXT
    gateway_name: str = ""
    language: str = "pt_BR"
    scope: str = "global"
    media_type: str = ""
    media_url: str = ""
    filename: str = ""
    header: str = ""
    footer: str = ""
    buttons: tuple[tuple[str, str], ...] = ()
    button_text: str = ""
    sections: tuple[dict[str, Any], ...] = ()

    def __post_init__(self) -> None:
        if self.kind == TemplateKind.MEDIA:
            if self.media_type not in MEDIA_TYPES:
                raise ValueError(f"media_type inválido: {self.media_type!r}")
            if not self.media_url:
                raise ValueError("Template de mídia sem media_url")
        elif self.kind == TemplateKind.BUTTONS:
            if not 1 <= len(self.buttons) <= MAX_BUTTONS:
                raise ValueError(f"Mensagem com botões exige de 1 a {MAX_BUTTONS} botões")
        elif self.kind == TemplateKind.LIST:
            if not self.button_text or not self.sections:
                raise ValueError("Mensagem de lista exige button_text e sections")

    @property
    def slots(self) -> tuple[str, ...]:
        """Slots distintos na ordem da primeira ocorrência."""
        seen: dict[str, None] = {}
        for match in SLOT_PATTERN.finditer(self.content):
            seen.setdefault(match.group(1), None)
        return tuple(seen)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.template_id,
            "name": self.name,
            "content": self.content,
            "kind": self.kind.value,
            "scope": self.scope,
            "slots": list(self.slots),
        }


@dataclass(frozen=True, slots=True)
class AutoMessageRule:
    """Mensagem automática para um status de pedido."""

    status: str
    template_id: str
    enabled: bool = True

    def to_dict(self) -> dict[str, object]:
        return {"status": self.status, "template_id": self.template_id, "enabled": self.enabled}
