"""Templates de mensagem: catálogo, renderer e mensagens automáticas."""

from app.templates.auto_messages import AutoMessageTable
from app.templates.catalog import (
    DEFAULT_TEMPLATES,
    TemplateCatalog,
    build_buttons_template,
    build_gateway_template,
    build_list_template,
    build_media_template,
)
from app.templates.models import AutoMessageRule, MessageTemplate, TemplateKind
from app.templates.renderer import TemplateRenderer, render_template

__all__ = [
    "DEFAULT_TEMPLATES",
    "AutoMessageRule",
    "AutoMessageTable",
    "MessageTemplate",
    "TemplateCatalog",
    "TemplateKind",
    "TemplateRenderer",
    "build_buttons_template",
    "build_gateway_template",
    "build_list_template",
    "build_media_template",
    "render_template",
]
