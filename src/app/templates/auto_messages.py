"""Tabela de mensagens automáticas por status de pedido.

Cada status aponta para um template e pode ser desligado sem perder
o template configurado.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from app.templates.models import AutoMessageRule

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def _normalize_status(status: str) -> str:
    return status.strip().lower()


class AutoMessageTable:
    """Regras status → template, em memória como o catálogo."""

    def __init__(self, rules: Iterable[AutoMessageRule] = ()) -> None:
        self._rules: dict[str, AutoMessageRule] = {}
        for rule in rules:
            key = _normalize_status(rule.status)
            self._rules[key] = replace(rule, status=key)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> AutoMessageTable:
        return cls(AutoMessageRule(status=s, template_id=t) for s, t in pairs)

    def set_rule(self, status: str, template_id: str, enabled: bool = True) -> AutoMessageRule:
        key = _normalize_status(status)
        rule = AutoMessageRule(status=key, template_id=template_id, enabled=enabled)
        self._rules[key] = rule
        logger.info("auto_message_rule_saved", extra=rule.to_dict())
        return rule

    def remove(self, status: str) -> bool:
        return self._rules.pop(_normalize_status(status), None) is not None

    def rule_for(self, status: str) -> AutoMessageRule | None:
        """Regra ativa do status; None se ausente, desligada ou sem template."""
        rule = self._rules.get(_normalize_status(status))
        if rule is None or not rule.enabled or not rule.template_id:
            return None
        return rule

    def list_rules(self) -> list[AutoMessageRule]:
        return [self._rules[k] for k in sorted(self._rules)]
