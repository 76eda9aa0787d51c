"""Mensagem automática quando um pedido muda de status."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from app.services.message_dispatcher import RECIPIENT_VARIABLES

if TYPE_CHECKING:
    from collections.abc import Mapping

    from app.domain.jobs import MessageJob
    from app.services.message_dispatcher import MessageDispatcher
    from app.templates.auto_messages import AutoMessageTable

logger = logging.getLogger(__name__)


class OrderStatusNotifier:
    """Consulta a AutoMessageTable e envia pelo MessageDispatcher.

    Args:
        table: Regras status → template
        dispatcher: Message Dispatcher (job, retry e gate de sessão)
    """

    def __init__(self, table: AutoMessageTable, dispatcher: MessageDispatcher) -> None:
        self._table = table
        self._dispatcher = dispatcher

    @property
    def table(self) -> AutoMessageTable:
        return self._table

    async def notify(
        self,
        vendor_id: str,
        order_number: str,
        new_status: str,
        variables: Mapping[str, Any] | None = None,
        recipient: str | None = None,
    ) -> MessageJob | None:
        """Envia a mensagem do status, se houver regra ativa.

        Returns:
            MessageJob criado, ou None quando nada foi enviado
        """
        rule = self._table.rule_for(new_status)
        if rule is None:
            logger.debug(
                "order_status_message_skipped",
                extra={"vendor_id": vendor_id, "status": new_status, "reason": "no_rule"},
            )
            return None

        merged = {"order_number": order_number, "order_status": new_status, **(variables or {})}
        if not recipient and not any(merged.get(k) for k in RECIPIENT_VARIABLES):
            logger.info(
                "order_status_message_skipped",
                extra={"vendor_id": vendor_id, "status": new_status, "reason": "no_recipient"},
            )
            return None

        job = await self._dispatcher.send(vendor_id, rule.template_id, merged, recipient)
        logger.info(
            "order_status_message_dispatched",
            extra={
                "vendor_id": vendor_id,
                "status": new_status,
                "template": rule.template_id,
                "job_status": job.status.value,
            },
        )
        return job
