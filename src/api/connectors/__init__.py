"""Connectors: adapters de borda para APIs externas.

Estrutura:
- gateway/: gateway WhatsApp externo (sessões, mensagens, catálogo)
"""

__all__: list[str] = []
