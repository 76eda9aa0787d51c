"""API: camada de borda.

Responsabilidades:
- Falar HTTP com o gateway WhatsApp (tokens, sessões, mensagens)
- Classificar respostas do gateway em erros tipados
- Expor rotas HTTP de health, ticks e ações admin/vendor

Subpastas:
- connectors/: adapters HTTP para APIs externas
- routes/: endpoints HTTP (health, ticks, ações)

NÃO PODE conter: FSM, regras de sessão, política de retry.
"""
