"""Coração do bridge: sessões, jobs e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- auth/: emissão e cache de tokens do gateway, signing secret
- sessions/: Session Manager (pareamento, health check, revogação)
- services/: backoff, despacho de mensagens, sync de produtos, uso da API
- templates/: catálogo e renderer de templates
- scheduling/: jobs periódicos e execução de ticks
- entrypoints/: ações admin/frontend e ciclo de vida
- infra/: implementações concretas de IO (stores, secrets)
- protocols/: contratos/interfaces
- domain/: entidades (VendorSession, jobs, AuthToken)
- observability/: correlation_id e métricas em log

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
