"""
Event Handlers — Reações a eventos de domínio.

Cada handler entrega um aviso ao autor através do NotificationSender.
São registrados no EventBus durante o startup via `register_event_handlers`.
Falhas são logadas e nunca interrompem o fluxo principal.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .events import ClassificacaoConsolidada, PosterAtualizado, StatusSubmissaoAlterado, SubmissaoCriada

logger = logging.getLogger("app")


def handle_notificar_submissao_criada(event: SubmissaoCriada) -> None:
    from ..domain.notificacoes import notification_sender

    notification_sender.send(event.usuario_id, 'submissao_criada', {
        'chamada_titulo': event.chamada_titulo,
        'trabalho_titulo': event.trabalho_titulo,
    })


def handle_notificar_status(event: StatusSubmissaoAlterado) -> None:
    from ..domain.notificacoes import notification_sender

    notification_sender.send(event.usuario_id, 'status_submissao', {
        'chamada_titulo': event.chamada_titulo,
        'trabalho_titulo': event.trabalho_titulo,
        'status': event.status,
    })


def handle_notificar_poster(event: PosterAtualizado) -> None:
    from ..domain.notificacoes import notification_sender

    notification_sender.send(event.usuario_id, 'poster_atualizado', {
        'chamada_titulo': event.chamada_titulo,
        'trabalho_titulo': event.trabalho_titulo,
        'arquivo_nome': event.arquivo_nome,
    })


def handle_notificar_classificacao(event: ClassificacaoConsolidada) -> None:
    """Avisa cada autor da chamada sobre o status resultante da consolidação."""
    from ..db import query_db
    from ..domain.notificacoes import notification_sender

    rows = query_db(
        """
        SELECT s.id, s.usuario_id, s.titulo AS trabalho_titulo, s.status, c.titulo AS chamada_titulo
        FROM trabalhos_submissoes s
        JOIN trabalhos_chamadas c ON c.id = s.chamada_id
        WHERE s.chamada_id = %s AND s.status <> %s
        """,
        (event.chamada_id, 'rascunho')
    )
    for row in rows:
        try:
            notification_sender.send(row['usuario_id'], 'status_submissao', row)
        except Exception as e:
            logger.warning(f"Falha ao notificar classificação da submissão {row['id']}: {e}")


def register_event_handlers(event_bus) -> None:
    """
    Registra todos os handlers no EventBus.

    Chamado durante o startup da aplicação (create_app).
    """
    from .events import ClassificacaoConsolidada, PosterAtualizado, StatusSubmissaoAlterado, SubmissaoCriada

    event_bus.register(SubmissaoCriada, handle_notificar_submissao_criada)
    event_bus.register(StatusSubmissaoAlterado, handle_notificar_status)
    event_bus.register(PosterAtualizado, handle_notificar_poster)
    event_bus.register(ClassificacaoConsolidada, handle_notificar_classificacao)

    total = sum(len(event_bus.get_handlers(t)) for t in (
        SubmissaoCriada, StatusSubmissaoAlterado, PosterAtualizado, ClassificacaoConsolidada))
    logger.info(f"📢 EventBus: {total} handlers de notificação registrados")
