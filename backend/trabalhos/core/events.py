"""
Event Bus — Sistema de eventos de domínio.

Event Bus leve e in-process: os serviços de domínio emitem eventos depois do
commit e os handlers (notificações, auditoria) reagem sem acoplar os módulos.

Uso:
    from backend.trabalhos.core.events import event_bus, SubmissaoCriada

    @event_bus.on(SubmissaoCriada)
    def handle(event):
        ...

    event_bus.emit(SubmissaoCriada(submissao_id=42, usuario_id=7))
"""

from __future__ import annotations

import logging
import time
import traceback
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("app")

T = TypeVar("T", bound="DomainEvent")


@dataclass
class DomainEvent:
    """
    Classe base para eventos de domínio.

    Todos os eventos devem herdar desta classe.
    """

    timestamp: float = field(default_factory=time.time, init=False)
    event_id: str = field(default_factory=lambda: f"{time.time_ns()}", init=False)

    @property
    def event_name(self) -> str:
        return self.__class__.__name__


# ──────────────────────────────────────────────
# Eventos de Domínio — Submissões
# ──────────────────────────────────────────────


@dataclass
class SubmissaoCriada(DomainEvent):
    """Emitido quando um autor cria uma submissão (rascunho ou já submetida)."""

    submissao_id: int = 0
    usuario_id: int = 0
    chamada_titulo: str = ""
    trabalho_titulo: str = ""


@dataclass
class StatusSubmissaoAlterado(DomainEvent):
    """Emitido quando o status de uma submissão muda e o autor deve ser avisado."""

    submissao_id: int = 0
    usuario_id: int = 0
    chamada_titulo: str = ""
    trabalho_titulo: str = ""
    status: str = ""


@dataclass
class PosterAtualizado(DomainEvent):
    """Emitido quando um pôster é anexado ou substituído."""

    submissao_id: int = 0
    usuario_id: int = 0
    chamada_titulo: str = ""
    trabalho_titulo: str = ""
    arquivo_nome: str = ""


@dataclass
class ClassificacaoConsolidada(DomainEvent):
    """Emitido uma vez por chamada ao final da consolidação."""

    chamada_id: int = 0
    aprovados_exposicao: list[int] = field(default_factory=list)
    aprovados_oral: list[int] = field(default_factory=list)


# ──────────────────────────────────────────────
# Event Bus
# ──────────────────────────────────────────────


class EventBus:
    """
    Event Bus in-process para comunicação entre módulos.

    Handlers são executados sincronamente; erros em handlers são logados e
    nunca afetam o fluxo principal.
    """

    def __init__(self):
        self._handlers: dict[type, list[Callable]] = {}
        self._history: list[DomainEvent] = []
        self._max_history: int = 500
        self._enabled: bool = True

    def on(self, event_type: type[T]) -> Callable:
        """Decorator para registrar um handler de evento."""

        def decorator(func: Callable[[T], Any]) -> Callable[[T], Any]:
            self.register(event_type, func)
            return func

        return decorator

    def register(self, event_type: type[DomainEvent], handler: Callable) -> None:
        """Registra um handler para um tipo de evento (uma única vez)."""
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(f"Event handler registrado: {event_type.__name__} → {handler.__name__}")

    def emit(self, event: DomainEvent) -> None:
        if not self._enabled:
            return

        event_name = event.event_name
        handlers = self._handlers.get(type(event), [])

        self._history.append(event)
        if len(self._history) > self._max_history:
            self._history = self._history[-self._max_history :]

        if not handlers:
            logger.debug(f"📢 Evento emitido sem handlers: {event_name}")
            return

        logger.info(f"📢 Evento emitido: {event_name} → {len(handlers)} handler(s)")

        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error(f"❌ Erro no handler {handler.__name__} para {event_name}: {e}\n{traceback.format_exc()}")

    def get_handlers(self, event_type: type) -> list[Callable]:
        return self._handlers.get(event_type, [])

    def get_history(self, event_type: type | None = None, limit: int = 50) -> list[DomainEvent]:
        """Eventos recentes, opcionalmente filtrados por tipo."""
        events = self._history
        if event_type:
            events = [e for e in events if isinstance(e, event_type)]
        return events[-limit:]

    def clear_handlers(self) -> None:
        """Remove todos os handlers (útil para testes)."""
        self._handlers.clear()

    def clear_history(self) -> None:
        self._history.clear()

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        """Desabilita o Event Bus (útil para testes ou manutenção)."""
        self._enabled = False


# ──────────────────────────────────────────────
# Instância global
# ──────────────────────────────────────────────
event_bus = EventBus()
