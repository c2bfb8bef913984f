"""
Testes unitários para o Event Bus.

Testa:
- EventBus: registro, emissão, error handling
- DomainEvents: criação e dados
"""

from backend.trabalhos.core.events import (
    ClassificacaoConsolidada,
    EventBus,
    StatusSubmissaoAlterado,
    SubmissaoCriada,
)


class TestDomainEvents:
    """Testes para eventos de domínio."""

    def test_event_has_timestamp(self):
        event = SubmissaoCriada(submissao_id=1, usuario_id=2)
        assert event.timestamp > 0

    def test_event_name(self):
        event = StatusSubmissaoAlterado(submissao_id=1, usuario_id=2, status="aprovado")
        assert event.event_name == "StatusSubmissaoAlterado"

    def test_event_stores_data(self):
        event = SubmissaoCriada(
            submissao_id=42,
            usuario_id=7,
            chamada_titulo="Mostra 2025",
            trabalho_titulo="Relato",
        )
        assert event.submissao_id == 42
        assert event.usuario_id == 7
        assert event.chamada_titulo == "Mostra 2025"

    def test_list_fields_are_independent(self):
        e1 = ClassificacaoConsolidada(chamada_id=1)
        e2 = ClassificacaoConsolidada(chamada_id=2)
        e1.aprovados_oral.append(10)
        assert e2.aprovados_oral == []


class TestEventBus:
    """Testes para o Event Bus."""

    def setup_method(self):
        """Cria um EventBus limpo para cada teste."""
        self.bus = EventBus()

    def test_register_and_emit(self):
        received = []

        @self.bus.on(SubmissaoCriada)
        def handler(event):
            received.append(event)

        self.bus.emit(SubmissaoCriada(submissao_id=1, usuario_id=2))

        assert len(received) == 1
        assert received[0].submissao_id == 1

    def test_register_same_handler_once(self):
        """Registrar o mesmo handler duas vezes não duplica a execução."""
        results = []

        def handler(event):
            results.append(event)

        self.bus.register(SubmissaoCriada, handler)
        self.bus.register(SubmissaoCriada, handler)
        self.bus.emit(SubmissaoCriada(submissao_id=1))

        assert len(results) == 1

    def test_handler_error_does_not_propagate(self):
        """Testa que erro em handler não afeta o fluxo."""
        results = []

        @self.bus.on(SubmissaoCriada)
        def failing_handler(event):
            raise ValueError("Erro intencional")

        @self.bus.on(SubmissaoCriada)
        def good_handler(event):
            results.append("ok")

        # Não deve lançar exceção
        self.bus.emit(SubmissaoCriada(submissao_id=1))

        assert "ok" in results

    def test_different_event_types(self):
        """Testa que handlers são isolados por tipo de evento."""
        criadas = []
        status = []

        @self.bus.on(SubmissaoCriada)
        def handler_criada(event):
            criadas.append(event)

        @self.bus.on(StatusSubmissaoAlterado)
        def handler_status(event):
            status.append(event)

        self.bus.emit(SubmissaoCriada(submissao_id=1))

        assert len(criadas) == 1
        assert len(status) == 0

    def test_event_history_filtered(self):
        self.bus.emit(SubmissaoCriada(submissao_id=1))
        self.bus.emit(StatusSubmissaoAlterado(submissao_id=1, status="submetido"))

        assert len(self.bus.get_history()) == 2
        history = self.bus.get_history(event_type=StatusSubmissaoAlterado)
        assert len(history) == 1
        assert history[0].status == "submetido"

    def test_disable_enable(self):
        """Testa habilitar/desabilitar Event Bus."""
        results = []

        @self.bus.on(SubmissaoCriada)
        def handler(event):
            results.append("received")

        self.bus.disable()
        self.bus.emit(SubmissaoCriada(submissao_id=1))
        assert len(results) == 0

        self.bus.enable()
        self.bus.emit(SubmissaoCriada(submissao_id=1))
        assert len(results) == 1

    def test_clear_handlers(self):
        @self.bus.on(SubmissaoCriada)
        def handler(event):
            pass

        self.bus.clear_handlers()
        assert len(self.bus.get_handlers(SubmissaoCriada)) == 0

    def test_clear_history(self):
        self.bus.emit(SubmissaoCriada(submissao_id=1))
        self.bus.clear_history()
        assert len(self.bus.get_history()) == 0
