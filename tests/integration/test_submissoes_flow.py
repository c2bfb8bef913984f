"""
Testes de integração do ciclo de vida da submissão.
"""

import pytest

from backend.trabalhos.common.exceptions import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from backend.trabalhos.core.events import StatusSubmissaoAlterado, event_bus
from backend.trabalhos.db import execute_db, query_db
from backend.trabalhos.domain.chamadas import publicar_chamada
from backend.trabalhos.domain.submissoes import (
    atualizar_submissao,
    criar_submissao,
    listar_minhas_submissoes,
    listar_submissoes_admin,
    obter_submissao,
    remover_submissao,
)
from tests.fixtures import ADMIN, AUTOR, OUTRO_USUARIO, make_payload_submissao


class TestCriarSubmissao:
    def test_cria_submetida_com_coautores(self, chamada):
        sid = criar_submissao(chamada["id"], make_payload_submissao(chamada["linha_id"]), AUTOR)
        sub = obter_submissao(sid, AUTOR)

        assert sub["status"] == "submetido"
        assert sub["usuario_id"] == AUTOR["id"]
        assert [c["nome"] for c in sub["coautores"]] == ["Coautor Um"]
        assert sub["linha_tematica_nome"] == "Atenção Primária"

    def test_rascunho_parcial(self, chamada):
        payload = {"titulo": "Ideia", "inicio_experiencia": "2010-01", "status": "rascunho"}
        sid = criar_submissao(chamada["id"], payload, AUTOR)
        assert obter_submissao(sid, AUTOR)["status"] == "rascunho"

    def test_notifica_autor(self, chamada):
        criar_submissao(chamada["id"], make_payload_submissao(chamada["linha_id"]), AUTOR)
        titulos = [n["titulo"] for n in query_db("SELECT titulo FROM notificacoes WHERE usuario_id = %s", (AUTOR["id"],))]
        assert "Submissão criada: Relato de experiência" in titulos
        assert "Submissão enviada" in titulos

    def test_chamada_nao_publicada(self, chamada):
        publicar_chamada(chamada["id"], False)
        with pytest.raises(StateConflictError, match="não publicada"):
            criar_submissao(chamada["id"], make_payload_submissao(chamada["linha_id"]), AUTOR)

    def test_apos_o_prazo(self, chamada, encerrar_prazo):
        encerrar_prazo(chamada["id"])
        with pytest.raises(StateConflictError, match="prazo"):
            criar_submissao(chamada["id"], make_payload_submissao(chamada["linha_id"]), AUTOR)

    def test_linha_de_outra_chamada(self, chamada):
        with pytest.raises(ValidationError, match="Linha temática"):
            criar_submissao(chamada["id"], make_payload_submissao(9999), AUTOR)

    def test_titulo_acima_do_limite(self, chamada):
        payload = make_payload_submissao(chamada["linha_id"], titulo="x" * 101)
        with pytest.raises(ValidationError):
            criar_submissao(chamada["id"], payload, AUTOR)
        assert query_db("SELECT COUNT(*) AS n FROM trabalhos_submissoes", one=True)["n"] == 0


class TestAtualizarSubmissao:
    def test_rascunho_para_submetido(self, chamada):
        sid = criar_submissao(chamada["id"], {"titulo": "Ideia", "inicio_experiencia": "2024-01", "status": "rascunho"}, AUTOR)
        event_bus.clear_history()

        atualizar_submissao(sid, make_payload_submissao(chamada["linha_id"]), AUTOR)

        assert obter_submissao(sid, AUTOR)["status"] == "submetido"
        eventos = event_bus.get_history(event_type=StatusSubmissaoAlterado)
        assert [e.submissao_id for e in eventos] == [sid]

    def test_mescla_campos_gravados(self, submissao):
        atualizar_submissao(submissao, {"titulo": "Título revisado"}, AUTOR)
        sub = obter_submissao(submissao, AUTOR)
        assert sub["titulo"] == "Título revisado"
        assert sub["objetivos"] == "Objetivos do trabalho."
        assert len(sub["coautores"]) == 1

    def test_coautores_substituidos(self, submissao):
        atualizar_submissao(submissao, {"coautores": []}, AUTOR)
        assert obter_submissao(submissao, AUTOR)["coautores"] == []

    def test_outro_usuario(self, submissao):
        with pytest.raises(AuthorizationError):
            atualizar_submissao(submissao, {"titulo": "X"}, OUTRO_USUARIO)

    def test_apos_o_prazo(self, chamada, submissao, encerrar_prazo):
        encerrar_prazo(chamada["id"])
        with pytest.raises(StateConflictError, match="prazo"):
            atualizar_submissao(submissao, {"titulo": "Tarde demais"}, AUTOR)

    def test_status_nao_editavel(self, submissao):
        execute_db("UPDATE trabalhos_submissoes SET status = 'em_avaliacao' WHERE id = %s", (submissao,))
        with pytest.raises(StateConflictError):
            atualizar_submissao(submissao, {"titulo": "X"}, AUTOR)


class TestRemoverSubmissao:
    def test_remove_mesmo_apos_o_prazo(self, chamada, submissao, encerrar_prazo):
        encerrar_prazo(chamada["id"])
        remover_submissao(submissao, AUTOR)
        assert query_db("SELECT id FROM trabalhos_submissoes WHERE id = %s", (submissao,), one=True) is None
        assert query_db("SELECT COUNT(*) AS n FROM trabalhos_coautores", one=True)["n"] == 0

    def test_em_avaliacao_nao_pode_ser_removida(self, submissao):
        execute_db("UPDATE trabalhos_submissoes SET status = 'em_avaliacao' WHERE id = %s", (submissao,))
        with pytest.raises(StateConflictError):
            remover_submissao(submissao, AUTOR)

    def test_outro_usuario(self, submissao):
        with pytest.raises(AuthorizationError):
            remover_submissao(submissao, OUTRO_USUARIO)

    def test_inexistente(self, app_context):
        with pytest.raises(NotFoundError):
            remover_submissao(999, ADMIN)


class TestConsultas:
    def test_outro_usuario_nao_ve(self, submissao):
        with pytest.raises(AuthorizationError):
            obter_submissao(submissao, OUTRO_USUARIO)

    def test_notas_ocultas_para_o_autor(self, submissao):
        execute_db("UPDATE trabalhos_submissoes SET nota_escrita = 8.5 WHERE id = %s", (submissao,))
        assert obter_submissao(submissao, AUTOR)["nota_escrita"] is None
        assert obter_submissao(submissao, ADMIN)["nota_escrita"] == 8.5
        assert listar_minhas_submissoes(AUTOR)[0]["nota_escrita"] is None

        execute_db("UPDATE trabalhos_submissoes SET nota_visivel = %s WHERE id = %s", (True, submissao))
        assert obter_submissao(submissao, AUTOR)["nota_escrita"] == 8.5

    def test_listagem_admin_paginada(self, chamada, submissao):
        criar_submissao(chamada["id"], {"titulo": "Rascunho", "inicio_experiencia": "2024-01", "status": "rascunho"}, AUTOR)

        rows, pagination = listar_submissoes_admin(chamada_id=chamada["id"], page=1, per_page=1)
        assert pagination.total == 2
        assert pagination.to_dict()["pages"] == 2
        assert len(rows) == 1
        assert rows[0]["qtd_avaliadores"] == 0

        rows, pagination = listar_submissoes_admin(status="submetido")
        assert [r["id"] for r in rows] == [submissao]
