"""
Testes de integração da atribuição de avaliadores.
"""

import pytest

from backend.trabalhos.common.exceptions import NotFoundError, StateConflictError, ValidationError
from backend.trabalhos.core.events import StatusSubmissaoAlterado, event_bus
from backend.trabalhos.db import query_db
from backend.trabalhos.domain.avaliadores import (
    atribuir_avaliadores,
    contagem_minhas_avaliacoes,
    listar_avaliadores,
    listar_submissoes_do_avaliador,
    restaurar_avaliador,
    resumo_avaliadores,
    revogar_avaliador,
)
from backend.trabalhos.domain.pontuacao import registrar_notas_escritas
from backend.trabalhos.domain.submissoes import atualizar_submissao, criar_submissao
from tests.fixtures import ADMIN, AUTOR, AUTOR_ID, OUTRO_USUARIO_ID, make_avaliador, make_payload_submissao


def _status(submissao_id):
    return query_db("SELECT status FROM trabalhos_submissoes WHERE id = %s", (submissao_id,), one=True)["status"]


def _ativos(submissao_id):
    return [a["id"] for a in listar_avaliadores(submissao_id)]


class TestAtribuirAvaliadores:
    def test_merge_atinge_quorum(self, submissao):
        assert atribuir_avaliadores(submissao, [7], usuario=ADMIN) == 1
        assert _status(submissao) == "submetido"

        assert atribuir_avaliadores(submissao, [9], usuario=ADMIN) == 2
        assert _status(submissao) == "em_avaliacao"

    def test_replace_revoga_os_demais(self, submissao):
        atribuir_avaliadores(submissao, [7, 9], usuario=ADMIN)
        total = atribuir_avaliadores(submissao, [9, 11], modo="replace", usuario=ADMIN)

        assert total == 2
        assert sorted(_ativos(submissao)) == [9, 11]
        revogada = query_db(
            "SELECT revoked_at FROM trabalhos_submissoes_avaliadores WHERE submissao_id = %s AND avaliador_id = 7",
            (submissao,), one=True,
        )
        assert revogada["revoked_at"] is not None

    def test_terceiro_avaliador_excede_limite(self, submissao):
        atribuir_avaliadores(submissao, [7, 9], usuario=ADMIN)
        with pytest.raises(ValidationError, match="exceder 2"):
            atribuir_avaliadores(submissao, [11], usuario=ADMIN)
        assert sorted(_ativos(submissao)) == [7, 9]

    def test_reatribuir_os_mesmos_e_idempotente(self, submissao):
        atribuir_avaliadores(submissao, [7, 9], usuario=ADMIN)
        event_bus.clear_history()

        assert atribuir_avaliadores(submissao, [7, 9], usuario=ADMIN) == 2
        assert _status(submissao) == "em_avaliacao"
        assert event_bus.get_history(event_type=StatusSubmissaoAlterado) == []

    def test_quorum_nao_altera_status_avancado(self, submissao):
        from backend.trabalhos.db import execute_db

        execute_db("UPDATE trabalhos_submissoes SET status = 'aprovado_oral' WHERE id = %s", (submissao,))
        atribuir_avaliadores(submissao, [7, 9], usuario=ADMIN)
        assert _status(submissao) == "aprovado_oral"

    def test_rascunho_com_dois_avaliadores_entra_em_avaliacao_ao_submeter(self, chamada):
        rascunho = {"titulo": "Ideia", "inicio_experiencia": "2024-01", "status": "rascunho"}
        sid = criar_submissao(chamada["id"], rascunho, AUTOR)
        atribuir_avaliadores(sid, [7, 9], usuario=ADMIN)
        assert _status(sid) == "rascunho"

        atualizar_submissao(sid, make_payload_submissao(chamada["linha_id"]), AUTOR)

        assert _status(sid) == "em_avaliacao"
        with pytest.raises(StateConflictError):
            atualizar_submissao(sid, {"titulo": "Outro título"}, AUTOR)

    def test_rascunho_com_um_avaliador_fica_submetido(self, chamada):
        rascunho = {"titulo": "Ideia", "inicio_experiencia": "2024-01", "status": "rascunho"}
        sid = criar_submissao(chamada["id"], rascunho, AUTOR)
        atribuir_avaliadores(sid, [7], usuario=ADMIN)

        atualizar_submissao(sid, make_payload_submissao(chamada["linha_id"]), AUTOR)
        assert _status(sid) == "submetido"

    @pytest.mark.parametrize("ids", [[], [7, 9, 11], [7, 7], "7"])
    def test_lista_invalida(self, submissao, ids):
        with pytest.raises(ValidationError):
            atribuir_avaliadores(submissao, ids, usuario=ADMIN)

    def test_perfil_inelegivel(self, submissao):
        with pytest.raises(ValidationError, match="inválidos para avaliação"):
            atribuir_avaliadores(submissao, [OUTRO_USUARIO_ID], usuario=ADMIN)

    def test_administrador_pode_avaliar(self, submissao):
        assert atribuir_avaliadores(submissao, [ADMIN["id"]], usuario=ADMIN) == 1

    def test_modo_invalido(self, submissao):
        with pytest.raises(ValidationError, match="Modo"):
            atribuir_avaliadores(submissao, [7], modo="append", usuario=ADMIN)

    def test_submissao_inexistente(self, app_context):
        with pytest.raises(NotFoundError):
            atribuir_avaliadores(999, [7], usuario=ADMIN)


class TestRevogarRestaurar:
    def test_revogar_e_restaurar(self, submissao):
        atribuir_avaliadores(submissao, [7], usuario=ADMIN)

        assert revogar_avaliador(submissao, 7) == 0
        assert _ativos(submissao) == []

        assert restaurar_avaliador(submissao, 7, usuario=ADMIN) == 1
        assert _ativos(submissao) == [7]

    def test_revogar_sem_atribuicao(self, submissao):
        with pytest.raises(NotFoundError):
            revogar_avaliador(submissao, 7)

    def test_restaurar_ativa(self, submissao):
        atribuir_avaliadores(submissao, [7], usuario=ADMIN)
        with pytest.raises(StateConflictError):
            restaurar_avaliador(submissao, 7)

    def test_restaurar_respeita_limite(self, submissao):
        atribuir_avaliadores(submissao, [7, 9], usuario=ADMIN)
        atribuir_avaliadores(submissao, [9, 11], modo="replace", usuario=ADMIN)
        with pytest.raises(ValidationError, match="exceder 2"):
            restaurar_avaliador(submissao, 7)

    def test_restaurar_atinge_quorum(self, submissao):
        atribuir_avaliadores(submissao, [7], usuario=ADMIN)
        atribuir_avaliadores(submissao, [9], modo="replace", usuario=ADMIN)
        assert _status(submissao) == "submetido"

        restaurar_avaliador(submissao, 7)
        assert _status(submissao) == "em_avaliacao"


class TestConsultasDoAvaliador:
    def test_lista_e_contagem(self, chamada, submissao):
        atribuir_avaliadores(submissao, [7], usuario=ADMIN)
        avaliador = make_avaliador(7)

        [item] = listar_submissoes_do_avaliador(avaliador)
        assert item["id"] == submissao
        assert item["ja_avaliei"] is False
        assert contagem_minhas_avaliacoes(avaliador) == {"total": 1, "avaliadas": 0, "pendentes": 1}

        registrar_notas_escritas(submissao, avaliador, [{"criterio_id": chamada["criterio_id"], "nota": 4}])
        assert contagem_minhas_avaliacoes(avaliador) == {"total": 1, "avaliadas": 1, "pendentes": 0}

    def test_revogado_nao_ve(self, submissao):
        atribuir_avaliadores(submissao, [7], usuario=ADMIN)
        revogar_avaliador(submissao, 7)
        assert listar_submissoes_do_avaliador(make_avaliador(7)) == []

    def test_resumo(self, chamada, submissao):
        atribuir_avaliadores(submissao, [7, 9], usuario=ADMIN)
        registrar_notas_escritas(submissao, make_avaliador(9), [{"criterio_id": chamada["criterio_id"], "nota": 5}])

        resumo = {r["id"]: r for r in resumo_avaliadores()}
        assert (resumo[7]["pendentes"], resumo[7]["avaliados"]) == (1, 0)
        assert (resumo[9]["pendentes"], resumo[9]["avaliados"]) == (0, 1)
        assert AUTOR_ID not in resumo
