"""
Testes de integração do registro de chamadas (SQLite temporário).
"""

import pytest

from backend.trabalhos.common.exceptions import NotFoundError, StateConflictError, ValidationError
from backend.trabalhos.db import query_db
from backend.trabalhos.domain.chamadas import (
    atualizar_chamada,
    criar_chamada,
    listar_chamadas_ativas,
    listar_chamadas_admin,
    obter_chamada,
    publicar_chamada,
    remover_chamada,
)
from tests.fixtures import ADMIN_ID, make_payload_chamada


class TestCriarChamada:
    def test_cria_com_linhas_e_criterios(self, app_context):
        chamada_id = criar_chamada(make_payload_chamada(), ADMIN_ID)
        chamada = obter_chamada(chamada_id)

        assert chamada["titulo"] == "Mostra de Experiências 2025"
        assert chamada["publicado"] is False
        assert chamada["dentro_prazo"] is True
        assert [l["nome"] for l in chamada["linhas"]] == ["Atenção Primária"]
        assert chamada["criterios"][0]["escala_max"] == 5
        assert chamada["criterios_orais"][0]["escala_max"] == 3

    def test_limites_mesclados_com_padrao(self, app_context):
        chamada_id = criar_chamada(make_payload_chamada(limites={"titulo": 80}), ADMIN_ID)
        limites = obter_chamada(chamada_id)["limites"]
        assert limites["titulo"] == 80
        assert limites["objetivos"] == 1000

    def test_prazo_gravado_em_utc(self, app_context):
        chamada_id = criar_chamada(make_payload_chamada(prazo_final_br="2030-10-10T23:59:00"), ADMIN_ID)
        assert obter_chamada(chamada_id)["prazo_final_br"] == "2030-10-11T02:59:00+00:00"

    def test_dados_invalidos_nao_gravam(self, app_context):
        with pytest.raises(ValidationError):
            criar_chamada(make_payload_chamada(periodo_experiencia_inicio="2024/01"), ADMIN_ID)
        assert query_db("SELECT COUNT(*) AS n FROM trabalhos_chamadas", one=True)["n"] == 0


class TestPublicarChamada:
    def test_publicar_exige_linha(self, app_context):
        chamada_id = criar_chamada(make_payload_chamada(linhas=[]), ADMIN_ID)
        with pytest.raises(ValidationError, match="linha temática"):
            publicar_chamada(chamada_id)

    def test_publicar_exige_criterio(self, app_context):
        chamada_id = criar_chamada(make_payload_chamada(criterios=[]), ADMIN_ID)
        with pytest.raises(ValidationError, match="critério"):
            publicar_chamada(chamada_id)

    def test_publicar_e_despublicar(self, app_context):
        chamada_id = criar_chamada(make_payload_chamada(), ADMIN_ID)
        assert listar_chamadas_ativas() == []

        publicar_chamada(chamada_id)
        assert [c["id"] for c in listar_chamadas_ativas()] == [chamada_id]

        publicar_chamada(chamada_id, False)
        assert listar_chamadas_ativas() == []
        with pytest.raises(NotFoundError):
            obter_chamada(chamada_id, somente_publicada=True)

    def test_inexistente(self, app_context):
        with pytest.raises(NotFoundError):
            publicar_chamada(999)


class TestAtualizarRemover:
    def test_atualizacao_parcial(self, chamada):
        atualizar_chamada(chamada["id"], {"titulo": "Novo título"})
        atualizada = obter_chamada(chamada["id"])
        assert atualizada["titulo"] == "Novo título"
        assert atualizada["periodo_experiencia_fim"] == "2025-06"

    def test_publicada_nao_pode_ficar_sem_criterios(self, chamada):
        with pytest.raises(ValidationError):
            atualizar_chamada(chamada["id"], {"criterios": []})
        assert len(obter_chamada(chamada["id"])["criterios"]) == 1

    def test_linhas_bloqueadas_com_submissoes(self, chamada, submissao):
        with pytest.raises(StateConflictError):
            atualizar_chamada(chamada["id"], {"linhas": [{"nome": "Outra"}]})

    def test_remover_com_submissoes(self, chamada, submissao):
        with pytest.raises(StateConflictError):
            remover_chamada(chamada["id"])

    def test_remover(self, chamada):
        remover_chamada(chamada["id"])
        assert listar_chamadas_admin() == []
        assert query_db("SELECT COUNT(*) AS n FROM trabalhos_chamada_criterios", one=True)["n"] == 0
