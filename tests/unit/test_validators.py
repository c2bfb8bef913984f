"""
Testes unitários para a validação de entradas.

Testa:
- Sanitização de strings e inteiros (common/validation.py)
- Ano-mês e prazo final
- Campos da submissão contra os limites da chamada
- Coautores
"""

from datetime import timezone

import pytest

from backend.trabalhos.common.exceptions import ValidationError
from backend.trabalhos.common.validation import (
    sanitize_string,
    validate_ano_mes,
    validate_boolean,
    validate_integer,
    validate_prazo,
)
from backend.trabalhos.domain.chamadas.validacao import (
    mesclar_limites,
    normalizar_criterios,
    validar_dados_chamada,
    validar_limites,
)
from backend.trabalhos.domain.submissoes.validacao import (
    normalizar_coautores,
    normalizar_status_entrada,
    validar_campos_submissao,
)
from tests.fixtures import make_payload_chamada, make_payload_submissao

CHAMADA = {
    "limites": {"titulo": 100},
    "periodo_experiencia_inicio": "2023-01",
    "periodo_experiencia_fim": "2025-06",
}


class TestSanitizeString:
    def test_strips_whitespace(self):
        assert sanitize_string("  texto  ") == "texto"

    def test_removes_control_chars(self):
        assert sanitize_string("abc\x00def") == "abcdef"

    def test_empty_is_required(self):
        with pytest.raises(ValidationError, match="obrigatório"):
            sanitize_string("   ", campo="Título")

    def test_max_length(self):
        with pytest.raises(ValidationError, match="excede"):
            sanitize_string("a" * 11, max_length=10)

    def test_non_string(self):
        with pytest.raises(ValidationError):
            sanitize_string(123)


class TestValidateInteger:
    def test_valid_string_integer(self):
        assert validate_integer("42") == 42

    def test_bool_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_integer(True)

    def test_fractional_float_is_rejected(self):
        with pytest.raises(ValidationError):
            validate_integer(4.5)

    def test_bounds(self):
        with pytest.raises(ValidationError, match="no máximo 5"):
            validate_integer(6, min_value=1, max_value=5)

    def test_allow_none(self):
        assert validate_integer(None, allow_none=True) is None


class TestDatas:
    def test_ano_mes_valido(self):
        assert validate_ano_mes("2024-03") == "2024-03"

    @pytest.mark.parametrize("valor", ["2024-13", "2024-3", "03/2024", None])
    def test_ano_mes_invalido(self, valor):
        with pytest.raises(ValidationError, match="AAAA-MM"):
            validate_ano_mes(valor)

    def test_prazo_sem_timezone_usa_fuso_local(self):
        prazo = validate_prazo("2025-10-10T23:59:00", "America/Sao_Paulo")
        assert prazo.tzinfo == timezone.utc
        assert (prazo.day, prazo.hour, prazo.minute) == (11, 2, 59)

    def test_prazo_com_z(self):
        prazo = validate_prazo("2025-10-10T12:00:00Z")
        assert prazo.hour == 12

    def test_prazo_obrigatorio(self):
        with pytest.raises(ValidationError, match="obrigatório"):
            validate_prazo("")

    def test_boolean_textual(self):
        assert validate_boolean("sim") is True
        assert validate_boolean("false") is False
        assert validate_boolean(None, default=True) is True


class TestValidacaoChamada:
    def test_limites_desconhecidos(self):
        with pytest.raises(ValidationError, match="desconhecido"):
            validar_limites({"resumo": 100})

    def test_limite_fora_da_faixa(self):
        with pytest.raises(ValidationError):
            validar_limites({"titulo": 0})

    def test_mesclar_limites_aplica_padrao(self):
        limites = mesclar_limites('{"titulo": 80}')
        assert limites["titulo"] == 80
        assert limites["introducao"] == 2000

    def test_criterio_escala_invertida(self):
        with pytest.raises(ValidationError, match="escala mínima"):
            normalizar_criterios([{"titulo": "X", "escala_min": 5, "escala_max": 1}])

    def test_criterio_peso_zero(self):
        with pytest.raises(ValidationError, match="peso"):
            normalizar_criterios([{"titulo": "X", "peso": 0}])

    def test_criterio_escala_padrao(self):
        [criterio] = normalizar_criterios([{"titulo": "Relevância"}])
        assert (criterio["escala_min"], criterio["escala_max"], criterio["peso"]) == (1, 5, 1.0)

    def test_janela_de_experiencia_invertida(self):
        payload = make_payload_chamada(periodo_experiencia_inicio="2025-07")
        with pytest.raises(ValidationError, match="anterior ou igual"):
            validar_dados_chamada(payload)

    def test_atualizacao_parcial_confere_valor_gravado(self):
        atual = {"periodo_experiencia_inicio": "2023-01", "periodo_experiencia_fim": "2025-06"}
        with pytest.raises(ValidationError):
            validar_dados_chamada({"periodo_experiencia_fim": "2022-12"}, atual=atual)


class TestValidacaoSubmissao:
    """Regras de preenchimento: rascunho é permissivo, submissão é completa."""

    def test_status_entrada(self):
        assert normalizar_status_entrada("RASCUNHO") == "rascunho"
        assert normalizar_status_entrada("qualquer") == "submetido"
        assert normalizar_status_entrada(None) == "submetido"

    def test_titulo_no_limite(self):
        dados = make_payload_submissao(1, titulo="a" * 100)
        campos = validar_campos_submissao(dados, CHAMADA, "submetido")
        assert len(campos["titulo"]) == 100

    def test_titulo_acima_do_limite(self):
        dados = make_payload_submissao(1, titulo="a" * 101)
        with pytest.raises(ValidationError, match="até 100"):
            validar_campos_submissao(dados, CHAMADA, "submetido")

    def test_rascunho_aceita_textos_vazios(self):
        dados = {"titulo": "Só o título", "inicio_experiencia": "2010-01"}
        campos = validar_campos_submissao(dados, CHAMADA, "rascunho")
        assert campos["introducao"] is None

    def test_submissao_exige_textos(self):
        dados = make_payload_submissao(1, objetivos="  ")
        with pytest.raises(ValidationError, match="Objetivos"):
            validar_campos_submissao(dados, CHAMADA, "submetido")

    def test_inicio_fora_da_janela(self):
        dados = make_payload_submissao(1, inicio_experiencia="2022-12")
        with pytest.raises(ValidationError, match="período permitido"):
            validar_campos_submissao(dados, CHAMADA, "submetido")

    def test_janela_inclusiva(self):
        dados = make_payload_submissao(1, inicio_experiencia="2025-06")
        assert validar_campos_submissao(dados, CHAMADA, "submetido")["inicio_experiencia"] == "2025-06"

    def test_submissao_exige_linha(self):
        dados = make_payload_submissao(None)
        with pytest.raises(ValidationError, match="Linha temática"):
            validar_campos_submissao(dados, CHAMADA, "submetido")


class TestCoautores:
    def test_limite_de_coautores(self):
        with pytest.raises(ValidationError, match="Máximo de 1"):
            normalizar_coautores([{"nome": "A"}, {"nome": "B"}], 1)

    def test_nome_obrigatorio(self):
        with pytest.raises(ValidationError):
            normalizar_coautores([{"email": "x@test.com"}], 5)

    def test_campos_opcionais(self):
        [coautor] = normalizar_coautores([{"nome": " Ana ", "email": "ana@test.com"}], 5)
        assert coautor["nome"] == "Ana"
        assert coautor["email"] == "ana@test.com"
        assert coautor["cpf"] is None

    def test_none_vira_lista_vazia(self):
        assert normalizar_coautores(None, 5) == []
