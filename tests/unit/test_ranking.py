"""
Testes unitários para a ordenação e seleção da classificação.
"""

from backend.trabalhos.domain.classificacao.ranking import (
    ordenar_ranking,
    selecionar_exposicao,
    selecionar_oral,
)


def _sub(sid, inicio="2024-01", linha=1):
    return {"id": sid, "inicio_experiencia": inicio, "linha_tematica_id": linha}


class TestOrdenarRanking:
    def test_maior_total_primeiro(self):
        ranking = ordenar_ranking([_sub(1), _sub(2)], {1: 3.0, 2: 4.5})
        assert [s["id"] for s in ranking] == [2, 1]

    def test_empate_experiencia_mais_recente(self):
        candidatos = [_sub(1, "2023-05"), _sub(2, "2024-02")]
        ranking = ordenar_ranking(candidatos, {1: 4.0, 2: 4.0})
        assert [s["id"] for s in ranking] == [2, 1]

    def test_empate_total_e_data_menor_id(self):
        candidatos = [_sub(8, "2024-02"), _sub(3, "2024-02")]
        ranking = ordenar_ranking(candidatos, {3: 4.0, 8: 4.0})
        assert [s["id"] for s in ranking] == [3, 8]

    def test_mes_pesa_dentro_do_ano(self):
        candidatos = [_sub(1, "2024-02"), _sub(2, "2024-11")]
        ranking = ordenar_ranking(candidatos, {1: 2.0, 2: 2.0})
        assert [s["id"] for s in ranking] == [2, 1]


class TestSelecao:
    def test_exposicao_limite(self):
        ranking = [_sub(i) for i in range(1, 51)]
        assert selecionar_exposicao(ranking) == list(range(1, 41))

    def test_exposicao_menos_candidatos_que_o_limite(self):
        assert selecionar_exposicao([_sub(1), _sub(2)]) == [1, 2]

    def test_oral_por_linha(self):
        ranking = [_sub(i, linha=1) for i in range(1, 9)] + [_sub(i, linha=2) for i in range(9, 12)]
        selecionados = selecionar_oral(ranking)
        assert selecionados == [1, 2, 3, 4, 5, 6, 9, 10, 11]

    def test_oral_ignora_sem_linha(self):
        assert selecionar_oral([_sub(1, linha=None), _sub(2)]) == [2]

    def test_oral_limite_customizado(self):
        assert selecionar_oral([_sub(1), _sub(2)], limite=1) == [1]
