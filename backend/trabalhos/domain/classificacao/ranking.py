"""
Ordenação e seleção dos trabalhos classificados.
"""
from ...constants import TOP_EXPOSICAO, TOP_ORAL_POR_LINHA


def _ano_mes(valor):
    ano, mes = str(valor or '0000-00').split('-')[:2]
    return int(ano) * 100 + int(mes)


def ordenar_ranking(candidatos, totais):
    """
    Maior total primeiro; empate: experiência mais recente, depois menor id.

    `candidatos` são dicts com id e inicio_experiencia; `totais` mapeia id -> total.
    """
    return sorted(
        candidatos,
        key=lambda s: (-totais[s['id']], -_ano_mes(s['inicio_experiencia']), s['id'])
    )


def selecionar_exposicao(ranking, limite=TOP_EXPOSICAO):
    return [s['id'] for s in ranking[:limite]]


def selecionar_oral(ranking, limite=TOP_ORAL_POR_LINHA):
    """Os `limite` primeiros de cada linha temática, na ordem do ranking geral."""
    por_linha = {}
    selecionados = []
    for s in ranking:
        linha = s.get('linha_tematica_id')
        if linha is None:
            continue
        if por_linha.get(linha, 0) < limite:
            por_linha[linha] = por_linha.get(linha, 0) + 1
            selecionados.append(s['id'])
    return selecionados
