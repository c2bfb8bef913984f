"""
Cálculo das notas de uma submissão.

Duas medidas convivem:

- total por critério (canônico, usado na classificação): a soma das notas
  brutas de cada avaliador dividida pelo número de critérios escritos,
  média entre os avaliadores que já pontuaram;
- nota normalizada 0-10: cada nota reescalada para [0, 1] por
  (nota - min) / (max - min), ponderada pelo peso do critério, por
  avaliador, e depois a média entre avaliadores. Útil quando as escalas
  dos critérios diferem.
"""
from collections import OrderedDict


def clamp01(x):
    return max(0.0, min(1.0, x))


def agrupar_por_avaliador(itens):
    """[{avaliador_id, criterio_id, nota, ...}] -> {avaliador_id: [itens]} mantendo a ordem."""
    grupos = OrderedDict()
    for item in itens:
        grupos.setdefault(item['avaliador_id'], []).append(item)
    return grupos


def total_por_criterio(subtotais, qtd_criterios):
    """
    Σ subtotais / (critérios × avaliadores).

    >>> total_por_criterio([5, 4], 1)
    4.5
    """
    subtotais = list(subtotais)
    if not subtotais or not qtd_criterios:
        return 0.0
    return sum(subtotais) / (qtd_criterios * len(subtotais))


def nota10_normalizada(itens, criterios):
    """Nota 0-10 de um avaliador; None se nenhum item casar com um critério válido."""
    por_id = {c['id']: c for c in criterios}
    num = den = 0.0
    for item in itens:
        crit = por_id.get(item['criterio_id'])
        if crit is None:
            continue
        minimo = float(crit['escala_min'])
        maximo = float(crit['escala_max'])
        if maximo <= minimo:
            continue
        peso = float(crit['peso']) if crit.get('peso') is not None else 1.0
        num += peso * clamp01((float(item['nota']) - minimo) / (maximo - minimo))
        den += peso
    if den == 0:
        return None
    return round(10 * num / den, 1)


def media_normalizada(itens, criterios):
    """Média das notas 0-10 por avaliador, com uma casa decimal."""
    notas = []
    for itens_avaliador in agrupar_por_avaliador(itens).values():
        nota = nota10_normalizada(itens_avaliador, criterios)
        if nota is not None:
            notas.append(nota)
    if not notas:
        return None
    return round(sum(notas) / len(notas), 1)


def nota_final(nota_escrita, nota_oral):
    """Média simples das notas disponíveis (escrita e oral com o mesmo peso)."""
    notas = [n for n in (nota_escrita, nota_oral) if n is not None]
    if not notas:
        return None
    return round(sum(notas) / len(notas), 1)
