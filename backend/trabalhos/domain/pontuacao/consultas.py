"""
Consultas de notas: detalhamento por avaliador, totais e visibilidade.
"""
from ...common.exceptions import NotFoundError
from ...common.utils import format_datetime_iso
from ...config.logging_config import avaliacao_logger
from ...db import execute_db, query_db
from .calculo import agrupar_por_avaliador, media_normalizada, nota10_normalizada, nota_final, total_por_criterio


def _meta_submissao(submissao_id):
    meta = query_db(
        """
        SELECT s.id, s.chamada_id, s.nota_visivel, l.nome AS linha_tematica_nome
        FROM trabalhos_submissoes s
        LEFT JOIN trabalhos_chamada_linhas l ON l.id = s.linha_tematica_id
        WHERE s.id = %s
        """,
        (submissao_id,), one=True
    )
    if not meta:
        raise NotFoundError("Submissão não encontrada.")
    return meta


def _criterios(tabela, chamada_id):
    return query_db(
        f"SELECT id, ordem, titulo, escala_min, escala_max, peso FROM {tabela} WHERE chamada_id = %s ORDER BY ordem, id",
        (chamada_id,)
    )


def _itens(tabela, submissao_id):
    return query_db(
        f"""
        SELECT i.avaliador_id, u.nome AS avaliador_nome, i.criterio_id, i.nota, i.comentarios, i.criado_em
        FROM {tabela} i
        LEFT JOIN usuarios u ON u.id = i.avaliador_id
        WHERE i.submissao_id = %s
        ORDER BY i.avaliador_id, i.criterio_id
        """,
        (submissao_id,)
    )


def _por_avaliador(itens):
    resultado = []
    for avaliador_id, itens_avaliador in agrupar_por_avaliador(itens).items():
        resultado.append({
            'avaliador_id': avaliador_id,
            'avaliador_nome': itens_avaliador[0]['avaliador_nome'],
            'itens': [
                {
                    'criterio_id': i['criterio_id'],
                    'nota': i['nota'],
                    'comentarios': i['comentarios'],
                    'criado_em': format_datetime_iso(i['criado_em']),
                }
                for i in itens_avaliador
            ],
            'subtotal': sum(i['nota'] for i in itens_avaliador),
        })
    return resultado


def agregar_notas(submissao_id):
    """
    Detalhamento das avaliações de uma submissão.

    `total` é o total canônico usado na classificação: Σ subtotais dividido
    por (critérios escritos × avaliadores que pontuaram).
    """
    meta = _meta_submissao(submissao_id)
    criterios = _criterios('trabalhos_chamada_criterios', meta['chamada_id'])
    escritas = _por_avaliador(_itens('trabalhos_avaliacoes_itens', submissao_id))
    orais = _por_avaliador(_itens('trabalhos_avaliacoes_orais_itens', submissao_id))

    subtotais = [a['subtotal'] for a in escritas]
    return {
        'submissao_id': submissao_id,
        'chamada_id': meta['chamada_id'],
        'linha_tematica_nome': meta['linha_tematica_nome'],
        'nota_visivel': bool(meta['nota_visivel']),
        'criterios': criterios,
        'criterios_orais': _criterios('trabalhos_chamada_criterios_orais', meta['chamada_id']),
        'avaliacoes': escritas,
        'avaliacoes_orais': orais,
        'qtd_avaliadores': len(escritas),
        'total_geral': sum(subtotais),
        'total': round(total_por_criterio(subtotais, len(criterios)), 2),
    }


def nota_normalizada(submissao_id):
    """Notas 0-10 normalizadas (escrita, oral e final), calculadas na hora."""
    meta = _meta_submissao(submissao_id)
    resultado = {'submissao_id': submissao_id, 'por_avaliador': {}}
    for tipo, tabela_criterios, tabela_itens in (
        ('escrita', 'trabalhos_chamada_criterios', 'trabalhos_avaliacoes_itens'),
        ('oral', 'trabalhos_chamada_criterios_orais', 'trabalhos_avaliacoes_orais_itens'),
    ):
        criterios = _criterios(tabela_criterios, meta['chamada_id'])
        itens = _itens(tabela_itens, submissao_id)
        resultado[f'nota_{tipo}'] = media_normalizada(itens, criterios)
        resultado['por_avaliador'][tipo] = [
            {'avaliador_id': avaliador_id, 'nota': nota10_normalizada(grupo, criterios)}
            for avaliador_id, grupo in agrupar_por_avaliador(itens).items()
        ]
    resultado['nota_final'] = nota_final(resultado['nota_escrita'], resultado['nota_oral'])
    return resultado


def totais_da_chamada(tx, chamada_id):
    """
    {submissao_id: total} das submissões da chamada com ao menos uma nota
    escrita, calculado com o mesmo critério de `agregar_notas`.
    """
    qtd = tx.query(
        "SELECT COUNT(*) AS n FROM trabalhos_chamada_criterios WHERE chamada_id = %s", (chamada_id,), one=True
    )['n']
    rows = tx.query(
        """
        SELECT i.submissao_id, i.avaliador_id, SUM(i.nota) AS subtotal
        FROM trabalhos_avaliacoes_itens i
        JOIN trabalhos_submissoes s ON s.id = i.submissao_id
        WHERE s.chamada_id = %s
        GROUP BY i.submissao_id, i.avaliador_id
        """,
        (chamada_id,)
    )
    subtotais = {}
    for r in rows:
        subtotais.setdefault(r['submissao_id'], []).append(int(r['subtotal']))
    return {sid: total_por_criterio(valores, qtd) for sid, valores in subtotais.items()}


def definir_nota_visivel(submissao_id, visivel):
    afetadas = execute_db(
        "UPDATE trabalhos_submissoes SET nota_visivel = %s WHERE id = %s", (bool(visivel), submissao_id)
    )
    if not afetadas:
        raise NotFoundError("Submissão não encontrada.")
    avaliacao_logger.info(f"Nota da submissão {submissao_id} {'visível' if visivel else 'oculta'} para o autor")
    return bool(visivel)
