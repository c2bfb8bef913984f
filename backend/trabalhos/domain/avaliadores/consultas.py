"""
Consultas de atribuição: por submissão, por avaliador e resumo geral.
"""
from ...common.exceptions import NotFoundError
from ...common.utils import format_datetime_iso
from ...constants import STATUS_RASCUNHO
from ...db import query_db


def listar_avaliadores(submissao_id):
    """Avaliadores ativos (não revogados) da submissão."""
    if not query_db("SELECT id FROM trabalhos_submissoes WHERE id = %s", (submissao_id,), one=True):
        raise NotFoundError("Submissão não encontrada.")
    rows = query_db(
        """
        SELECT u.id, u.nome, u.email, a.atribuido_por, a.criado_em
        FROM trabalhos_submissoes_avaliadores a
        JOIN usuarios u ON u.id = a.avaliador_id
        WHERE a.submissao_id = %s AND a.revoked_at IS NULL
        ORDER BY u.nome ASC
        """,
        (submissao_id,)
    )
    for r in rows:
        r['criado_em'] = format_datetime_iso(r['criado_em'])
    return rows


def resumo_avaliadores():
    """Por avaliador: atribuições ativas pendentes (sem nota) e avaliadas."""
    rows = query_db(
        """
        SELECT u.id, COALESCE(u.nome, '') AS nome, COALESCE(u.email, '') AS email,
               SUM(CASE WHEN av.submissao_id IS NULL THEN 1 ELSE 0 END) AS pendentes,
               SUM(CASE WHEN av.submissao_id IS NOT NULL THEN 1 ELSE 0 END) AS avaliados
        FROM trabalhos_submissoes_avaliadores a
        JOIN usuarios u ON u.id = a.avaliador_id
        LEFT JOIN (
            SELECT DISTINCT avaliador_id, submissao_id FROM trabalhos_avaliacoes_itens
        ) av ON av.avaliador_id = a.avaliador_id AND av.submissao_id = a.submissao_id
        WHERE a.revoked_at IS NULL
        GROUP BY u.id, u.nome, u.email
        ORDER BY pendentes DESC, nome ASC
        """
    )
    return [
        {
            'id': r['id'],
            'nome': r['nome'],
            'email': r['email'],
            'pendentes': int(r['pendentes'] or 0),
            'avaliados': int(r['avaliados'] or 0),
            'total': int(r['pendentes'] or 0) + int(r['avaliados'] or 0),
        }
        for r in rows
    ]


def listar_submissoes_do_avaliador(usuario):
    """Submissões com atribuição ativa para o usuário, com a indicação se já avaliou."""
    rows = query_db(
        """
        SELECT s.id, s.titulo, s.status, s.chamada_id, s.inicio_experiencia,
               c.titulo AS chamada_titulo, l.nome AS linha_tematica_nome,
               (SELECT COUNT(*) FROM trabalhos_avaliacoes_itens i
                 WHERE i.submissao_id = s.id AND i.avaliador_id = a.avaliador_id) AS itens_escritos,
               (SELECT COUNT(*) FROM trabalhos_avaliacoes_orais_itens o
                 WHERE o.submissao_id = s.id AND o.avaliador_id = a.avaliador_id) AS itens_orais
        FROM trabalhos_submissoes_avaliadores a
        JOIN trabalhos_submissoes s ON s.id = a.submissao_id
        JOIN trabalhos_chamadas c ON c.id = s.chamada_id
        LEFT JOIN trabalhos_chamada_linhas l ON l.id = s.linha_tematica_id
        WHERE a.avaliador_id = %s AND a.revoked_at IS NULL
        ORDER BY s.id DESC
        """,
        (usuario['id'],)
    )
    for r in rows:
        r['ja_avaliei'] = int(r['itens_escritos'] or 0) > 0
    return rows


def contagem_minhas_avaliacoes(usuario):
    submissoes = listar_submissoes_do_avaliador(usuario)
    ativas = [s for s in submissoes if s['status'] != STATUS_RASCUNHO]
    avaliadas = sum(1 for s in ativas if s['ja_avaliei'])
    return {'total': len(ativas), 'avaliadas': avaliadas, 'pendentes': len(ativas) - avaliadas}
