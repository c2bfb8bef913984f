"""
Atribuição de avaliadores a uma submissão.

No máximo 2 avaliadores ativos por submissão. Atribuições revogadas ficam
gravadas (revoked_at preenchido) e podem ser reativadas. Ao atingir 2
ativos a submissão passa de 'submetido' para 'em_avaliacao' na mesma
transação que grava as atribuições.
"""
from ...common.exceptions import NotFoundError, StateConflictError, ValidationError
from ...common.validation import validate_integer
from ...config.logging_config import avaliacao_logger
from ...constants import MAX_AVALIADORES, PERFIS_AVALIADORES, STATUS_EM_AVALIACAO, STATUS_SUBMETIDO
from ...core.events import StatusSubmissaoAlterado, event_bus
from ...db import db_transacao
from ...security.acesso import normalizar_perfis
from ..chamadas import carregar_chamada
from ..submissoes import carregar_submissao

MODO_MERGE = 'merge'
MODO_REPLACE = 'replace'
MODOS = (MODO_MERGE, MODO_REPLACE)


def normalizar_ids_avaliadores(avaliadores):
    if not isinstance(avaliadores, list) or not 1 <= len(avaliadores) <= MAX_AVALIADORES:
        raise ValidationError(f"Envie de 1 a {MAX_AVALIADORES} avaliadores.")
    ids = [validate_integer(a, min_value=1, campo='Avaliador') for a in avaliadores]
    if len(set(ids)) != len(ids):
        raise ValidationError("Avaliadores devem ser distintos.")
    return ids


def _ativos(tx, submissao_id):
    rows = tx.query(
        """
        SELECT avaliador_id FROM trabalhos_submissoes_avaliadores
        WHERE submissao_id = %s AND revoked_at IS NULL
        ORDER BY avaliador_id
        """,
        (submissao_id,)
    )
    return [r['avaliador_id'] for r in rows]


def _exigir_elegiveis(tx, ids):
    marcadores = ', '.join(['%s'] * len(ids))
    rows = tx.query(f"SELECT id, perfil FROM usuarios WHERE id IN ({marcadores})", tuple(ids))
    elegiveis = {r['id'] for r in rows if normalizar_perfis(r['perfil']) & PERFIS_AVALIADORES}
    if elegiveis != set(ids):
        avaliacao_logger.warning(f"Avaliadores inelegíveis: {sorted(set(ids) - elegiveis)}")
        raise ValidationError("Usuários inválidos para avaliação.")


def _ativar(tx, submissao_id, avaliador_id, atribuido_por):
    """Insere a atribuição ou reativa uma revogada."""
    tx.execute(
        """
        INSERT INTO trabalhos_submissoes_avaliadores (submissao_id, avaliador_id, atribuido_por)
        VALUES (%s, %s, %s)
        ON CONFLICT (submissao_id, avaliador_id)
        DO UPDATE SET revoked_at = NULL, atribuido_por = excluded.atribuido_por
        """,
        (submissao_id, avaliador_id, atribuido_por)
    )


def _aplicar_quorum(tx, sub, total):
    """Passa para em_avaliacao ao atingir o quórum. Retorna True se o status mudou."""
    if total != MAX_AVALIADORES or sub['status'] != STATUS_SUBMETIDO:
        return False
    tx.execute(
        """
        UPDATE trabalhos_submissoes SET status = %s, atualizado_em = CURRENT_TIMESTAMP
        WHERE id = %s AND status = %s
        """,
        (STATUS_EM_AVALIACAO, sub['id'], STATUS_SUBMETIDO)
    )
    return True


def _emitir_em_avaliacao(tx, sub):
    chamada = carregar_chamada(tx, sub['chamada_id'])
    return StatusSubmissaoAlterado(
        submissao_id=sub['id'],
        usuario_id=sub['usuario_id'],
        chamada_titulo=chamada['titulo'],
        trabalho_titulo=sub['titulo'],
        status=STATUS_EM_AVALIACAO,
    )


def atribuir_avaliadores(submissao_id, avaliadores, modo=MODO_MERGE, usuario=None):
    """
    Atribui 1 ou 2 avaliadores.

    merge: une os informados aos ativos. replace: revoga os ativos que não
    estão na lista e ativa os informados. Apenas os novos avaliadores têm o
    perfil conferido. Retorna o total de avaliadores ativos.
    """
    if modo not in MODOS:
        raise ValidationError("Modo de atribuição inválido (use 'merge' ou 'replace').")
    ids = normalizar_ids_avaliadores(avaliadores)
    atribuido_por = (usuario or {}).get('id')
    evento = None

    with db_transacao() as tx:
        sub = carregar_submissao(tx, submissao_id, lock=True)
        ativos = _ativos(tx, submissao_id)

        if modo == MODO_MERGE:
            destino = list(dict.fromkeys(ativos + ids))
        else:
            destino = ids
        if len(destino) > MAX_AVALIADORES:
            raise ValidationError(f"O total de avaliadores não pode exceder {MAX_AVALIADORES}.")

        novos = [a for a in destino if a not in ativos]
        if novos:
            _exigir_elegiveis(tx, novos)

        if modo == MODO_REPLACE:
            for avaliador_id in ativos:
                if avaliador_id not in destino:
                    tx.execute(
                        """
                        UPDATE trabalhos_submissoes_avaliadores SET revoked_at = CURRENT_TIMESTAMP
                        WHERE submissao_id = %s AND avaliador_id = %s AND revoked_at IS NULL
                        """,
                        (submissao_id, avaliador_id)
                    )
        for avaliador_id in novos:
            _ativar(tx, submissao_id, avaliador_id, atribuido_por)

        total = len(_ativos(tx, submissao_id))
        if _aplicar_quorum(tx, sub, total):
            evento = _emitir_em_avaliacao(tx, sub)

    avaliacao_logger.info(
        f"Submissão {submissao_id}: avaliadores {modo} {ids} por usuário {atribuido_por} → {total} ativo(s)"
    )
    if evento:
        event_bus.emit(evento)
    return total


def revogar_avaliador(submissao_id, avaliador_id):
    with db_transacao() as tx:
        carregar_submissao(tx, submissao_id, lock=True)
        afetadas = tx.execute(
            """
            UPDATE trabalhos_submissoes_avaliadores SET revoked_at = CURRENT_TIMESTAMP
            WHERE submissao_id = %s AND avaliador_id = %s AND revoked_at IS NULL
            """,
            (submissao_id, avaliador_id)
        )
        if not afetadas:
            raise NotFoundError("Atribuição ativa não encontrada.")
        total = len(_ativos(tx, submissao_id))

    avaliacao_logger.info(f"Avaliador {avaliador_id} revogado da submissão {submissao_id}")
    return total


def restaurar_avaliador(submissao_id, avaliador_id, usuario=None):
    """Reativa uma atribuição revogada, respeitando o limite de avaliadores."""
    evento = None
    with db_transacao() as tx:
        sub = carregar_submissao(tx, submissao_id, lock=True)
        row = tx.query(
            """
            SELECT revoked_at FROM trabalhos_submissoes_avaliadores
            WHERE submissao_id = %s AND avaliador_id = %s
            """,
            (submissao_id, avaliador_id), one=True
        )
        if not row:
            raise NotFoundError("Atribuição não encontrada.")
        if row['revoked_at'] is None:
            raise StateConflictError("Atribuição já está ativa.")
        if len(_ativos(tx, submissao_id)) >= MAX_AVALIADORES:
            raise ValidationError(f"O total de avaliadores não pode exceder {MAX_AVALIADORES}.")

        _ativar(tx, submissao_id, avaliador_id, (usuario or {}).get('id'))
        total = len(_ativos(tx, submissao_id))
        if _aplicar_quorum(tx, sub, total):
            evento = _emitir_em_avaliacao(tx, sub)

    avaliacao_logger.info(f"Avaliador {avaliador_id} restaurado na submissão {submissao_id}")
    if evento:
        event_bus.emit(evento)
    return total
