"""
Consolidação da classificação de uma chamada e definição manual do status final.
"""
from ...common.exceptions import ValidationError
from ...common.validation import optional_string
from ...config.logging_config import avaliacao_logger
from ...constants import (
    STATUS_APROVADO_EXPOSICAO,
    STATUS_APROVADO_ORAL,
    STATUS_EM_AVALIACAO,
    STATUS_FINAIS,
    STATUS_REPROVADO,
    STATUS_SUBMETIDO,
)
from ...core.events import ClassificacaoConsolidada, StatusSubmissaoAlterado, event_bus
from ...db import db_transacao
from ..chamadas import carregar_chamada
from ..pontuacao import totais_da_chamada
from ..submissoes import carregar_submissao
from .ranking import ordenar_ranking, selecionar_exposicao, selecionar_oral

# Reprovados por decisão do administrador não voltam ao ranking
STATUS_CLASSIFICAVEIS = (STATUS_SUBMETIDO, STATUS_EM_AVALIACAO, STATUS_APROVADO_EXPOSICAO, STATUS_APROVADO_ORAL)

APROVADO = 'aprovado'


def _atualizar_em_lote(tx, ids, sets, args):
    if not ids:
        return
    marcadores = ', '.join(['%s'] * len(ids))
    tx.execute(
        f"UPDATE trabalhos_submissoes SET {sets}, atualizado_em = CURRENT_TIMESTAMP WHERE id IN ({marcadores})",
        tuple(args) + tuple(ids)
    )


def consolidar_classificacao(chamada_id):
    """
    Classifica as submissões pontuadas da chamada.

    Os 40 primeiros do ranking geral recebem 'aprovado_exposicao'; os 6
    primeiros de cada linha temática recebem 'aprovado_oral' (prevalece sobre
    a exposição). Numa nova consolidação, quem deixou de ser selecionado
    perde a marcação (e volta a 'em_avaliacao' se não restar nenhuma); os
    demais mantêm o status. Tudo em uma transação.
    """
    with db_transacao() as tx:
        carregar_chamada(tx, chamada_id, lock=True)
        totais = totais_da_chamada(tx, chamada_id)
        marcadores = ', '.join(['%s'] * len(STATUS_CLASSIFICAVEIS))
        candidatos = [
            s for s in tx.query(
                f"""
                SELECT id, inicio_experiencia, linha_tematica_id, status
                FROM trabalhos_submissoes
                WHERE chamada_id = %s AND status IN ({marcadores})
                """,
                (chamada_id,) + STATUS_CLASSIFICAVEIS
            )
            if s['id'] in totais
        ]

        ranking = ordenar_ranking(candidatos, totais)
        exposicao = selecionar_exposicao(ranking)
        oral = selecionar_oral(ranking)

        # Reconsolidação: quem saiu de uma seleção perde a marcação correspondente
        ranqueados = [s['id'] for s in ranking]
        _atualizar_em_lote(tx, [i for i in ranqueados if i not in exposicao], "status_escrita = NULL", ())
        _atualizar_em_lote(tx, [i for i in ranqueados if i not in oral], "status_oral = NULL", ())
        rebaixados = [
            s['id'] for s in ranking
            if s['status'] in (STATUS_APROVADO_EXPOSICAO, STATUS_APROVADO_ORAL)
            and s['id'] not in exposicao and s['id'] not in oral
        ]
        _atualizar_em_lote(tx, rebaixados, "status = %s", (STATUS_EM_AVALIACAO,))

        _atualizar_em_lote(tx, exposicao, "status = %s, status_escrita = %s", (STATUS_APROVADO_EXPOSICAO, APROVADO))
        _atualizar_em_lote(tx, oral, "status = %s, status_oral = %s", (STATUS_APROVADO_ORAL, APROVADO))

    avaliacao_logger.info(
        f"Classificação da chamada {chamada_id}: {len(ranking)} ranqueadas, "
        f"{len(exposicao)} exposição, {len(oral)} oral"
    )
    event_bus.emit(ClassificacaoConsolidada(
        chamada_id=chamada_id, aprovados_exposicao=exposicao, aprovados_oral=oral
    ))

    return {
        'exposicao': len(exposicao),
        'oral': len(oral),
        'aprovados_exposicao': exposicao,
        'aprovados_oral': oral,
        'ranking': [
            {'id': s['id'], 'total': round(totais[s['id']], 2), 'linha_tematica_id': s['linha_tematica_id']}
            for s in ranking
        ],
    }


def definir_status_final(submissao_id, status, observacoes_admin=None):
    """Define o status final (ação administrativa incondicional) e avisa o autor."""
    novo = str(status or '').strip().lower()
    if novo not in STATUS_FINAIS:
        raise ValidationError("Status inválido.")
    observacoes = optional_string(observacoes_admin, campo='Observações')

    with db_transacao() as tx:
        sub = carregar_submissao(tx, submissao_id, lock=True)
        status_escrita, status_oral = sub['status_escrita'], sub['status_oral']
        if novo == STATUS_APROVADO_EXPOSICAO:
            status_escrita = APROVADO
        elif novo == STATUS_APROVADO_ORAL:
            status_oral = APROVADO
        elif novo == STATUS_REPROVADO:
            status_escrita = status_oral = None

        tx.execute(
            """
            UPDATE trabalhos_submissoes
            SET status = %s, status_escrita = %s, status_oral = %s, observacoes_admin = %s,
                atualizado_em = CURRENT_TIMESTAMP
            WHERE id = %s
            """,
            (novo, status_escrita, status_oral, observacoes, submissao_id)
        )
        chamada = carregar_chamada(tx, sub['chamada_id'])

    avaliacao_logger.info(f"Status final da submissão {submissao_id}: {sub['status']} → {novo}")
    event_bus.emit(StatusSubmissaoAlterado(
        submissao_id=submissao_id,
        usuario_id=sub['usuario_id'],
        chamada_titulo=chamada['titulo'],
        trabalho_titulo=sub['titulo'],
        status=novo,
    ))
    return {'id': submissao_id, 'status': novo, 'status_escrita': status_escrita, 'status_oral': status_oral}
