"""
Registro das notas escritas e orais.

Somente administradores ou avaliadores com atribuição ativa podem pontuar.
Todos os itens são validados antes de qualquer gravação; cada
(submissão, avaliador, critério) tem no máximo uma linha, e um novo envio
sobrescreve nota e comentário.
"""
from ...common.exceptions import StateConflictError, ValidationError
from ...common.validation import optional_string, validate_integer
from ...config.logging_config import avaliacao_logger
from ...constants import STATUS_EM_AVALIACAO, STATUS_FINAIS, STATUS_RASCUNHO, STATUS_SUBMETIDO
from ...core.events import StatusSubmissaoAlterado, event_bus
from ...db import db_transacao
from ...security.acesso import exigir_avaliador_ou_admin
from ..chamadas import carregar_chamada
from ..submissoes import carregar_submissao
from .calculo import media_normalizada, nota_final

TABELAS = {
    'escrita': ('trabalhos_chamada_criterios', 'trabalhos_avaliacoes_itens'),
    'oral': ('trabalhos_chamada_criterios_orais', 'trabalhos_avaliacoes_orais_itens'),
}


def criterios_da_chamada(tx, chamada_id, tipo='escrita'):
    tabela = TABELAS[tipo][0]
    return tx.query(
        f"SELECT id, ordem, titulo, escala_min, escala_max, peso FROM {tabela} WHERE chamada_id = %s ORDER BY ordem, id",
        (chamada_id,)
    )


def _ler_nota(valor, criterio):
    erro = f"Nota deve estar entre {criterio['escala_min']} e {criterio['escala_max']}."
    try:
        nota = validate_integer(valor, campo='Nota')
    except ValidationError:
        raise ValidationError(erro)
    if not criterio['escala_min'] <= nota <= criterio['escala_max']:
        raise ValidationError(erro)
    return nota


def validar_itens(itens, criterios):
    """Valida todos os itens contra os critérios da chamada. Repetições do mesmo critério: vale o último."""
    if not isinstance(itens, list) or not itens:
        raise ValidationError("Envie itens para avaliação.")
    por_id = {c['id']: c for c in criterios}
    validados = {}
    for item in itens:
        if not isinstance(item, dict):
            raise ValidationError("Item de avaliação inválido.")
        criterio_id = item.get('criterio_id', item.get('criterio_oral_id'))
        criterio = por_id.get(validate_integer(criterio_id, allow_none=True, campo='Critério'))
        if criterio is None:
            raise ValidationError("Critério inválido.")
        validados[criterio['id']] = {
            'criterio_id': criterio['id'],
            'nota': _ler_nota(item.get('nota'), criterio),
            'comentarios': optional_string(item.get('comentarios'), campo='Comentários'),
        }
    return list(validados.values())


def persistir_notas(tx, submissao_id, chamada_id):
    """Recalcula e grava nota_escrita, nota_oral e nota_final normalizadas."""
    notas = {}
    for tipo, (_, tabela_itens) in TABELAS.items():
        itens = tx.query(
            f"SELECT avaliador_id, criterio_id, nota FROM {tabela_itens} WHERE submissao_id = %s ORDER BY avaliador_id, criterio_id",
            (submissao_id,)
        )
        notas[f'nota_{tipo}'] = media_normalizada(itens, criterios_da_chamada(tx, chamada_id, tipo))
    notas['nota_final'] = nota_final(notas['nota_escrita'], notas['nota_oral'])

    tx.execute(
        """
        UPDATE trabalhos_submissoes
        SET nota_escrita = %s, nota_oral = %s, nota_final = %s, atualizado_em = CURRENT_TIMESTAMP
        WHERE id = %s
        """,
        (notas['nota_escrita'], notas['nota_oral'], notas['nota_final'], submissao_id)
    )
    return notas


def _registrar(submissao_id, usuario, itens, tipo):
    _, tabela_itens = TABELAS[tipo]
    evento = None

    with db_transacao() as tx:
        sub = carregar_submissao(tx, submissao_id, lock=True)
        exigir_avaliador_ou_admin(usuario, submissao_id, tx)
        if sub['status'] == STATUS_RASCUNHO:
            raise StateConflictError("Rascunhos não podem ser avaliados.")
        if tipo == 'escrita' and sub['status'] in STATUS_FINAIS:
            raise StateConflictError("A classificação já foi consolidada; a nota escrita não pode mais ser alterada.")

        validados = validar_itens(itens, criterios_da_chamada(tx, sub['chamada_id'], tipo))

        for item in validados:
            tx.execute(
                f"""
                INSERT INTO {tabela_itens} (submissao_id, avaliador_id, criterio_id, nota, comentarios)
                VALUES (%s, %s, %s, %s, %s)
                ON CONFLICT (submissao_id, avaliador_id, criterio_id)
                DO UPDATE SET nota = excluded.nota, comentarios = excluded.comentarios, criado_em = CURRENT_TIMESTAMP
                """,
                (submissao_id, usuario['id'], item['criterio_id'], item['nota'], item['comentarios'])
            )

        status = sub['status']
        if tipo == 'escrita' and status == STATUS_SUBMETIDO:
            tx.execute(
                "UPDATE trabalhos_submissoes SET status = %s WHERE id = %s AND status = %s",
                (STATUS_EM_AVALIACAO, submissao_id, STATUS_SUBMETIDO)
            )
            status = STATUS_EM_AVALIACAO
            chamada = carregar_chamada(tx, sub['chamada_id'])
            evento = StatusSubmissaoAlterado(
                submissao_id=submissao_id,
                usuario_id=sub['usuario_id'],
                chamada_titulo=chamada['titulo'],
                trabalho_titulo=sub['titulo'],
                status=status,
            )

        notas = persistir_notas(tx, submissao_id, sub['chamada_id'])

    avaliacao_logger.info(
        f"Avaliação {tipo} da submissão {submissao_id} registrada por {usuario['id']} ({len(validados)} itens)"
    )
    if evento:
        event_bus.emit(evento)
    return {'itens': len(validados), 'status': status, **notas}


def registrar_notas_escritas(submissao_id, usuario, itens):
    return _registrar(submissao_id, usuario, itens, 'escrita')


def registrar_notas_orais(submissao_id, usuario, itens):
    return _registrar(submissao_id, usuario, itens, 'oral')
