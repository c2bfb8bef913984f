"""
Ciclo de vida da submissão: criação, edição, exclusão e consultas.
"""
from ...common.exceptions import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from ...common.utils import format_datetime_iso
from ...config.logging_config import submissoes_logger
from ...constants import (
    MAX_AVALIADORES,
    STATUS_EDITAVEIS,
    STATUS_EM_AVALIACAO,
    STATUS_RASCUNHO,
    STATUS_SUBMETIDO,
    STATUS_SUBMISSAO_LIST,
)
from ...core.events import StatusSubmissaoAlterado, SubmissaoCriada, event_bus
from ...core.storage import get_storage
from ...database import Pagination
from ...db import db_transacao, query_db
from ...security.acesso import is_admin, is_autor, pode_avaliar_ou_ver
from ..chamadas import carregar_chamada, dentro_do_prazo
from .validacao import CAMPOS_EDITAVEIS, normalizar_coautores, normalizar_status_entrada, validar_campos_submissao

COLUNAS_SUBMISSAO = """
    s.id, s.usuario_id, s.chamada_id, s.titulo, s.inicio_experiencia, s.linha_tematica_id,
    s.introducao, s.objetivos, s.metodo, s.resultados, s.consideracoes, s.bibliografia,
    s.poster_arquivo_id, s.status, s.status_escrita, s.status_oral, s.observacoes_admin,
    s.nota_visivel, s.nota_escrita, s.nota_oral, s.nota_final, s.criado_em, s.atualizado_em
"""

CAMPOS_NOTA = ['nota_escrita', 'nota_oral', 'nota_final']


def serializar_submissao(row):
    sub = dict(row)
    sub['nota_visivel'] = bool(sub.get('nota_visivel'))
    for campo in ('criado_em', 'atualizado_em'):
        if campo in sub:
            sub[campo] = format_datetime_iso(sub[campo])
    return sub


def carregar_submissao(tx, submissao_id, lock=False):
    sql = f"SELECT {COLUNAS_SUBMISSAO} FROM trabalhos_submissoes s WHERE s.id = %s"
    if lock:
        sql += tx.for_update
    sub = tx.query(sql, (submissao_id,), one=True)
    if not sub:
        raise NotFoundError("Submissão não encontrada.")
    return sub


def exigir_autor_ou_admin(usuario, submissao, acao='editar'):
    if not (is_autor(usuario, submissao) or is_admin(usuario)):
        submissoes_logger.warning(
            f"Usuário {(usuario or {}).get('id')} sem permissão para {acao} a submissão {submissao['id']}"
        )
        raise AuthorizationError(f"Sem permissão para {acao} esta submissão.")


def exigir_dentro_do_prazo(tx, chamada):
    if not dentro_do_prazo(chamada, tx.agora()):
        raise StateConflictError("O prazo de submissão encerrou.")


def _validar_linha(tx, linha_id, chamada_id):
    if linha_id is None:
        return
    linha = tx.query(
        "SELECT id FROM trabalhos_chamada_linhas WHERE id = %s AND chamada_id = %s", (linha_id, chamada_id), one=True
    )
    if not linha:
        raise ValidationError("Linha temática inválida para esta chamada.")


def _inserir_coautores(tx, submissao_id, coautores):
    for c in coautores:
        tx.execute(
            """
            INSERT INTO trabalhos_coautores (submissao_id, nome, email, unidade, papel, cpf, vinculo)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (submissao_id, c['nome'], c['email'], c['unidade'], c['papel'], c['cpf'], c['vinculo'])
        )


def criar_submissao(chamada_id, payload, usuario):
    """Cria a submissão e seus coautores. Retorna o id."""
    status = normalizar_status_entrada(payload.get('status'))

    with db_transacao() as tx:
        chamada = carregar_chamada(tx, chamada_id)
        if not bool(chamada['publicado']):
            raise StateConflictError("Chamada não publicada.")
        exigir_dentro_do_prazo(tx, chamada)

        campos = validar_campos_submissao(payload, chamada, status)
        _validar_linha(tx, campos['linha_tematica_id'], chamada_id)
        coautores = normalizar_coautores(payload.get('coautores'), chamada['max_coautores'])

        params = {'usuario_id': usuario['id'], 'chamada_id': chamada_id, **campos, 'status': status}
        colunas = ', '.join(params)
        marcadores = ', '.join(['%s'] * len(params))
        submissao_id = tx.insert(
            f"INSERT INTO trabalhos_submissoes ({colunas}) VALUES ({marcadores})", tuple(params.values())
        )
        _inserir_coautores(tx, submissao_id, coautores)

    submissoes_logger.info(f"Submissão {submissao_id} criada na chamada {chamada_id} com status {status}")

    event_bus.emit(SubmissaoCriada(
        submissao_id=submissao_id,
        usuario_id=usuario['id'],
        chamada_titulo=chamada['titulo'],
        trabalho_titulo=campos['titulo'],
    ))
    if status == STATUS_SUBMETIDO:
        event_bus.emit(StatusSubmissaoAlterado(
            submissao_id=submissao_id,
            usuario_id=usuario['id'],
            chamada_titulo=chamada['titulo'],
            trabalho_titulo=campos['titulo'],
            status=status,
        ))
    return submissao_id


def _total_avaliadores_ativos(tx, submissao_id):
    row = tx.query(
        "SELECT COUNT(*) AS total FROM trabalhos_submissoes_avaliadores WHERE submissao_id = %s AND revoked_at IS NULL",
        (submissao_id,), one=True
    )
    return row['total']


def atualizar_submissao(submissao_id, payload, usuario):
    """
    Edita a submissão (autor ou admin), apenas em rascunho/submetido e dentro
    do prazo. Coautores enviados substituem o conjunto atual.
    """
    with db_transacao() as tx:
        sub = carregar_submissao(tx, submissao_id, lock=True)
        exigir_autor_ou_admin(usuario, sub)
        if sub['status'] not in STATUS_EDITAVEIS:
            raise StateConflictError("A submissão não pode mais ser editada neste status.")
        chamada = carregar_chamada(tx, sub['chamada_id'])
        exigir_dentro_do_prazo(tx, chamada)

        status = normalizar_status_entrada(payload.get('status', sub['status']))
        submetendo = status == STATUS_SUBMETIDO and sub['status'] == STATUS_RASCUNHO
        mescla = {c: (payload[c] if c in payload else sub[c]) for c in CAMPOS_EDITAVEIS}
        campos = validar_campos_submissao(mescla, chamada, status)
        _validar_linha(tx, campos['linha_tematica_id'], sub['chamada_id'])
        if submetendo and _total_avaliadores_ativos(tx, submissao_id) >= MAX_AVALIADORES:
            # Avaliadores atribuídos ainda em rascunho: o quórum vale já na submissão
            status = STATUS_EM_AVALIACAO

        coautores = None
        if 'coautores' in payload:
            coautores = normalizar_coautores(payload.get('coautores'), chamada['max_coautores'])

        params = {**campos, 'status': status}
        sets = ', '.join(f"{col} = %s" for col in params)
        tx.execute(
            f"UPDATE trabalhos_submissoes SET {sets}, atualizado_em = CURRENT_TIMESTAMP WHERE id = %s",
            tuple(params.values()) + (submissao_id,)
        )
        if coautores is not None:
            tx.execute("DELETE FROM trabalhos_coautores WHERE submissao_id = %s", (submissao_id,))
            _inserir_coautores(tx, submissao_id, coautores)

    submissoes_logger.info(f"Submissão {submissao_id} atualizada ({sub['status']} → {status})")

    if submetendo:
        event_bus.emit(StatusSubmissaoAlterado(
            submissao_id=submissao_id,
            usuario_id=sub['usuario_id'],
            chamada_titulo=chamada['titulo'],
            trabalho_titulo=campos['titulo'],
            status=status,
        ))
    return submissao_id


def remover_submissao(submissao_id, usuario):
    """
    Exclui a submissão (autor ou admin) enquanto em rascunho/submetido.
    O prazo não é exigido para exclusão.
    """
    with db_transacao() as tx:
        sub = carregar_submissao(tx, submissao_id, lock=True)
        exigir_autor_ou_admin(usuario, sub, acao='excluir')
        if sub['status'] not in STATUS_EDITAVEIS:
            raise StateConflictError("Só é possível excluir submissões em rascunho ou submetidas.")

        arquivos = tx.query("SELECT caminho FROM trabalhos_arquivos WHERE submissao_id = %s", (submissao_id,))
        tx.execute("DELETE FROM trabalhos_coautores WHERE submissao_id = %s", (submissao_id,))
        tx.execute("DELETE FROM trabalhos_arquivos WHERE submissao_id = %s", (submissao_id,))
        tx.execute("DELETE FROM trabalhos_submissoes_avaliadores WHERE submissao_id = %s", (submissao_id,))
        tx.execute("DELETE FROM trabalhos_submissoes WHERE id = %s", (submissao_id,))

    submissoes_logger.info(f"Submissão {submissao_id} excluída por usuário {usuario.get('id')}")

    # Arquivos só saem do storage depois do commit
    storage = get_storage()
    for arquivo in {a['caminho'] for a in arquivos}:
        try:
            storage.remover(arquivo)
        except Exception as e:
            submissoes_logger.warning(f"Falha ao remover arquivo {arquivo} da submissão {submissao_id}: {e}")


def _detalhar(sub):
    sub = serializar_submissao(sub)
    sub['coautores'] = query_db(
        "SELECT id, nome, email, unidade, papel, cpf, vinculo FROM trabalhos_coautores WHERE submissao_id = %s ORDER BY id",
        (sub['id'],)
    )
    sub['poster'] = None
    if sub.get('poster_arquivo_id'):
        arquivo = query_db(
            "SELECT id, nome_original, mime_type, tamanho_bytes, hash_sha256, criado_em FROM trabalhos_arquivos WHERE id = %s",
            (sub['poster_arquivo_id'],), one=True
        )
        if arquivo:
            arquivo['criado_em'] = format_datetime_iso(arquivo.get('criado_em'))
            sub['poster'] = arquivo
    return sub


def obter_submissao(submissao_id, usuario):
    """Detalhe para o autor, um administrador ou avaliador atribuído."""
    row = query_db(
        f"""
        SELECT {COLUNAS_SUBMISSAO}, l.nome AS linha_tematica_nome, c.titulo AS chamada_titulo
        FROM trabalhos_submissoes s
        JOIN trabalhos_chamadas c ON c.id = s.chamada_id
        LEFT JOIN trabalhos_chamada_linhas l ON l.id = s.linha_tematica_id
        WHERE s.id = %s
        """,
        (submissao_id,), one=True
    )
    if not row:
        raise NotFoundError("Submissão não encontrada.")

    autor = is_autor(usuario, row)
    if not autor and not pode_avaliar_ou_ver(usuario, submissao_id):
        raise AuthorizationError("Sem permissão para visualizar esta submissão.")

    sub = _detalhar(row)
    if autor and not is_admin(usuario) and not sub['nota_visivel']:
        for campo in CAMPOS_NOTA:
            sub[campo] = None
    return sub


def listar_minhas_submissoes(usuario):
    rows = query_db(
        f"""
        SELECT {COLUNAS_SUBMISSAO}, c.titulo AS chamada_titulo, l.nome AS linha_tematica_nome
        FROM trabalhos_submissoes s
        JOIN trabalhos_chamadas c ON c.id = s.chamada_id
        LEFT JOIN trabalhos_chamada_linhas l ON l.id = s.linha_tematica_id
        WHERE s.usuario_id = %s
        ORDER BY s.id DESC
        """,
        (usuario['id'],)
    )
    resultado = []
    for row in rows:
        sub = serializar_submissao(row)
        if not sub['nota_visivel']:
            for campo in CAMPOS_NOTA:
                sub[campo] = None
        resultado.append(sub)
    return resultado


def listar_submissoes_admin(chamada_id=None, status=None, page=1, per_page=50):
    """Listagem paginada para administradores, com quantidade de avaliadores ativos."""
    filtros, args = [], []
    if chamada_id is not None:
        filtros.append("s.chamada_id = %s")
        args.append(chamada_id)
    if status:
        if status not in STATUS_SUBMISSAO_LIST:
            raise ValidationError("Status inválido.")
        filtros.append("s.status = %s")
        args.append(status)
    where = f"WHERE {' AND '.join(filtros)}" if filtros else ''

    total = query_db(f"SELECT COUNT(*) AS n FROM trabalhos_submissoes s {where}", tuple(args), one=True)['n']
    pagination = Pagination(page=page, per_page=per_page, total=total)

    rows = query_db(
        f"""
        SELECT {COLUNAS_SUBMISSAO}, c.titulo AS chamada_titulo, l.nome AS linha_tematica_nome,
               u.nome AS autor_nome, u.email AS autor_email,
               (SELECT COUNT(*) FROM trabalhos_submissoes_avaliadores a
                 WHERE a.submissao_id = s.id AND a.revoked_at IS NULL) AS qtd_avaliadores
        FROM trabalhos_submissoes s
        JOIN trabalhos_chamadas c ON c.id = s.chamada_id
        LEFT JOIN trabalhos_chamada_linhas l ON l.id = s.linha_tematica_id
        LEFT JOIN usuarios u ON u.id = s.usuario_id
        {where}
        ORDER BY s.id DESC
        LIMIT %s OFFSET %s
        """,
        tuple(args) + (pagination.per_page, pagination.offset)
    )
    return [serializar_submissao(r) for r in rows], pagination
