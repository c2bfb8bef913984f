"""
Upload e download do pôster de uma submissão.
"""
from flask import current_app

from ...common.exceptions import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from ...common.file_validation import validate_uploaded_file
from ...config.logging_config import submissoes_logger
from ...core.events import PosterAtualizado, event_bus
from ...core.storage import caminho_poster, get_storage, sha256_hex
from ...db import db_transacao, query_db
from ...security.acesso import is_autor, pode_avaliar_ou_ver
from ..chamadas import carregar_chamada
from .crud import carregar_submissao, exigir_autor_ou_admin, exigir_dentro_do_prazo


def enviar_poster(submissao_id, arquivo, usuario):
    """
    Anexa (ou substitui) o pôster da submissão.

    O arquivo é validado antes de abrir a transação; o blob é gravado sob
    posters/<id>/<sha256>.<ext> e o registro aponta para ele.
    """
    ok, erro, meta = validate_uploaded_file(arquivo, max_size=current_app.config.get('POSTER_MAX_BYTES'))
    if not ok:
        raise ValidationError(erro)

    arquivo.stream.seek(0)
    conteudo = arquivo.stream.read()
    hash_hex = sha256_hex(conteudo)

    with db_transacao() as tx:
        sub = carregar_submissao(tx, submissao_id, lock=True)
        exigir_autor_ou_admin(usuario, sub, acao='enviar pôster para')
        chamada = carregar_chamada(tx, sub['chamada_id'])
        if not bool(chamada['aceita_poster']):
            raise StateConflictError("Esta chamada não aceita pôster.")
        exigir_dentro_do_prazo(tx, chamada)

        anteriores = tx.query(
            "SELECT id, caminho FROM trabalhos_arquivos WHERE submissao_id = %s", (submissao_id,)
        )
        caminho = caminho_poster(submissao_id, hash_hex, meta['extension'])
        get_storage().salvar(caminho, conteudo, meta['mime_type'])

        arquivo_id = tx.insert(
            """
            INSERT INTO trabalhos_arquivos (submissao_id, caminho, nome_original, mime_type, tamanho_bytes, hash_sha256)
            VALUES (%s, %s, %s, %s, %s, %s)
            """,
            (submissao_id, caminho, meta['safe_filename'], meta['mime_type'], meta['size_bytes'], hash_hex)
        )
        tx.execute(
            "UPDATE trabalhos_submissoes SET poster_arquivo_id = %s, atualizado_em = CURRENT_TIMESTAMP WHERE id = %s",
            (arquivo_id, submissao_id)
        )
        if anteriores:
            marcadores = ', '.join(['%s'] * len(anteriores))
            tx.execute(
                f"DELETE FROM trabalhos_arquivos WHERE id IN ({marcadores})",
                tuple(a['id'] for a in anteriores)
            )

    submissoes_logger.info(f"Pôster {caminho} ({meta['size_bytes']} bytes) anexado à submissão {submissao_id}")

    # Blobs substituídos só saem do storage depois do commit
    storage = get_storage()
    for antigo in {a['caminho'] for a in anteriores} - {caminho}:
        try:
            storage.remover(antigo)
        except Exception as e:
            submissoes_logger.warning(f"Falha ao remover pôster substituído {antigo}: {e}")

    event_bus.emit(PosterAtualizado(
        submissao_id=submissao_id,
        usuario_id=sub['usuario_id'],
        chamada_titulo=chamada['titulo'],
        trabalho_titulo=sub['titulo'],
        arquivo_nome=meta['safe_filename'],
    ))

    return {
        'arquivo_id': arquivo_id,
        'caminho': caminho,
        'hash_sha256': hash_hex,
        'nome_original': meta['safe_filename'],
        'mime_type': meta['mime_type'],
        'tamanho_bytes': meta['size_bytes'],
    }


def baixar_poster(submissao_id, usuario):
    """Retorna (conteudo, mime_type, nome) para o autor, admin ou avaliador atribuído."""
    row = query_db(
        """
        SELECT s.id, s.usuario_id, a.caminho, a.mime_type, a.nome_original
        FROM trabalhos_submissoes s
        LEFT JOIN trabalhos_arquivos a ON a.id = s.poster_arquivo_id
        WHERE s.id = %s
        """,
        (submissao_id,), one=True
    )
    if not row:
        raise NotFoundError("Submissão não encontrada.")
    if not (is_autor(usuario, row) or pode_avaliar_ou_ver(usuario, submissao_id)):
        raise AuthorizationError("Sem permissão para baixar este pôster.")
    if not row['caminho']:
        raise NotFoundError("Submissão sem pôster.")

    conteudo = get_storage().ler(row['caminho'])
    return conteudo, row['mime_type'] or 'application/octet-stream', row['nome_original'] or 'poster'
