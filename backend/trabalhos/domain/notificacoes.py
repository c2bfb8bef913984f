"""
Serviço de Notificações das submissões.

Monta título e mensagem por tipo de aviso e entrega ao autor: sempre grava em
`notificacoes` (aviso in-app) e, quando habilitado, envia também por e-mail.
"""
from flask import current_app
from markupsafe import escape

from ..config.logging_config import app_logger
from ..db import execute_db, query_db

TIPO_SUBMISSAO = 'submissao'

TITULOS_STATUS = {
    'submetido': "Submissão enviada",
    'em_avaliacao': "Em avaliação",
    'aprovado_exposicao': "Selecionado para Exposição (banner)",
    'aprovado_oral': "Selecionado para Apresentação Oral",
    'reprovado': "Não selecionado",
}

MENSAGENS_STATUS = {
    'submetido': 'Sua submissão "{trabalho_titulo}" foi enviada e aguarda avaliação na chamada "{chamada_titulo}".',
    'em_avaliacao': 'Sua submissão "{trabalho_titulo}" está em avaliação na chamada "{chamada_titulo}".',
    'aprovado_exposicao': 'Parabéns! O trabalho "{trabalho_titulo}" foi selecionado para Exposição na chamada "{chamada_titulo}".',
    'aprovado_oral': 'Parabéns! O trabalho "{trabalho_titulo}" foi selecionado para Apresentação Oral na chamada "{chamada_titulo}".',
    'reprovado': 'O trabalho "{trabalho_titulo}" não foi selecionado na chamada "{chamada_titulo}".',
}


def montar_notificacao(kind, payload):
    """
    Retorna (titulo, mensagem) para um tipo de aviso.

    kind: 'submissao_criada', 'poster_atualizado' ou 'status_submissao'.
    """
    trabalho = payload.get('trabalho_titulo', '')
    chamada = payload.get('chamada_titulo', '')

    if kind == 'submissao_criada':
        return (
            f"Submissão criada: {trabalho}",
            f'Sua submissão "{trabalho}" foi enviada para a chamada "{chamada}".',
        )
    if kind == 'poster_atualizado':
        return (
            f"Pôster anexado: {trabalho}",
            f'O pôster "{payload.get("arquivo_nome", "")}" foi anexado/atualizado na submissão '
            f'"{trabalho}" da chamada "{chamada}".',
        )
    if kind == 'status_submissao':
        status = payload.get('status', '')
        titulo = TITULOS_STATUS.get(status, f"Status: {status}")
        modelo = MENSAGENS_STATUS.get(status)
        mensagem = modelo.format(trabalho_titulo=trabalho, chamada_titulo=chamada) if modelo \
            else f'Status atualizado: {status} ({trabalho})'
        return titulo, mensagem
    raise ValueError(f"Tipo de notificação desconhecido: {kind}")


class NotificationSender:
    """Entrega {recipient, template-kind, payload} ao usuário."""

    def send(self, recipient, kind, payload):
        titulo, mensagem = montar_notificacao(kind, payload)
        execute_db(
            "INSERT INTO notificacoes (usuario_id, tipo, titulo, mensagem) VALUES (%s, %s, %s, %s)",
            (recipient, TIPO_SUBMISSAO, titulo, mensagem)
        )
        app_logger.info(f"Notificação '{kind}' registrada para usuário {recipient}")

        cfg = current_app.config
        if cfg.get('NOTIFICAR_POR_EMAIL') and cfg.get('EMAIL_CONFIGURADO'):
            self._send_email(recipient, titulo, mensagem)
        return titulo, mensagem

    def _send_email(self, recipient, titulo, mensagem):
        from ..mail.email_utils import send_email_global

        usuario = query_db("SELECT email FROM usuarios WHERE id = %s", (recipient,), one=True)
        if not usuario or not usuario.get('email'):
            return
        send_email_global(titulo, f"<p>{escape(mensagem)}</p>", [usuario['email']], body_text=mensagem)


notification_sender = NotificationSender()


def listar_notificacoes(usuario_id, apenas_nao_lidas=False):
    sql = "SELECT id, tipo, titulo, mensagem, lida, criado_em FROM notificacoes WHERE usuario_id = %s"
    if apenas_nao_lidas:
        sql += " AND lida = %s"
        rows = query_db(sql + " ORDER BY id DESC", (usuario_id, False))
    else:
        rows = query_db(sql + " ORDER BY id DESC", (usuario_id,))
    for row in rows:
        row['lida'] = bool(row['lida'])
    return rows
