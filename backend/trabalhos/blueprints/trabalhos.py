"""
Rotas do autor: chamadas publicadas, submissões, pôster e notificações.

Base: /api/trabalhos
"""
import io

from flask import Blueprint, g, jsonify, request, send_file

from ..common.error_handlers import handle_api_errors, require_json
from ..common.exceptions import ValidationError
from ..config.logging_config import api_logger
from ..core.extensions import limiter
from ..domain.chamadas import listar_chamadas_ativas, obter_chamada
from ..domain.notificacoes import listar_notificacoes
from ..domain.submissoes import (
    atualizar_submissao,
    baixar_poster,
    criar_submissao,
    enviar_poster,
    listar_minhas_submissoes,
    obter_submissao,
    remover_submissao,
)
from .auth import login_required

trabalhos_bp = Blueprint('trabalhos', __name__, url_prefix='/api/trabalhos')


@trabalhos_bp.route('/chamadas', methods=['GET'])
@login_required
@handle_api_errors
def list_chamadas():
    """Chamadas publicadas, com o indicador dentro_prazo."""
    return jsonify({'ok': True, 'chamadas': listar_chamadas_ativas()})


@trabalhos_bp.route('/chamadas/<int:chamada_id>', methods=['GET'])
@login_required
@handle_api_errors
def get_chamada(chamada_id):
    return jsonify({'ok': True, 'chamada': obter_chamada(chamada_id, somente_publicada=True)})


@trabalhos_bp.route('/chamadas/<int:chamada_id>/submissoes', methods=['POST'])
@login_required
@limiter.limit("30 per minute")
@require_json
@handle_api_errors
def create_submissao(chamada_id):
    """
    Cria uma submissão na chamada.

    Body: titulo, inicio_experiencia (AAAA-MM), linha_tematica_id, textos,
    bibliografia, coautores[] e status ('rascunho' ou 'submetido').
    """
    submissao_id = criar_submissao(chamada_id, request.get_json(), g.usuario)
    api_logger.info(f"Submissão {submissao_id} criada por {g.usuario['id']}")
    return jsonify({'ok': True, 'id': submissao_id}), 201


@trabalhos_bp.route('/minhas-submissoes', methods=['GET'])
@login_required
@handle_api_errors
def list_minhas_submissoes():
    return jsonify({'ok': True, 'submissoes': listar_minhas_submissoes(g.usuario)})


@trabalhos_bp.route('/submissoes/<int:submissao_id>', methods=['GET'])
@login_required
@handle_api_errors
def get_submissao(submissao_id):
    return jsonify({'ok': True, 'submissao': obter_submissao(submissao_id, g.usuario)})


@trabalhos_bp.route('/submissoes/<int:submissao_id>', methods=['PUT'])
@login_required
@limiter.limit("30 per minute")
@require_json
@handle_api_errors
def update_submissao(submissao_id):
    atualizar_submissao(submissao_id, request.get_json(), g.usuario)
    return jsonify({'ok': True, 'id': submissao_id})


@trabalhos_bp.route('/submissoes/<int:submissao_id>', methods=['DELETE'])
@login_required
@handle_api_errors
def delete_submissao(submissao_id):
    remover_submissao(submissao_id, g.usuario)
    return jsonify({'ok': True})


@trabalhos_bp.route('/submissoes/<int:submissao_id>/poster', methods=['POST'])
@login_required
@limiter.limit("30 per minute")
@handle_api_errors
def upload_poster(submissao_id):
    """Upload multipart do pôster (campo 'poster' ou 'file')."""
    arquivo = request.files.get('poster') or request.files.get('file')
    if arquivo is None:
        raise ValidationError("Nenhum arquivo enviado.")
    resultado = enviar_poster(submissao_id, arquivo, g.usuario)
    return jsonify({'ok': True, 'arquivo': resultado}), 201


@trabalhos_bp.route('/submissoes/<int:submissao_id>/poster', methods=['GET'])
@login_required
@handle_api_errors
def download_poster(submissao_id):
    conteudo, mime_type, nome = baixar_poster(submissao_id, g.usuario)
    return send_file(io.BytesIO(conteudo), mimetype=mime_type, as_attachment=False, download_name=nome)


@trabalhos_bp.route('/notificacoes', methods=['GET'])
@login_required
@handle_api_errors
def list_notificacoes():
    apenas_nao_lidas = request.args.get('nao_lidas', '').lower() in ('1', 'true', 'sim')
    return jsonify({'ok': True, 'notificacoes': listar_notificacoes(g.usuario['id'], apenas_nao_lidas)})
