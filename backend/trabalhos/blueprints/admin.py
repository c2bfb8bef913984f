"""
Rotas administrativas: chamadas, submissões, avaliadores, notas e classificação.

Base: /api/trabalhos/admin
"""
from flask import Blueprint, g, jsonify, request

from ..common.error_handlers import handle_api_errors, require_json
from ..common.validation import to_int_or_none, validate_boolean
from ..config.logging_config import api_logger
from ..core.extensions import limiter
from ..database import get_page_args
from ..domain.avaliadores import (
    MODO_MERGE,
    MODO_REPLACE,
    atribuir_avaliadores,
    listar_avaliadores,
    restaurar_avaliador,
    resumo_avaliadores,
    revogar_avaliador,
)
from ..domain.chamadas import (
    atualizar_chamada,
    criar_chamada,
    listar_chamadas_admin,
    obter_chamada,
    publicar_chamada,
    remover_chamada,
)
from ..domain.classificacao import consolidar_classificacao, definir_status_final
from ..domain.pontuacao import (
    agregar_notas,
    definir_nota_visivel,
    nota_normalizada,
    registrar_notas_escritas,
    registrar_notas_orais,
)
from ..domain.submissoes import listar_submissoes_admin
from .auth import admin_required

admin_bp = Blueprint('trabalhos_admin', __name__, url_prefix='/api/trabalhos/admin')


# ──────────────────────────────────────────────
# Chamadas
# ──────────────────────────────────────────────


@admin_bp.route('/chamadas', methods=['GET'])
@admin_required
@handle_api_errors
def list_chamadas():
    return jsonify({'ok': True, 'chamadas': listar_chamadas_admin()})


@admin_bp.route('/chamadas/<int:chamada_id>', methods=['GET'])
@admin_required
@handle_api_errors
def get_chamada(chamada_id):
    return jsonify({'ok': True, 'chamada': obter_chamada(chamada_id)})


@admin_bp.route('/chamadas', methods=['POST'])
@admin_required
@require_json
@handle_api_errors
def create_chamada():
    chamada_id = criar_chamada(request.get_json(), g.usuario['id'])
    api_logger.info(f"Chamada {chamada_id} criada por {g.usuario['id']}")
    return jsonify({'ok': True, 'id': chamada_id}), 201


@admin_bp.route('/chamadas/<int:chamada_id>', methods=['PUT'])
@admin_required
@require_json
@handle_api_errors
def update_chamada(chamada_id):
    atualizar_chamada(chamada_id, request.get_json())
    return jsonify({'ok': True, 'id': chamada_id})


@admin_bp.route('/chamadas/<int:chamada_id>/publicar', methods=['POST'])
@admin_required
@handle_api_errors
def publish_chamada(chamada_id):
    """Body opcional: {"publicado": false} para despublicar."""
    dados = request.get_json(silent=True) or {}
    publicado = validate_boolean(dados.get('publicado'), default=True)
    publicar_chamada(chamada_id, publicado)
    return jsonify({'ok': True, 'publicado': publicado})


@admin_bp.route('/chamadas/<int:chamada_id>', methods=['DELETE'])
@admin_required
@handle_api_errors
def delete_chamada(chamada_id):
    remover_chamada(chamada_id)
    return jsonify({'ok': True})


@admin_bp.route('/chamadas/<int:chamada_id>/classificar', methods=['POST'])
@admin_required
@handle_api_errors
def classificar_chamada(chamada_id):
    resultado = consolidar_classificacao(chamada_id)
    return jsonify({'ok': True, **resultado})


# ──────────────────────────────────────────────
# Submissões
# ──────────────────────────────────────────────


@admin_bp.route('/submissoes', methods=['GET'])
@admin_required
@handle_api_errors
def list_submissoes():
    """Query params: chamada_id, status, page, per_page."""
    page, per_page = get_page_args()
    submissoes, pagination = listar_submissoes_admin(
        chamada_id=to_int_or_none(request.args.get('chamada_id')),
        status=request.args.get('status') or None,
        page=page,
        per_page=per_page,
    )
    return jsonify({'ok': True, 'submissoes': submissoes, 'pagination': pagination.to_dict()})


@admin_bp.route('/submissoes/<int:submissao_id>/avaliadores', methods=['GET'])
@admin_required
@handle_api_errors
def list_avaliadores(submissao_id):
    return jsonify({'ok': True, 'avaliadores': listar_avaliadores(submissao_id)})


@admin_bp.route('/submissoes/<int:submissao_id>/avaliadores', methods=['POST'])
@admin_required
@require_json
@handle_api_errors
def assign_avaliadores(submissao_id):
    """
    Body: {"avaliadores": [7, 9], "modo": "merge" | "replace"}.
    Também aceita {"replace": true} no lugar de modo.
    """
    dados = request.get_json()
    modo = dados.get('modo') or (MODO_REPLACE if validate_boolean(dados.get('replace')) else MODO_MERGE)
    total = atribuir_avaliadores(submissao_id, dados.get('avaliadores'), modo=modo, usuario=g.usuario)
    return jsonify({'ok': True, 'total_atribuidos': total})


@admin_bp.route('/submissoes/<int:submissao_id>/avaliadores/<int:avaliador_id>', methods=['DELETE'])
@admin_required
@handle_api_errors
def revoke_avaliador(submissao_id, avaliador_id):
    total = revogar_avaliador(submissao_id, avaliador_id)
    return jsonify({'ok': True, 'total_atribuidos': total})


@admin_bp.route('/submissoes/<int:submissao_id>/avaliadores/<int:avaliador_id>/restaurar', methods=['POST'])
@admin_required
@handle_api_errors
def restore_avaliador(submissao_id, avaliador_id):
    total = restaurar_avaliador(submissao_id, avaliador_id, usuario=g.usuario)
    return jsonify({'ok': True, 'total_atribuidos': total})


@admin_bp.route('/avaliadores/resumo', methods=['GET'])
@admin_required
@handle_api_errors
def avaliadores_resumo():
    return jsonify({'ok': True, 'avaliadores': resumo_avaliadores()})


@admin_bp.route('/submissoes/<int:submissao_id>/avaliar-escrita', methods=['POST'])
@admin_required
@limiter.limit("60 per minute")
@require_json
@handle_api_errors
def avaliar_escrita(submissao_id):
    resultado = registrar_notas_escritas(submissao_id, g.usuario, request.get_json().get('itens'))
    return jsonify({'ok': True, **resultado})


@admin_bp.route('/submissoes/<int:submissao_id>/avaliar-oral', methods=['POST'])
@admin_required
@limiter.limit("60 per minute")
@require_json
@handle_api_errors
def avaliar_oral(submissao_id):
    resultado = registrar_notas_orais(submissao_id, g.usuario, request.get_json().get('itens'))
    return jsonify({'ok': True, **resultado})


@admin_bp.route('/submissoes/<int:submissao_id>/notas', methods=['GET'])
@admin_required
@handle_api_errors
def get_notas(submissao_id):
    return jsonify({'ok': True, **agregar_notas(submissao_id)})


@admin_bp.route('/submissoes/<int:submissao_id>/nota-normalizada', methods=['GET'])
@admin_required
@handle_api_errors
def get_nota_normalizada(submissao_id):
    return jsonify({'ok': True, **nota_normalizada(submissao_id)})


@admin_bp.route('/submissoes/<int:submissao_id>/nota-visivel', methods=['POST'])
@admin_required
@require_json
@handle_api_errors
def set_nota_visivel(submissao_id):
    visivel = definir_nota_visivel(submissao_id, validate_boolean(request.get_json().get('visivel')))
    return jsonify({'ok': True, 'nota_visivel': visivel})


@admin_bp.route('/submissoes/<int:submissao_id>/status-final', methods=['POST'])
@admin_required
@require_json
@handle_api_errors
def set_status_final(submissao_id):
    dados = request.get_json()
    resultado = definir_status_final(submissao_id, dados.get('status'), dados.get('observacoes_admin'))
    return jsonify({'ok': True, **resultado})
