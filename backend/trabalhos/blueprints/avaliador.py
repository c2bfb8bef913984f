"""
Rotas do avaliador: trabalhos atribuídos e registro de notas.

Base: /api/trabalhos/avaliador
"""
from flask import Blueprint, g, jsonify, request

from ..common.error_handlers import handle_api_errors, require_json
from ..core.extensions import limiter
from ..domain.avaliadores import contagem_minhas_avaliacoes, listar_submissoes_do_avaliador
from ..domain.pontuacao import registrar_notas_escritas, registrar_notas_orais
from .auth import login_required

avaliador_bp = Blueprint('trabalhos_avaliador', __name__, url_prefix='/api/trabalhos/avaliador')


@avaliador_bp.route('/submissoes', methods=['GET'])
@login_required
@handle_api_errors
def list_submissoes():
    return jsonify({'ok': True, 'submissoes': listar_submissoes_do_avaliador(g.usuario)})


@avaliador_bp.route('/contagem', methods=['GET'])
@login_required
@handle_api_errors
def contagem():
    return jsonify({'ok': True, **contagem_minhas_avaliacoes(g.usuario)})


@avaliador_bp.route('/submissoes/<int:submissao_id>/avaliar-escrita', methods=['POST'])
@login_required
@limiter.limit("60 per minute")
@require_json
@handle_api_errors
def avaliar_escrita(submissao_id):
    resultado = registrar_notas_escritas(submissao_id, g.usuario, request.get_json().get('itens'))
    return jsonify({'ok': True, **resultado})


@avaliador_bp.route('/submissoes/<int:submissao_id>/avaliar-oral', methods=['POST'])
@login_required
@limiter.limit("60 per minute")
@require_json
@handle_api_errors
def avaliar_oral(submissao_id):
    resultado = registrar_notas_orais(submissao_id, g.usuario, request.get_json().get('itens'))
    return jsonify({'ok': True, **resultado})
