"""
Autenticação consumida pelo módulo de trabalhos.

O login acontece fora deste serviço; aqui só se resolve a sessão para
`g.usuario = {id, nome, email, perfis}` e se protegem as rotas.
"""
from functools import wraps

from flask import Blueprint, g, jsonify, request, session
from flask_wtf.csrf import generate_csrf

from ..config.logging_config import security_logger
from ..core.extensions import limiter
from ..db import query_db
from ..security.acesso import is_admin, normalizar_perfis

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def load_logged_in_user():
    """Carrega o usuário da sessão (session['user']['id']) a cada requisição."""
    g.usuario = None
    if request.path.startswith('/api/health'):
        return

    usuario_sessao = session.get('user') or {}
    usuario_id = usuario_sessao.get('id')
    if not usuario_id:
        return

    row = query_db("SELECT id, nome, email, perfil FROM usuarios WHERE id = %s", (usuario_id,), one=True)
    if not row:
        security_logger.warning(f"Sessão aponta para usuário inexistente: {usuario_id}")
        session.pop('user', None)
        return

    g.usuario = {
        'id': row['id'],
        'nome': row['nome'],
        'email': row['email'],
        'perfis': normalizar_perfis(row['perfil']),
    }


def login_required(f):
    """Decorator para rotas que exigem usuário autenticado (JSON 401 caso contrário)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not getattr(g, 'usuario', None):
            security_logger.info(f'Login required: anonymous access to {request.path}')
            return jsonify({
                'ok': False,
                'error': 'Login necessário.',
                'error_type': 'authentication_error',
            }), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """Protege rotas que exigem perfil administrador."""
    @wraps(f)
    @login_required
    def decorated_function(*args, **kwargs):
        if not is_admin(g.usuario):
            security_logger.warning(
                f"Access denied for user {g.usuario['id']} with roles {sorted(g.usuario['perfis'])} "
                f"trying to access {request.path}"
            )
            return jsonify({
                'ok': False,
                'error': 'Acesso restrito a administradores.',
                'error_type': 'permission_error',
            }), 403
        return f(*args, **kwargs)
    return decorated_function


@auth_bp.route('/me', methods=['GET'])
@login_required
def me():
    usuario = dict(g.usuario)
    usuario['perfis'] = sorted(usuario['perfis'])
    return jsonify({'ok': True, 'usuario': usuario})


@auth_bp.route('/csrf-token', methods=['GET'])
@limiter.limit("30 per minute")
def csrf_token():
    """Token CSRF para as requisições de escrita (header X-CSRFToken)."""
    return jsonify({'ok': True, 'csrf_token': generate_csrf()})
