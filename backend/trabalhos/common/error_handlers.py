"""
Decoradores e utilitários para tratamento de erros das rotas de API.
"""

import functools

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from ..config.logging_config import api_logger
from ..config.sentry_config import capture_exception
from .exceptions import StorageError, TrabalhosException


def _error_response(message, error_type, status_code, details=None):
    payload = {
        'ok': False,
        'error': message,
        'error_type': error_type,
    }
    if details:
        payload['details'] = details
    return jsonify(payload), status_code


def handle_api_errors(f):
    """
    Decorator para tratamento consistente de erros em endpoints de API.
    Captura exceções de domínio e retorna respostas JSON padronizadas.
    """
    @functools.wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except StorageError as e:
            # Nunca expor SQL ou caminhos internos ao cliente
            api_logger.error(f"Storage error in {f.__name__}: {e.message}", exc_info=True)
            capture_exception(e, {'endpoint': f.__name__})
            return _error_response('Erro ao acessar o armazenamento. Tente novamente.', e.error_type, e.status_code)
        except TrabalhosException as e:
            api_logger.warning(f"{type(e).__name__} in {f.__name__}: {e.message}")
            return _error_response(e.message, e.error_type, e.status_code)
        except HTTPException:
            raise
        except Exception as e:
            api_logger.error(f"Unexpected error in {f.__name__}: {str(e)}", exc_info=True)
            capture_exception(e, {'endpoint': f.__name__})

            # Em desenvolvimento, mostrar o tipo do erro
            if current_app.config.get('DEBUG'):
                return jsonify({
                    'ok': False,
                    'error': str(e),
                    'error_type': 'internal_error',
                    'debug_info': {
                        'function': f.__name__,
                        'exception_type': type(e).__name__
                    }
                }), 500

            return _error_response('Erro interno do servidor', 'internal_error', 500)

    return decorated_function


def require_json(f):
    """Exige corpo JSON (objeto) na requisição."""
    @functools.wraps(f)
    def decorated_function(*args, **kwargs):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _error_response('Content-Type deve ser application/json com um objeto no corpo',
                                   'validation_error', 400)
        return f(*args, **kwargs)

    return decorated_function


def register_error_handlers(app):
    """Respostas JSON para erros que escapam dos blueprints."""

    @app.errorhandler(TrabalhosException)
    def domain_error(e):
        if isinstance(e, StorageError):
            app.logger.error(f"Storage error: {e.message}", exc_info=True)
            return _error_response('Erro ao acessar o armazenamento. Tente novamente.', e.error_type, e.status_code)
        return _error_response(e.message, e.error_type, e.status_code)

    @app.errorhandler(404)
    def not_found(e):
        return _error_response('Recurso não encontrado', 'not_found', 404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return _error_response('Método não permitido', 'method_not_allowed', 405)

    @app.errorhandler(413)
    def payload_too_large(e):
        return _error_response('Arquivo muito grande', 'validation_error', 413)

    @app.errorhandler(429)
    def ratelimit_handler(e):
        return _error_response('Limite de requisições excedido. Tente novamente mais tarde.',
                               'rate_limit_exceeded', 429)

    @app.errorhandler(500)
    def internal_server_error(e):
        app.logger.error(f"Erro 500: {e}", exc_info=True)
        return _error_response('Erro interno do servidor', 'internal_error', 500)
