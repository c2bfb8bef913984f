"""
Configuração do Sentry para monitoramento de erros em produção.

Só é ativado quando SENTRY_DSN está definido; em desenvolvimento e nos
testes as funções de captura viram no-op.
"""

import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.logging import LoggingIntegration


def init_sentry(app):
    """
    Inicializa o Sentry para monitoramento de erros.

    Configuração:
        SENTRY_DSN: URL do projeto Sentry
        FLASK_ENV: Ambiente (development, staging, production)
    """
    sentry_dsn = app.config.get('SENTRY_DSN')

    if not sentry_dsn:
        app.logger.info("Sentry não configurado (SENTRY_DSN não definido)")
        return

    environment = app.config.get('FLASK_ENV', 'production')

    sentry_sdk.init(
        dsn=sentry_dsn,
        integrations=[
            FlaskIntegration(),
            LoggingIntegration(level=None, event_level='ERROR'),
        ],
        traces_sample_rate=0.1,
        environment=environment,
        release=app.config.get('APP_VERSION', 'unknown'),
        send_default_pii=False,
        max_breadcrumbs=50,
        before_send=before_send_filter,
    )

    app.logger.info(f"Sentry inicializado: environment={environment}")


def before_send_filter(event, hint):
    """Remove cabeçalhos sensíveis e descarta erros de domínio esperados (4xx)."""
    exc_info = hint.get('exc_info') if hint else None
    if exc_info:
        from ..common.exceptions import TrabalhosException, StorageError

        exc = exc_info[1]
        if isinstance(exc, TrabalhosException) and not isinstance(exc, StorageError):
            return None

    if 'request' in event:
        headers = event['request'].get('headers', {})
        if 'Authorization' in headers:
            headers['Authorization'] = '[Filtered]'
        if 'Cookie' in headers:
            headers['Cookie'] = '[Filtered]'

    return event


def capture_exception(exception, context=None):
    """Captura uma exceção manualmente, com contexto adicional opcional."""
    if not sentry_sdk.is_initialized():
        return
    with sentry_sdk.new_scope() as scope:
        for key, value in (context or {}).items():
            scope.set_extra(key, value)
        sentry_sdk.capture_exception(exception)
