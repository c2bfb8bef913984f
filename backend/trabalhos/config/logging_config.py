import logging
import os
from logging.handlers import TimedRotatingFileHandler

from flask import g, has_app_context

LOGGER_NAMES = ['app', 'api', 'database', 'security', 'chamadas', 'submissoes', 'avaliacao']


class ContextFilter(logging.Filter):
    """Filtro para adicionar o usuário da requisição aos logs.
    Preenche 'user_email' e 'user_profile' mesmo fora de app context.
    """

    def filter(self, record):
        usuario = None
        if has_app_context():
            usuario = getattr(g, 'usuario', None)

        if usuario and usuario.get('email'):
            record.user_email = usuario['email']
            perfis = ','.join(sorted(usuario.get('perfis') or [])) or 'sem perfil'
            record.user_profile = f"{usuario.get('nome') or usuario['email']} ({perfis})"
        else:
            record.user_email = 'system'
            record.user_profile = 'system'
        return True


def setup_logging(app):
    """Configura o sistema de logs para a aplicação."""

    default_dir = os.path.join(os.path.dirname(__file__), '..', 'logs')
    log_dir = app.config.get('LOG_DIR') or default_dir
    os.makedirs(log_dir, exist_ok=True)

    log_level_str = app.config.get('LOG_LEVEL', 'INFO')
    log_level = getattr(logging, str(log_level_str).upper(), logging.INFO)

    log_format = '%(asctime)s - %(levelname)s - %(user_email)s - %(user_profile)s - %(name)s - %(message)s'
    date_format = '%Y-%m-%d %H:%M:%S'
    formatter = logging.Formatter(log_format, date_format)

    rotation_enabled = bool(app.config.get('LOG_ROTATION_ENABLED', True))
    retention_days = int(app.config.get('LOG_RETENTION_DAYS', 14))

    if rotation_enabled:
        file_handler = TimedRotatingFileHandler(
            os.path.join(log_dir, 'app.log'), when='midnight', backupCount=retention_days, encoding='utf-8'
        )
        error_handler = TimedRotatingFileHandler(
            os.path.join(log_dir, 'errors.log'), when='midnight', backupCount=retention_days, encoding='utf-8'
        )
    else:
        file_handler = logging.FileHandler(os.path.join(log_dir, 'app.log'), encoding='utf-8')
        error_handler = logging.FileHandler(os.path.join(log_dir, 'errors.log'), encoding='utf-8')
    error_handler.setLevel(logging.ERROR)

    console_handler = logging.StreamHandler()

    handlers = [file_handler, error_handler, console_handler]
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(ContextFilter())

    app.logger.setLevel(log_level)
    for handler in handlers:
        app.logger.addHandler(handler)
    app.logger.addFilter(ContextFilter())

    for name in LOGGER_NAMES:
        named_logger = logging.getLogger(name)
        named_logger.setLevel(log_level)
        # create_app pode rodar mais de uma vez no mesmo processo (testes)
        for old in list(named_logger.handlers):
            named_logger.removeHandler(old)
            old.close()
        for handler in handlers:
            named_logger.addHandler(handler)
        named_logger.propagate = False

    app.logger.info('Sistema de logging configurado com sucesso')


def get_logger(name):
    """Obtém um logger com o nome especificado"""
    return logging.getLogger(name)


app_logger = get_logger('app')
api_logger = get_logger('api')
db_logger = get_logger('database')
security_logger = get_logger('security')
chamadas_logger = get_logger('chamadas')
submissoes_logger = get_logger('submissoes')
avaliacao_logger = get_logger('avaliacao')
