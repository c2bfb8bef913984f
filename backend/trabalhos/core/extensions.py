import boto3
from botocore.client import Config as BotocoreConfig
from flask import g
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .storage import LocalStorage, R2Storage


def rate_limit_key():
    """Chave do rate limit: id do usuário autenticado ou IP."""
    usuario = getattr(g, 'usuario', None)
    if usuario and usuario.get('id'):
        return f"usuario:{usuario['id']}"
    return get_remote_address()


# Janela fixa em memória: cada contador expira sozinho ao fim da sua janela
limiter = Limiter(
    key_func=rate_limit_key,
    strategy="fixed-window",
    headers_enabled=True,
)


def init_limiter(app):
    """
    Inicializa o Flask-Limiter com o limite global da configuração.
    RATELIMIT_ENABLED=False (testes) desliga todos os limites.
    """
    app.config.setdefault('RATELIMIT_STORAGE_URI', 'memory://')
    app.config.setdefault('RATELIMIT_DEFAULT', '100 per minute')
    limiter.init_app(app)
    app.logger.info(
        f"Extensão Limiter inicializada (limite global: {app.config['RATELIMIT_DEFAULT']}, "
        f"ativo: {app.config.get('RATELIMIT_ENABLED', True)})"
    )


def init_storage(app):
    """Escolhe o armazenamento de pôsteres: R2 (boto3) quando configurado, senão disco local."""
    if app.config.get('R2_CONFIGURADO', False):
        client = boto3.client(
            's3',
            endpoint_url=app.config['R2_ENDPOINT_URL'],
            aws_access_key_id=app.config['R2_ACCESS_KEY_ID'],
            aws_secret_access_key=app.config['R2_SECRET_ACCESS_KEY'],
            config=BotocoreConfig(
                signature_version='s3v4',
                s3={'addressing_style': 'virtual'}
            ),
            region_name='auto'
        )
        storage = R2Storage(client, app.config['CLOUDFLARE_BUCKET_NAME'])
        app.logger.info("Armazenamento de pôsteres: R2 (boto3 client)")
    else:
        storage = LocalStorage(app.config['UPLOAD_FOLDER'])
        app.logger.info(f"Armazenamento de pôsteres: disco local em {app.config['UPLOAD_FOLDER']}")

    app.extensions['trabalhos_storage'] = storage
    return storage
