import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

# Prioridade: .env.local (desenvolvimento) > .env (produção)
root_path = Path(__file__).resolve().parents[3]
env_local = root_path / '.env.local'
env_prod = root_path / '.env'

if env_local.exists():
    load_dotenv(str(env_local), override=True)
elif env_prod.exists():
    load_dotenv(str(env_prod), override=True)
else:
    _dotenv_path = find_dotenv(usecwd=True)
    if _dotenv_path:
        load_dotenv(_dotenv_path, override=True)


def _env_bool(name, default='false'):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes')


class Config:
    """Configuração base da aplicação."""

    SECRET_KEY = os.environ.get('SECRET_KEY') or os.environ.get('FLASK_SECRET_KEY')
    if not SECRET_KEY:
        raise ValueError("Nenhuma variável de ambiente SECRET_KEY ou FLASK_SECRET_KEY foi definida.")

    DATABASE_URL = os.environ.get('DATABASE_URL')

    USE_SQLITE_ENV = _env_bool('USE_SQLITE_LOCALLY')

    # SQLite pela URL, pela variável USE_SQLITE_LOCALLY ou na ausência de DATABASE_URL
    if USE_SQLITE_ENV or (DATABASE_URL and DATABASE_URL.startswith('sqlite')):
        USE_SQLITE_LOCALLY = True
    elif DATABASE_URL:
        USE_SQLITE_LOCALLY = False
    else:
        USE_SQLITE_LOCALLY = True

    SQLITE_PATH = os.environ.get('SQLITE_PATH')

    DB_POOL_MIN = int(os.environ.get('DB_POOL_MIN', '2'))
    DB_POOL_MAX = int(os.environ.get('DB_POOL_MAX', '20'))

    TIMEZONE_LOCAL = os.environ.get('TIMEZONE_LOCAL', 'America/Sao_Paulo')

    # --- ARMAZENAMENTO DE PÔSTERES ---
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or str(root_path / 'uploads')
    POSTER_MAX_BYTES = int(os.environ.get('POSTER_MAX_BYTES', str(20 * 1024 * 1024)))
    MAX_CONTENT_LENGTH = POSTER_MAX_BYTES + 1024 * 1024

    R2_ENDPOINT_URL = os.environ.get('CLOUDFLARE_ENDPOINT_URL')
    R2_ACCESS_KEY_ID = os.environ.get('CLOUDFLARE_ACCESS_KEY_ID')
    R2_SECRET_ACCESS_KEY = os.environ.get('CLOUDFLARE_SECRET_ACCESS_KEY')
    CLOUDFLARE_BUCKET_NAME = os.environ.get('CLOUDFLARE_BUCKET_NAME')

    R2_CONFIGURADO = all([
        R2_ENDPOINT_URL,
        R2_ACCESS_KEY_ID,
        R2_SECRET_ACCESS_KEY,
        CLOUDFLARE_BUCKET_NAME,
    ])
    # ---------------------------------

    PERMANENT_SESSION_LIFETIME = 60 * 60 * 24 * 7

    # Em localhost, SECURE deve ser False para o cookie ser enviado
    SESSION_COOKIE_SECURE = _env_bool('SESSION_COOKIE_SECURE', 'true') if not USE_SQLITE_LOCALLY else False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # CSRF (Flask-WTF): clientes enviam o token no header X-CSRFToken
    WTF_CSRF_ENABLED = _env_bool('WTF_CSRF_ENABLED', 'true')
    WTF_CSRF_TIME_LIMIT = None

    EMAIL_DRIVER = os.environ.get('EMAIL_DRIVER', 'smtp').lower()

    SMTP_HOST = os.environ.get('SMTP_HOST')
    SMTP_PORT = int(os.environ.get('SMTP_PORT', '587'))
    SMTP_USER = os.environ.get('SMTP_USER')
    SMTP_PASSWORD = os.environ.get('SMTP_PASSWORD')
    SMTP_FROM = os.environ.get('SMTP_FROM') or os.environ.get('SMTP_USER')
    SMTP_USE_TLS = _env_bool('SMTP_USE_TLS', 'true')
    SMTP_USE_SSL = _env_bool('SMTP_USE_SSL')

    SENDGRID_API_KEY = os.environ.get('SENDGRID_API_KEY')

    if EMAIL_DRIVER == 'smtp':
        EMAIL_CONFIGURADO = all([SMTP_HOST, SMTP_PORT, SMTP_FROM])
    elif EMAIL_DRIVER == 'sendgrid':
        EMAIL_CONFIGURADO = bool(SENDGRID_API_KEY and SMTP_FROM)
    else:
        EMAIL_CONFIGURADO = False

    NOTIFICAR_POR_EMAIL = _env_bool('NOTIFICAR_POR_EMAIL')

    RATELIMIT_ENABLED = _env_bool('RATELIMIT_ENABLED', 'true')
    RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', '100 per minute')
    RATELIMIT_STORAGE_URI = os.environ.get('REDIS_URL') or 'memory://'

    LOG_DIR = os.environ.get('LOG_DIR')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_ROTATION_ENABLED = _env_bool('LOG_ROTATION_ENABLED', 'true')
    LOG_RETENTION_DAYS = int(os.environ.get('LOG_RETENTION_DAYS', '14'))

    SENTRY_DSN = os.environ.get('SENTRY_DSN')
    APP_VERSION = os.environ.get('APP_VERSION', '1.0.0')
    FLASK_ENV = os.environ.get('FLASK_ENV', 'production')

    CORS_ALLOWED_ORIGINS = [o.strip() for o in os.environ.get('CORS_ALLOWED_ORIGINS', '').split(',') if o.strip()]
