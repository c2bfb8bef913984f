import atexit

from flask import Flask
from flask_wtf.csrf import CSRFProtect
from werkzeug.middleware.proxy_fix import ProxyFix

from .config.logging_config import setup_logging
from .core.extensions import init_limiter, init_storage

csrf = CSRFProtect()


def create_app(test_config=None):
    app = Flask(__name__)

    app.wsgi_app = ProxyFix(
        app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1
    )

    from .config import Config
    app.config.from_object(Config)

    if test_config is not None:
        app.config.from_mapping(test_config)

    setup_logging(app)

    try:
        from .config.sentry_config import init_sentry
        init_sentry(app)
    except Exception as e:
        app.logger.warning(f"Sentry não inicializado: {e}")

    from flask_compress import Compress
    compress = Compress()
    compress.init_app(app)
    app.config['COMPRESS_MIMETYPES'] = ['application/json']
    app.config['COMPRESS_LEVEL'] = 6
    app.config['COMPRESS_MIN_SIZE'] = 500

    from .database import close_all_connections, close_db_connection, init_connection_pool
    from .database import schema
    if not app.config.get('USE_SQLITE_LOCALLY', False):
        init_connection_pool(app)
        atexit.register(close_all_connections)

    app.teardown_appcontext(close_db_connection)
    schema.init_app(app)

    if app.config.get('USE_SQLITE_LOCALLY', False):
        # Em SQLite o schema é aplicado no startup; em PostgreSQL via `flask init-db`
        with app.app_context():
            schema.init_db()

    try:
        schema.probe_schema(app)
    except Exception as e:
        app.logger.warning(f"Schema de trabalhos indisponível (execute `flask init-db`): {e}")
        db_type = 'sqlite' if app.config.get('USE_SQLITE_LOCALLY', False) else 'postgres'
        app.extensions['trabalhos_schema'] = schema.SchemaInfo(
            db_type=db_type, versao=0, suporta_for_update=(db_type == 'postgres')
        )

    init_limiter(app)
    init_storage(app)
    csrf.init_app(app)

    from .security.middleware import configure_cors, init_security_headers
    init_security_headers(app)
    configure_cors(app)

    from .core.event_handlers import register_event_handlers
    from .core.events import event_bus
    register_event_handlers(event_bus)

    from .common.error_handlers import register_error_handlers
    register_error_handlers(app)

    from .blueprints.admin import admin_bp
    from .blueprints.auth import auth_bp, load_logged_in_user
    from .blueprints.avaliador import avaliador_bp
    from .blueprints.health import health_bp
    from .blueprints.trabalhos import trabalhos_bp

    csrf.exempt(health_bp)

    app.before_request(load_logged_in_user)

    app.register_blueprint(auth_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(trabalhos_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(avaliador_bp)

    app.logger.info(f"Aplicação de trabalhos iniciada (versão {app.config.get('APP_VERSION')})")
    return app
