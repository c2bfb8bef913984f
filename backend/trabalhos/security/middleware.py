from flask import request


def init_security_headers(app):
    @app.after_request
    def set_security_headers(response):
        is_production = not app.config.get('USE_SQLITE_LOCALLY', False)

        response.headers['Content-Security-Policy'] = "default-src 'none'; frame-ancestors 'none'"
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        if is_production:
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains; preload'

        # Respostas com dados de avaliação não devem ficar em cache compartilhado
        if '/admin/' in request.path or '/avaliador/' in request.path:
            response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, private'
            response.headers['Pragma'] = 'no-cache'

        return response
    app.logger.info("Security headers middleware initialized")


def configure_cors(app):
    allowed_origins = app.config.get('CORS_ALLOWED_ORIGINS') or []
    if allowed_origins:
        @app.after_request
        def add_cors_headers(response):
            origin = request.headers.get('Origin')
            if origin in allowed_origins:
                response.headers['Access-Control-Allow-Origin'] = origin
                response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, DELETE, OPTIONS'
                response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization'
                response.headers['Access-Control-Allow-Credentials'] = 'true'
            return response
        app.logger.info(f"CORS configured for origins: {allowed_origins}")
    else:
        app.logger.info("CORS not configured (default: same-origin only)")
