"""
Blueprint para health checks e monitoramento.
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify

health_bp = Blueprint('health', __name__, url_prefix='/api')


def check_database_connection():
    """
    Verifica se a conexão com o banco de dados está funcionando.
    Retorna (status: bool, message: str, response_time_ms: float)
    """
    start_time = datetime.now()
    use_sqlite = current_app.config.get('USE_SQLITE_LOCALLY', False)

    try:
        from ..db import query_db

        result = query_db("SELECT 1 as test", one=True)
        response_time = (datetime.now() - start_time).total_seconds() * 1000

        if result and result.get('test') == 1:
            db_type = 'SQLite' if use_sqlite else 'PostgreSQL'
            return True, f"{db_type} connection OK", response_time
        return False, "Database query returned unexpected result", response_time

    except Exception as e:
        response_time = (datetime.now() - start_time).total_seconds() * 1000
        return False, f"Database connection failed: {type(e).__name__}", response_time


def check_storage():
    """Retorna (status: bool, message: str) do armazenamento de pôsteres."""
    storage = current_app.extensions.get('trabalhos_storage')
    if storage is None:
        return False, "Storage not initialized"
    return True, f"{type(storage).__name__} configured"


@health_bp.route('/health', methods=['GET'])
def health_check():
    """
    Endpoint de health check para monitoramento.
    Retorna status da aplicação, banco de dados e armazenamento.
    """
    db_status, db_message, db_response_time = check_database_connection()
    storage_status, storage_message = check_storage()
    schema = current_app.extensions.get('trabalhos_schema')

    overall_status = "healthy" if db_status else "unhealthy"
    response = {
        "status": overall_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": current_app.config.get('APP_VERSION', '1.0.0'),
        "checks": {
            "database": {
                "status": "up" if db_status else "down",
                "message": db_message,
                "response_time_ms": round(db_response_time, 2),
                "schema_version": schema.versao if schema else None,
            },
            "storage": {
                "status": "up" if storage_status else "down",
                "message": storage_message,
            },
        },
    }

    return jsonify(response), 200 if db_status else 503


@health_bp.route('/health/live', methods=['GET'])
def liveness_check():
    """Endpoint de liveness: o processo está respondendo."""
    return jsonify({"status": "alive"}), 200
