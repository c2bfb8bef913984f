"""
Módulo de Connection Pooling para PostgreSQL.
Em desenvolvimento e testes usa SQLite com uma conexão por operação.
"""

import os
import sqlite3
from threading import Lock

from flask import current_app, g
from psycopg2 import pool
from psycopg2.extras import RealDictCursor

_pg_pool = None
_pool_lock = Lock()


def init_connection_pool(app):
    """
    Inicializa o pool de conexões PostgreSQL.
    Chamado durante a inicialização da aplicação.
    """
    global _pg_pool

    if app.config.get('USE_SQLITE_LOCALLY', False):
        return

    database_url = app.config.get('DATABASE_URL')
    if not database_url:
        raise RuntimeError("DATABASE_URL não definido para PostgreSQL")

    with _pool_lock:
        if _pg_pool is None:
            minconn = app.config.get('DB_POOL_MIN', 2)
            maxconn = app.config.get('DB_POOL_MAX', 20)
            _pg_pool = pool.ThreadedConnectionPool(
                minconn=minconn,
                maxconn=maxconn,
                dsn=database_url,
                cursor_factory=RealDictCursor
            )
            app.logger.info(f"PostgreSQL connection pool initialized ({minconn}-{maxconn} connections)")


def sqlite_path(app=None):
    """Caminho do arquivo SQLite: SQLITE_PATH, DATABASE_URL sqlite:/// ou padrão no pacote."""
    app = app or current_app
    path = app.config.get('SQLITE_PATH')
    database_url = app.config.get('DATABASE_URL') or ''
    if not path and database_url.startswith('sqlite:///'):
        path = database_url[len('sqlite:///'):]
    if not path:
        base_dir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
        is_testing = app.config.get('TESTING', False)
        path = os.path.join(base_dir, 'trabalhos_test.db' if is_testing else 'trabalhos.db')
    return path


def get_db_connection():
    """
    Retorna uma conexão do pool (PostgreSQL) ou cria nova (SQLite).
    Para PostgreSQL, a conexão é armazenada em g e reutilizada durante a requisição.
    """
    if current_app.config.get('USE_SQLITE_LOCALLY', False):
        try:
            conn = sqlite3.connect(sqlite_path(), isolation_level=None, timeout=30)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            return conn, 'sqlite'
        except sqlite3.Error as e:
            current_app.logger.error(f"SQLite connection error: {e}")
            raise

    if _pg_pool is None:
        raise RuntimeError("Connection pool not initialized")
    if 'db_conn' not in g or getattr(g.db_conn, 'closed', 1) != 0:
        g.db_conn = _pg_pool.getconn()
        g.db_type = 'postgres'
    return g.db_conn, g.db_type


def close_db_connection(error=None):
    """
    Retorna a conexão ao pool (PostgreSQL).
    Deve ser chamado no teardown da requisição.
    """
    db_conn = g.pop('db_conn', None)
    g.pop('db_type', None)

    if db_conn is not None and _pg_pool is not None:
        is_closed = getattr(db_conn, 'closed', 1) != 0
        if not is_closed and error is not None:
            db_conn.rollback()
        _pg_pool.putconn(db_conn, close=is_closed)


def close_all_connections():
    """
    Fecha todas as conexões do pool.
    Deve ser chamado no shutdown da aplicação.
    """
    global _pg_pool

    if _pg_pool is not None:
        with _pool_lock:
            _pg_pool.closeall()
            _pg_pool = None
