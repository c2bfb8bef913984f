import sqlite3
from contextlib import contextmanager

import psycopg2
from flask import current_app

from .common.exceptions import DatabaseError
from .common.utils import parse_db_datetime
from .config.logging_config import db_logger
from .database import get_db_connection as get_pooled_connection
from .database.schema import get_schema_info

DB_ERRORS = (sqlite3.Error, psycopg2.Error)


def get_db_connection():
    return get_pooled_connection()


def _adaptar(query, db_type):
    if db_type == 'sqlite':
        return query.replace('%s', '?')
    return query


def _rows(cursor, one):
    if one:
        result = cursor.fetchone()
        return dict(result) if result else None
    return [dict(row) for row in cursor.fetchall()]


def query_db(query, args=(), one=False):
    """
    Executa uma query SELECT (APENAS LEITURA) e retorna o resultado como dict(s).
    Falhas do banco viram DatabaseError.
    """
    conn, db_type = None, None
    try:
        conn, db_type = get_db_connection()
        cursor = conn.cursor()
        cursor.execute(_adaptar(query, db_type), args)
        result = _rows(cursor, one)
        if db_type == 'postgres':
            conn.commit()
        return result
    except DB_ERRORS as e:
        current_app.logger.error(f"Database query error: {e}", exc_info=True)
        current_app.logger.debug(f"Query: {query[:100]}...")
        if conn:
            conn.rollback()
        raise DatabaseError(f"Erro ao executar query: {e}", {'query': query[:100]}) from e
    finally:
        if db_type == 'sqlite' and conn:
            conn.close()


def execute_db(query, args=()):
    """
    Executa uma query de INSERT, UPDATE ou DELETE isolada (autocommit).
    Retorna o número de linhas afetadas.
    """
    conn, db_type = None, None
    try:
        conn, db_type = get_db_connection()
        cursor = conn.cursor()
        cursor.execute(_adaptar(query, db_type), args)
        conn.commit()
        return cursor.rowcount
    except DB_ERRORS as e:
        current_app.logger.error(f"Database execution error: {e}", exc_info=True)
        current_app.logger.debug(f"Query: {query[:100]}...")
        if conn:
            conn.rollback()
        raise DatabaseError(f"Erro ao executar query: {e}", {'query': query[:100]}) from e
    finally:
        if db_type == 'sqlite' and conn:
            conn.close()


class Transacao:
    """Cursor de uma transação aberta, com placeholders %s em qualquer banco."""

    def __init__(self, conn, cursor, db_type):
        self.conn = conn
        self.cursor = cursor
        self.db_type = db_type

    @property
    def for_update(self):
        """Cláusula de lock de linha; no SQLite o BEGIN IMMEDIATE já serializa os escritores."""
        info = get_schema_info()
        suporta = info.suporta_for_update if info else self.db_type == 'postgres'
        return ' FOR UPDATE' if suporta else ''

    def query(self, query, args=(), one=False):
        self.cursor.execute(_adaptar(query, self.db_type), args)
        return _rows(self.cursor, one)

    def execute(self, query, args=()):
        self.cursor.execute(_adaptar(query, self.db_type), args)
        return self.cursor.rowcount

    def insert(self, query, args=()):
        """Executa um INSERT e retorna o id gerado."""
        if self.db_type == 'postgres':
            self.cursor.execute(query + ' RETURNING id', args)
            return self.cursor.fetchone()['id']
        self.cursor.execute(_adaptar(query, self.db_type), args)
        return self.cursor.lastrowid

    def agora(self):
        """Horário atual segundo o banco (UTC, com timezone)."""
        row = self.query("SELECT CURRENT_TIMESTAMP AS agora", one=True)
        return parse_db_datetime(row['agora'])

    def timestamp_param(self, dt):
        """Converte datetime UTC no formato gravado pelo banco."""
        if dt is None:
            return None
        if self.db_type == 'sqlite':
            return dt.strftime('%Y-%m-%d %H:%M:%S')
        return dt


@contextmanager
def db_transacao():
    """
    Context manager para transações atômicas.
    Commit ao final do bloco; rollback em qualquer exceção.
    No SQLite usa BEGIN IMMEDIATE para obter o lock de escrita logo no início.
    """
    conn, db_type = get_db_connection()

    try:
        if db_type == 'sqlite':
            conn.execute("BEGIN IMMEDIATE TRANSACTION")
        cursor = conn.cursor()

        yield Transacao(conn, cursor, db_type)

        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        db_logger.error(f"Database transaction error: {e}", exc_info=True)
        raise DatabaseError(f"Erro na transação: {e}") from e
    except Exception:
        conn.rollback()
        raise
    finally:
        if db_type == 'sqlite':
            conn.close()


def agora_banco():
    """Horário atual segundo o banco, fora de transação."""
    row = query_db("SELECT CURRENT_TIMESTAMP AS agora", one=True)
    return parse_db_datetime(row['agora'])
