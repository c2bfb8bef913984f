"""
Schema versionado do módulo de trabalhos.

Um único conjunto de DDL (adaptado por dialeto) aplicado no startup ou via
`flask init-db`. A versão aplicada fica em `schema_version` e o resultado da
sondagem é guardado em `app.extensions['trabalhos_schema']`.
"""

from dataclasses import dataclass

import click
from flask import current_app
from flask.cli import with_appcontext

SCHEMA_VERSION = 1

_DIALETOS = {
    'sqlite': {
        'pk': 'INTEGER PRIMARY KEY AUTOINCREMENT',
        'ts': 'TEXT',
        'bool': 'INTEGER',
        'false': '0',
        'true': '1',
    },
    'postgres': {
        'pk': 'SERIAL PRIMARY KEY',
        'ts': 'TIMESTAMPTZ',
        'bool': 'BOOLEAN',
        'false': 'FALSE',
        'true': 'TRUE',
    },
}

TABELAS = [
    """
    CREATE TABLE IF NOT EXISTS schema_version (
        versao INTEGER PRIMARY KEY,
        aplicado_em {ts} DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS usuarios (
        id {pk},
        nome VARCHAR(255) NOT NULL,
        email VARCHAR(255) UNIQUE,
        perfil TEXT,
        criado_em {ts} DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_chamadas (
        id {pk},
        titulo VARCHAR(200) NOT NULL,
        descricao_markdown TEXT NOT NULL,
        periodo_experiencia_inicio VARCHAR(7) NOT NULL,
        periodo_experiencia_fim VARCHAR(7) NOT NULL,
        prazo_final_br {ts} NOT NULL,
        aceita_poster {bool} NOT NULL DEFAULT {true},
        link_modelo_poster TEXT,
        max_coautores INTEGER NOT NULL DEFAULT 10,
        publicado {bool} NOT NULL DEFAULT {false},
        limites TEXT,
        criterios_outros TEXT,
        oral_outros TEXT,
        premiacao_texto TEXT,
        disposicoes_finais_texto TEXT,
        criado_por INTEGER REFERENCES usuarios(id),
        criado_em {ts} DEFAULT CURRENT_TIMESTAMP,
        atualizado_em {ts} DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_chamada_linhas (
        id {pk},
        chamada_id INTEGER NOT NULL REFERENCES trabalhos_chamadas(id) ON DELETE CASCADE,
        codigo VARCHAR(50),
        nome VARCHAR(255) NOT NULL,
        descricao TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_chamada_criterios (
        id {pk},
        chamada_id INTEGER NOT NULL REFERENCES trabalhos_chamadas(id) ON DELETE CASCADE,
        ordem INTEGER NOT NULL DEFAULT 1,
        titulo VARCHAR(255) NOT NULL,
        escala_min INTEGER NOT NULL DEFAULT 1,
        escala_max INTEGER NOT NULL DEFAULT 5,
        peso REAL NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_chamada_criterios_orais (
        id {pk},
        chamada_id INTEGER NOT NULL REFERENCES trabalhos_chamadas(id) ON DELETE CASCADE,
        ordem INTEGER NOT NULL DEFAULT 1,
        titulo VARCHAR(255) NOT NULL,
        escala_min INTEGER NOT NULL DEFAULT 1,
        escala_max INTEGER NOT NULL DEFAULT 3,
        peso REAL NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_submissoes (
        id {pk},
        usuario_id INTEGER NOT NULL REFERENCES usuarios(id),
        chamada_id INTEGER NOT NULL REFERENCES trabalhos_chamadas(id),
        titulo VARCHAR(255) NOT NULL,
        inicio_experiencia VARCHAR(7) NOT NULL,
        linha_tematica_id INTEGER REFERENCES trabalhos_chamada_linhas(id),
        introducao TEXT,
        objetivos TEXT,
        metodo TEXT,
        resultados TEXT,
        consideracoes TEXT,
        bibliografia TEXT,
        poster_arquivo_id INTEGER,
        status VARCHAR(30) NOT NULL DEFAULT 'rascunho',
        status_escrita VARCHAR(30),
        status_oral VARCHAR(30),
        observacoes_admin TEXT,
        nota_visivel {bool} NOT NULL DEFAULT {false},
        nota_escrita REAL,
        nota_oral REAL,
        nota_final REAL,
        criado_em {ts} DEFAULT CURRENT_TIMESTAMP,
        atualizado_em {ts} DEFAULT CURRENT_TIMESTAMP,
        CHECK (status IN ('rascunho', 'submetido', 'em_avaliacao',
                          'aprovado_exposicao', 'aprovado_oral', 'reprovado'))
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_coautores (
        id {pk},
        submissao_id INTEGER NOT NULL REFERENCES trabalhos_submissoes(id) ON DELETE CASCADE,
        nome VARCHAR(255) NOT NULL,
        email VARCHAR(255),
        unidade VARCHAR(255),
        papel VARCHAR(100),
        cpf VARCHAR(20),
        vinculo VARCHAR(100)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_arquivos (
        id {pk},
        submissao_id INTEGER NOT NULL REFERENCES trabalhos_submissoes(id) ON DELETE CASCADE,
        caminho TEXT NOT NULL,
        nome_original VARCHAR(255),
        mime_type VARCHAR(150),
        tamanho_bytes INTEGER,
        hash_sha256 VARCHAR(64) NOT NULL,
        criado_em {ts} DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_submissoes_avaliadores (
        submissao_id INTEGER NOT NULL REFERENCES trabalhos_submissoes(id) ON DELETE CASCADE,
        avaliador_id INTEGER NOT NULL REFERENCES usuarios(id),
        atribuido_por INTEGER REFERENCES usuarios(id),
        criado_em {ts} DEFAULT CURRENT_TIMESTAMP,
        revoked_at {ts},
        PRIMARY KEY (submissao_id, avaliador_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_avaliacoes_itens (
        id {pk},
        submissao_id INTEGER NOT NULL REFERENCES trabalhos_submissoes(id) ON DELETE CASCADE,
        avaliador_id INTEGER NOT NULL REFERENCES usuarios(id),
        criterio_id INTEGER NOT NULL REFERENCES trabalhos_chamada_criterios(id) ON DELETE CASCADE,
        nota INTEGER NOT NULL,
        comentarios TEXT,
        criado_em {ts} DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (submissao_id, avaliador_id, criterio_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS trabalhos_avaliacoes_orais_itens (
        id {pk},
        submissao_id INTEGER NOT NULL REFERENCES trabalhos_submissoes(id) ON DELETE CASCADE,
        avaliador_id INTEGER NOT NULL REFERENCES usuarios(id),
        criterio_id INTEGER NOT NULL REFERENCES trabalhos_chamada_criterios_orais(id) ON DELETE CASCADE,
        nota INTEGER NOT NULL,
        comentarios TEXT,
        criado_em {ts} DEFAULT CURRENT_TIMESTAMP,
        UNIQUE (submissao_id, avaliador_id, criterio_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notificacoes (
        id {pk},
        usuario_id INTEGER NOT NULL REFERENCES usuarios(id),
        tipo VARCHAR(50) NOT NULL,
        titulo VARCHAR(255) NOT NULL,
        mensagem TEXT NOT NULL,
        lida {bool} NOT NULL DEFAULT {false},
        criado_em {ts} DEFAULT CURRENT_TIMESTAMP
    )
    """,
]

INDICES = [
    "CREATE INDEX IF NOT EXISTS idx_submissoes_chamada ON trabalhos_submissoes (chamada_id)",
    "CREATE INDEX IF NOT EXISTS idx_submissoes_usuario ON trabalhos_submissoes (usuario_id)",
    "CREATE INDEX IF NOT EXISTS idx_submissoes_status ON trabalhos_submissoes (status)",
    "CREATE INDEX IF NOT EXISTS idx_submissoes_linha ON trabalhos_submissoes (linha_tematica_id)",
    "CREATE INDEX IF NOT EXISTS idx_linhas_chamada ON trabalhos_chamada_linhas (chamada_id)",
    "CREATE INDEX IF NOT EXISTS idx_criterios_chamada ON trabalhos_chamada_criterios (chamada_id)",
    "CREATE INDEX IF NOT EXISTS idx_criterios_orais_chamada ON trabalhos_chamada_criterios_orais (chamada_id)",
    "CREATE INDEX IF NOT EXISTS idx_avaliadores_avaliador ON trabalhos_submissoes_avaliadores (avaliador_id)",
    "CREATE INDEX IF NOT EXISTS idx_avaliacoes_submissao ON trabalhos_avaliacoes_itens (submissao_id)",
    "CREATE INDEX IF NOT EXISTS idx_avaliacoes_orais_submissao ON trabalhos_avaliacoes_orais_itens (submissao_id)",
    "CREATE INDEX IF NOT EXISTS idx_notificacoes_usuario ON notificacoes (usuario_id)",
]


@dataclass(frozen=True)
class SchemaInfo:
    """Capacidades do banco, sondadas uma vez no startup."""

    db_type: str
    versao: int
    suporta_for_update: bool


def statements_for(db_type):
    """DDL completo para o dialeto informado ('sqlite' ou 'postgres')."""
    dialeto = _DIALETOS[db_type]
    return [sql.format(**dialeto).strip() for sql in TABELAS] + INDICES


def init_db():
    """Aplica o schema (idempotente) e registra a versão."""
    from ..db import db_transacao

    with db_transacao() as tx:
        for sql in statements_for(tx.db_type):
            tx.cursor.execute(sql)
        atual = tx.query("SELECT MAX(versao) AS versao FROM schema_version", one=True)
        if not atual or atual['versao'] is None or atual['versao'] < SCHEMA_VERSION:
            tx.execute("INSERT INTO schema_version (versao) VALUES (%s)", (SCHEMA_VERSION,))
        db_type = tx.db_type

    current_app.logger.info(f"Schema de trabalhos na versão {SCHEMA_VERSION} ({db_type})")
    return db_type


def probe_schema(app):
    """Lê a versão aplicada e guarda as capacidades do banco no app."""
    from ..db import query_db

    with app.app_context():
        row = query_db("SELECT MAX(versao) AS versao FROM schema_version", one=True)
        versao = (row or {}).get('versao') or 0
        db_type = 'sqlite' if app.config.get('USE_SQLITE_LOCALLY', False) else 'postgres'

    if versao < SCHEMA_VERSION:
        app.logger.warning(f"Schema desatualizado: versão {versao}, esperado {SCHEMA_VERSION}")

    info = SchemaInfo(db_type=db_type, versao=versao, suporta_for_update=(db_type == 'postgres'))
    app.extensions['trabalhos_schema'] = info
    return info


def get_schema_info():
    return current_app.extensions.get('trabalhos_schema')


@click.command('init-db')
@with_appcontext
def init_db_command():
    """Cria as tabelas do banco de dados via linha de comando."""
    init_db()
    click.echo('Inicialização do banco de dados concluída.')


def init_app(app):
    """Registra o comando init-db na aplicação."""
    app.cli.add_command(init_db_command)
