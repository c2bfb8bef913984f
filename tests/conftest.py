"""
Conftest.py — Configuração global de testes para pytest.

Contém fixtures reutilizáveis para:
- Criação de app Flask em modo de teste (SQLite temporário por teste)
- Cliente HTTP de teste com sessão de cada perfil
- Usuários de teste (admin, autora, instrutores)
- Chamada publicada e submissão já submetida
"""

import os

import pytest

# Forçar ambiente de teste ANTES de qualquer import do projeto
os.environ["USE_SQLITE_LOCALLY"] = "True"
os.environ["FLASK_ENV"] = "testing"
os.environ["SECRET_KEY"] = "test-secret-key-do-not-use-in-production"
os.environ.pop("SENTRY_DSN", None)

from tests.fixtures import (  # noqa: E402
    ADMIN,
    ADMIN_ID,
    AUTOR,
    AUTOR_ID,
    USUARIOS,
    make_payload_chamada,
    make_payload_submissao,
)


@pytest.fixture
def app(tmp_path):
    """Cria uma instância da aplicação Flask para testes, com banco próprio."""
    from backend.trabalhos import create_app

    test_config = {
        "TESTING": True,
        "USE_SQLITE_LOCALLY": True,
        "SQLITE_PATH": str(tmp_path / "trabalhos_test.db"),
        "SECRET_KEY": "test-secret-key-do-not-use-in-production",
        "WTF_CSRF_ENABLED": False,  # Desabilitar CSRF em testes
        "RATELIMIT_ENABLED": False,
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
        "LOG_DIR": str(tmp_path / "logs"),
        "NOTIFICAR_POR_EMAIL": False,
        "R2_CONFIGURADO": False,
    }

    app = create_app(test_config=test_config)

    from backend.trabalhos.db import execute_db

    with app.app_context():
        for usuario in USUARIOS:
            execute_db("INSERT INTO usuarios (id, nome, email, perfil) VALUES (%s, %s, %s, %s)", usuario)

    yield app


@pytest.fixture
def client(app):
    """Cria um cliente de teste HTTP."""
    with app.test_client() as client:
        yield client


@pytest.fixture
def runner(app):
    """Cria um runner para testar CLI commands."""
    return app.test_cli_runner()


@pytest.fixture
def app_context(app):
    """Fornece um app context para testes que precisam."""
    with app.app_context():
        yield app


@pytest.fixture
def login(client):
    """Autentica o cliente de teste como o usuário informado."""
    def _login(usuario_id):
        with client.session_transaction() as sess:
            sess["user"] = {"id": usuario_id}
        return client
    return _login


@pytest.fixture
def admin_client(login):
    """Cliente de teste com sessão autenticada como administrador."""
    return login(ADMIN_ID)


@pytest.fixture
def autor_client(login):
    """Cliente de teste com sessão autenticada como autora."""
    return login(AUTOR_ID)


@pytest.fixture
def chamada(app_context):
    """Chamada publicada: dict com id, linha_id, criterio_id e criterio_oral_id."""
    from backend.trabalhos.db import query_db
    from backend.trabalhos.domain.chamadas import criar_chamada, publicar_chamada

    chamada_id = criar_chamada(make_payload_chamada(), ADMIN["id"])
    publicar_chamada(chamada_id, True)

    def _primeiro(tabela):
        return query_db(f"SELECT id FROM {tabela} WHERE chamada_id = %s", (chamada_id,), one=True)["id"]

    return {
        "id": chamada_id,
        "linha_id": _primeiro("trabalhos_chamada_linhas"),
        "criterio_id": _primeiro("trabalhos_chamada_criterios"),
        "criterio_oral_id": _primeiro("trabalhos_chamada_criterios_orais"),
    }


@pytest.fixture
def submissao(chamada):
    """Id de uma submissão já submetida pela autora na chamada publicada."""
    from backend.trabalhos.domain.submissoes import criar_submissao

    return criar_submissao(chamada["id"], make_payload_submissao(chamada["linha_id"]), AUTOR)


@pytest.fixture
def encerrar_prazo(app_context):
    """Move o prazo da chamada para o passado."""
    from backend.trabalhos.db import execute_db

    def _encerrar(chamada_id):
        execute_db(
            "UPDATE trabalhos_chamadas SET prazo_final_br = %s WHERE id = %s", ("2000-01-01 00:00:00", chamada_id)
        )
    return _encerrar
