"""
Testes unitários para o controle de acesso (security/acesso.py).

O perfil pode estar gravado em vários formatos; todas as checagens dependem
do conjunto canônico produzido por normalizar_perfis.
"""

import pytest

from backend.trabalhos.common.exceptions import AuthorizationError
from backend.trabalhos.security.acesso import (
    exigir_admin,
    is_admin,
    is_autor,
    normalizar_perfis,
    perfis_do_usuario,
)


class TestNormalizarPerfis:
    @pytest.mark.parametrize(
        "valor",
        [
            "instrutor",
            "Instrutor",
            " INSTRUTORA ",
            "usuario, instrutor",
            "usuario;instrutor",
            "usuario|instrutor",
            '["Instrutora"]',
            ["usuario", "Instrutor"],
            [{"nome": "Instrutor"}],
            {"perfil": "avaliador"},
        ],
    )
    def test_formatos_equivalentes(self, valor):
        assert "instrutor" in normalizar_perfis(valor)

    def test_acentos_e_aliases_de_admin(self):
        assert normalizar_perfis("Admin") == frozenset({"administrador"})
        assert normalizar_perfis("Administradora") == frozenset({"administrador"})

    def test_vazio(self):
        assert normalizar_perfis(None) == frozenset()
        assert normalizar_perfis("") == frozenset()
        assert normalizar_perfis([]) == frozenset()

    def test_json_malformado_cai_no_texto(self):
        assert normalizar_perfis("[instrutor, usuario") == frozenset({"instrutor", "usuario"})


class TestChecagens:
    def test_is_admin_usa_perfis_resolvidos(self):
        assert is_admin({"id": 1, "perfis": frozenset({"administrador"})})
        assert not is_admin({"id": 2, "perfis": frozenset({"instrutor"})})

    def test_is_admin_com_perfil_bruto(self):
        assert is_admin({"id": 1, "perfil": "usuario, Admin"})

    def test_perfis_de_usuario_anonimo(self):
        assert perfis_do_usuario(None) == frozenset()

    def test_is_autor(self):
        assert is_autor({"id": 2}, {"usuario_id": 2})
        assert not is_autor({"id": 3}, {"usuario_id": 2})
        assert not is_autor(None, {"usuario_id": 2})

    def test_exigir_admin(self, app_context):
        with pytest.raises(AuthorizationError):
            exigir_admin({"id": 2, "perfis": frozenset({"usuario"})})
        exigir_admin({"id": 1, "perfis": frozenset({"administrador"})})
