"""
Controle de acesso do módulo de trabalhos.

Todas as checagens consomem o conjunto canônico de perfis produzido por
`normalizar_perfis`, independente de como o perfil foi gravado (texto, lista
separada por vírgula, array JSON ou linhas de tabela associada).
"""
import json
import unicodedata

from ..common.exceptions import AuthorizationError
from ..config.logging_config import security_logger
from ..constants import PERFIL_ADMIN
from ..db import query_db

_ALIASES = {
    'admin': PERFIL_ADMIN,
    'adm': PERFIL_ADMIN,
    'administradora': PERFIL_ADMIN,
    'instrutora': 'instrutor',
    'avaliador': 'instrutor',
}

_SEPARADORES = (',', ';', '|')


def _normalizar_nome(nome):
    nome = unicodedata.normalize('NFKD', str(nome)).encode('ascii', 'ignore').decode('ascii')
    nome = nome.strip().lower()
    return _ALIASES.get(nome, nome)


def normalizar_perfis(valor):
    """
    Converte qualquer formato de perfil em um frozenset de nomes canônicos.

    >>> sorted(normalizar_perfis('Administrador, instrutor'))
    ['administrador', 'instrutor']
    >>> sorted(normalizar_perfis([{'nome': 'Instrutor'}]))
    ['instrutor']
    """
    if valor is None:
        return frozenset()

    if isinstance(valor, dict):
        return normalizar_perfis(valor.get('nome') or valor.get('perfil'))

    if isinstance(valor, (list, tuple, set, frozenset)):
        perfis = set()
        for item in valor:
            perfis |= normalizar_perfis(item)
        return frozenset(perfis)

    texto = str(valor).strip()
    if not texto:
        return frozenset()

    if texto.startswith('[') or texto.startswith('{'):
        try:
            return normalizar_perfis(json.loads(texto))
        except ValueError:
            texto = texto.strip('[]{}')

    for sep in _SEPARADORES[1:]:
        texto = texto.replace(sep, _SEPARADORES[0])
    nomes = (_normalizar_nome(p.strip('"\' ')) for p in texto.split(_SEPARADORES[0]))
    return frozenset(n for n in nomes if n)


def perfis_do_usuario(usuario):
    if not usuario:
        return frozenset()
    if 'perfis' in usuario:
        return frozenset(usuario['perfis'])
    return normalizar_perfis(usuario.get('perfil'))


def is_admin(usuario):
    return PERFIL_ADMIN in perfis_do_usuario(usuario)


def is_autor(usuario, submissao):
    return bool(usuario) and submissao is not None and submissao.get('usuario_id') == usuario.get('id')


def avaliador_ativo(usuario_id, submissao_id, tx=None):
    """True se o usuário tem atribuição ativa (não revogada) na submissão."""
    sql = """
        SELECT 1 AS ok FROM trabalhos_submissoes_avaliadores
        WHERE submissao_id = %s AND avaliador_id = %s AND revoked_at IS NULL
    """
    args = (submissao_id, usuario_id)
    row = tx.query(sql, args, one=True) if tx is not None else query_db(sql, args, one=True)
    return row is not None


def pode_avaliar_ou_ver(usuario, submissao_id, tx=None):
    if not usuario:
        return False
    if is_admin(usuario):
        return True
    return avaliador_ativo(usuario.get('id'), submissao_id, tx)


def exigir_admin(usuario):
    if not is_admin(usuario):
        security_logger.warning(f"Acesso administrativo negado para usuário {(usuario or {}).get('id')}")
        raise AuthorizationError("Acesso restrito a administradores.")


def exigir_avaliador_ou_admin(usuario, submissao_id, tx=None):
    if not pode_avaliar_ou_ver(usuario, submissao_id, tx):
        security_logger.warning(
            f"Usuário {(usuario or {}).get('id')} sem atribuição tentou avaliar a submissão {submissao_id}"
        )
        raise AuthorizationError("Apenas avaliadores atribuídos ou administradores podem avaliar.")

