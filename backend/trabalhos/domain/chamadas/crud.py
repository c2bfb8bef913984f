"""
Registro de chamadas: criação, edição, publicação, remoção e consultas.
"""
from flask import current_app

from ...common.exceptions import NotFoundError, StateConflictError, ValidationError
from ...common.utils import format_datetime_iso, parse_db_datetime
from ...config.logging_config import chamadas_logger
from ...constants import ESCALA_ORAL_PADRAO
from ...db import agora_banco, db_transacao, query_db
from .validacao import mesclar_limites, normalizar_criterios, normalizar_linhas, validar_dados_chamada

COLUNAS_CHAMADA = """
    id, titulo, descricao_markdown, periodo_experiencia_inicio, periodo_experiencia_fim,
    prazo_final_br, aceita_poster, link_modelo_poster, max_coautores, publicado, limites,
    criterios_outros, oral_outros, premiacao_texto, disposicoes_finais_texto,
    criado_por, criado_em, atualizado_em
"""


def _tz_local():
    return current_app.config.get('TIMEZONE_LOCAL', 'America/Sao_Paulo')


def serializar_chamada(row, agora=None):
    chamada = dict(row)
    prazo = parse_db_datetime(chamada.get('prazo_final_br'))
    chamada['prazo_final_br'] = prazo.isoformat() if prazo else None
    chamada['criado_em'] = format_datetime_iso(chamada.get('criado_em'))
    chamada['atualizado_em'] = format_datetime_iso(chamada.get('atualizado_em'))
    chamada['aceita_poster'] = bool(chamada.get('aceita_poster'))
    chamada['publicado'] = bool(chamada.get('publicado'))
    chamada['limites'] = mesclar_limites(chamada.get('limites'))
    if agora is not None:
        chamada['dentro_prazo'] = bool(prazo and agora <= prazo)
    return chamada


def dentro_do_prazo(chamada, agora):
    prazo = parse_db_datetime(chamada.get('prazo_final_br'))
    return prazo is not None and agora <= prazo


def carregar_chamada(tx, chamada_id, lock=False):
    sql = f"SELECT {COLUNAS_CHAMADA} FROM trabalhos_chamadas WHERE id = %s"
    if lock:
        sql += tx.for_update
    chamada = tx.query(sql, (chamada_id,), one=True)
    if not chamada:
        raise NotFoundError("Chamada não encontrada.")
    return chamada


def _inserir_linhas(tx, chamada_id, linhas):
    for linha in linhas:
        tx.execute(
            "INSERT INTO trabalhos_chamada_linhas (chamada_id, codigo, nome, descricao) VALUES (%s, %s, %s, %s)",
            (chamada_id, linha['codigo'], linha['nome'], linha['descricao'])
        )


def _inserir_criterios(tx, tabela, chamada_id, criterios):
    for crit in criterios:
        tx.execute(
            f"""
            INSERT INTO {tabela} (chamada_id, ordem, titulo, escala_min, escala_max, peso)
            VALUES (%s, %s, %s, %s, %s, %s)
            """,
            (chamada_id, crit['ordem'], crit['titulo'], crit['escala_min'], crit['escala_max'], crit['peso'])
        )


def _gravar_colunas(tx, dados):
    params = dict(dados)
    if 'prazo_final_br' in params:
        params['prazo_final_br'] = tx.timestamp_param(params['prazo_final_br'])
    return params


def criar_chamada(payload, usuario_id):
    """Cria a chamada com linhas e critérios em uma única transação. Retorna o id."""
    dados = validar_dados_chamada(payload, tz_local=_tz_local())
    linhas = normalizar_linhas(payload.get('linhas')) or []
    criterios = normalizar_criterios(payload.get('criterios')) or []
    criterios_orais = normalizar_criterios(
        payload.get('criterios_orais'), escala_padrao=ESCALA_ORAL_PADRAO, rotulo='Critério oral'
    ) or []

    with db_transacao() as tx:
        params = _gravar_colunas(tx, dados)
        params['criado_por'] = usuario_id
        colunas = ', '.join(params)
        marcadores = ', '.join(['%s'] * len(params))
        chamada_id = tx.insert(
            f"INSERT INTO trabalhos_chamadas ({colunas}) VALUES ({marcadores})",
            tuple(params.values())
        )
        _inserir_linhas(tx, chamada_id, linhas)
        _inserir_criterios(tx, 'trabalhos_chamada_criterios', chamada_id, criterios)
        _inserir_criterios(tx, 'trabalhos_chamada_criterios_orais', chamada_id, criterios_orais)

    chamadas_logger.info(f"Chamada {chamada_id} criada por usuário {usuario_id}")
    return chamada_id


def atualizar_chamada(chamada_id, payload):
    """
    Atualiza os campos enviados. Linhas e critérios enviados substituem os
    atuais (delete-then-insert) na mesma transação.
    """
    linhas = normalizar_linhas(payload.get('linhas')) if 'linhas' in payload else None
    criterios = normalizar_criterios(payload.get('criterios')) if 'criterios' in payload else None
    criterios_orais = normalizar_criterios(
        payload.get('criterios_orais'), escala_padrao=ESCALA_ORAL_PADRAO, rotulo='Critério oral'
    ) if 'criterios_orais' in payload else None

    with db_transacao() as tx:
        atual = carregar_chamada(tx, chamada_id, lock=True)
        dados = validar_dados_chamada(payload, atual=atual, tz_local=_tz_local())

        if dados:
            params = _gravar_colunas(tx, dados)
            sets = ', '.join(f"{col} = %s" for col in params)
            tx.execute(
                f"UPDATE trabalhos_chamadas SET {sets}, atualizado_em = CURRENT_TIMESTAMP WHERE id = %s",
                tuple(params.values()) + (chamada_id,)
            )

        if linhas is not None:
            em_uso = tx.query(
                "SELECT COUNT(*) AS n FROM trabalhos_submissoes WHERE chamada_id = %s", (chamada_id,), one=True
            )
            if em_uso['n']:
                raise StateConflictError("Não é possível substituir as linhas temáticas de uma chamada com submissões.")
            tx.execute("DELETE FROM trabalhos_chamada_linhas WHERE chamada_id = %s", (chamada_id,))
            _inserir_linhas(tx, chamada_id, linhas)

        for tabela_crit, tabela_itens, novos in (
            ('trabalhos_chamada_criterios', 'trabalhos_avaliacoes_itens', criterios),
            ('trabalhos_chamada_criterios_orais', 'trabalhos_avaliacoes_orais_itens', criterios_orais),
        ):
            if novos is None:
                continue
            avaliados = tx.query(
                f"""
                SELECT COUNT(*) AS n FROM {tabela_itens} i
                JOIN {tabela_crit} c ON c.id = i.criterio_id
                WHERE c.chamada_id = %s
                """,
                (chamada_id,), one=True
            )
            if avaliados['n']:
                raise StateConflictError("Não é possível substituir critérios que já receberam notas.")
            tx.execute(f"DELETE FROM {tabela_crit} WHERE chamada_id = %s", (chamada_id,))
            _inserir_criterios(tx, tabela_crit, chamada_id, novos)

        if bool(atual['publicado']):
            _exigir_estrutura_publicavel(tx, chamada_id)

    chamadas_logger.info(f"Chamada {chamada_id} atualizada")
    return chamada_id


def _exigir_estrutura_publicavel(tx, chamada_id):
    linhas = tx.query(
        "SELECT COUNT(*) AS n FROM trabalhos_chamada_linhas WHERE chamada_id = %s", (chamada_id,), one=True
    )
    if not linhas['n']:
        raise ValidationError("Inclua ao menos 1 linha temática antes de publicar.")
    criterios = tx.query(
        "SELECT COUNT(*) AS n FROM trabalhos_chamada_criterios WHERE chamada_id = %s", (chamada_id,), one=True
    )
    if not criterios['n']:
        raise ValidationError("Inclua ao menos 1 critério de avaliação antes de publicar.")


def publicar_chamada(chamada_id, publicado=True):
    """Liga ou desliga a publicação; ligar exige prazo, linhas e critérios."""
    with db_transacao() as tx:
        chamada = carregar_chamada(tx, chamada_id, lock=True)
        if publicado:
            if not chamada.get('prazo_final_br'):
                raise ValidationError("Defina o prazo final antes de publicar.")
            _exigir_estrutura_publicavel(tx, chamada_id)
        tx.execute(
            "UPDATE trabalhos_chamadas SET publicado = %s, atualizado_em = CURRENT_TIMESTAMP WHERE id = %s",
            (bool(publicado), chamada_id)
        )

    chamadas_logger.info(f"Chamada {chamada_id} {'publicada' if publicado else 'despublicada'}")
    return bool(publicado)


def remover_chamada(chamada_id):
    """Remove a chamada e, em cascata, suas linhas e critérios."""
    with db_transacao() as tx:
        carregar_chamada(tx, chamada_id, lock=True)
        submissoes = tx.query(
            "SELECT COUNT(*) AS n FROM trabalhos_submissoes WHERE chamada_id = %s", (chamada_id,), one=True
        )
        if submissoes['n']:
            raise StateConflictError("Não é possível remover uma chamada que já recebeu submissões.")
        tx.execute("DELETE FROM trabalhos_chamada_criterios_orais WHERE chamada_id = %s", (chamada_id,))
        tx.execute("DELETE FROM trabalhos_chamada_criterios WHERE chamada_id = %s", (chamada_id,))
        tx.execute("DELETE FROM trabalhos_chamada_linhas WHERE chamada_id = %s", (chamada_id,))
        tx.execute("DELETE FROM trabalhos_chamadas WHERE id = %s", (chamada_id,))

    chamadas_logger.info(f"Chamada {chamada_id} removida")


def obter_chamada(chamada_id, somente_publicada=False):
    """Detalhe da chamada com linhas (por nome), critérios e critérios orais (por ordem)."""
    row = query_db(f"SELECT {COLUNAS_CHAMADA} FROM trabalhos_chamadas WHERE id = %s", (chamada_id,), one=True)
    if not row or (somente_publicada and not bool(row['publicado'])):
        raise NotFoundError("Chamada não encontrada.")

    chamada = serializar_chamada(row, agora=agora_banco())
    chamada['linhas'] = query_db(
        "SELECT id, codigo, nome, descricao FROM trabalhos_chamada_linhas WHERE chamada_id = %s ORDER BY nome, id",
        (chamada_id,)
    )
    chamada['criterios'] = query_db(
        """
        SELECT id, ordem, titulo, escala_min, escala_max, peso FROM trabalhos_chamada_criterios
        WHERE chamada_id = %s ORDER BY ordem, id
        """,
        (chamada_id,)
    )
    chamada['criterios_orais'] = query_db(
        """
        SELECT id, ordem, titulo, escala_min, escala_max, peso FROM trabalhos_chamada_criterios_orais
        WHERE chamada_id = %s ORDER BY ordem, id
        """,
        (chamada_id,)
    )
    return chamada


def listar_chamadas_ativas():
    """Chamadas publicadas, com o indicador dentro_prazo."""
    agora = agora_banco()
    rows = query_db(
        f"SELECT {COLUNAS_CHAMADA} FROM trabalhos_chamadas WHERE publicado = %s ORDER BY prazo_final_br, id",
        (True,)
    )
    return [serializar_chamada(row, agora=agora) for row in rows]


def listar_chamadas_admin():
    agora = agora_banco()
    rows = query_db(
        f"""
        SELECT {COLUNAS_CHAMADA},
               (SELECT COUNT(*) FROM trabalhos_submissoes s WHERE s.chamada_id = c.id) AS total_submissoes
        FROM trabalhos_chamadas c
        ORDER BY c.criado_em DESC, c.id DESC
        """
    )
    return [serializar_chamada(row, agora=agora) for row in rows]
