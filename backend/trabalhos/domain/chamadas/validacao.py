"""
Validação dos dados de uma chamada de trabalhos.
"""
import json

from ...common.exceptions import ValidationError
from ...common.validation import (
    optional_string,
    sanitize_string,
    validate_ano_mes,
    validate_boolean,
    validate_float,
    validate_integer,
    validate_prazo,
)
from ...constants import (
    CAMPOS_LIMITADOS,
    ESCALA_ESCRITA_PADRAO,
    ESCALA_ORAL_PADRAO,
    LIMITE_MAX,
    LIMITE_MIN,
    LIMITES_PADRAO,
    MAX_COAUTORES_PADRAO,
    TITULO_CHAMADA_MAX,
)

CAMPOS_TEXTO_LIVRE = [
    'link_modelo_poster', 'criterios_outros', 'oral_outros', 'premiacao_texto', 'disposicoes_finais_texto',
]


def validar_limites(limites):
    """Cada limite informado deve ser inteiro entre LIMITE_MIN e LIMITE_MAX."""
    if limites is None:
        return {}
    if isinstance(limites, str):
        try:
            limites = json.loads(limites)
        except ValueError:
            raise ValidationError("Limites inválidos.")
    if not isinstance(limites, dict):
        raise ValidationError("Limites devem ser um objeto com os campos do trabalho.")

    resultado = {}
    for campo, valor in limites.items():
        if campo not in CAMPOS_LIMITADOS:
            raise ValidationError(f"Limite desconhecido: {campo}.")
        if valor is None or valor == '':
            continue
        resultado[campo] = validate_integer(
            valor, min_value=LIMITE_MIN, max_value=LIMITE_MAX, campo=f"Limite de {campo}"
        )
    return resultado


def mesclar_limites(limites_gravados):
    """Limites efetivos: padrão sobrescrito pelos limites da chamada."""
    if isinstance(limites_gravados, str):
        limites_gravados = json.loads(limites_gravados) if limites_gravados else {}
    return {**LIMITES_PADRAO, **(limites_gravados or {})}


def normalizar_linhas(linhas):
    if linhas is None:
        return None
    if not isinstance(linhas, list):
        raise ValidationError("Linhas temáticas devem ser uma lista.")
    resultado = []
    for linha in linhas:
        if not isinstance(linha, dict):
            raise ValidationError("Linha temática inválida.")
        resultado.append({
            'codigo': optional_string(linha.get('codigo'), max_length=50, campo='Código da linha'),
            'nome': sanitize_string(linha.get('nome'), max_length=255, campo='Nome da linha temática'),
            'descricao': optional_string(linha.get('descricao'), campo='Descrição da linha'),
        })
    return resultado


def normalizar_criterios(criterios, escala_padrao=ESCALA_ESCRITA_PADRAO, rotulo='Critério'):
    """Aplica escala e peso padrão e garante escala_min < escala_max e peso > 0."""
    if criterios is None:
        return None
    if not isinstance(criterios, list):
        raise ValidationError(f"{rotulo}s devem ser uma lista.")
    resultado = []
    for ordem, crit in enumerate(criterios, start=1):
        if not isinstance(crit, dict):
            raise ValidationError(f"{rotulo} inválido.")
        escala_min = validate_integer(
            crit.get('escala_min', escala_padrao[0]), campo=f"Escala mínima do {rotulo.lower()}"
        )
        escala_max = validate_integer(
            crit.get('escala_max', escala_padrao[1]), campo=f"Escala máxima do {rotulo.lower()}"
        )
        if escala_min >= escala_max:
            raise ValidationError(f"{rotulo}: a escala mínima deve ser menor que a máxima.")
        peso = validate_float(crit.get('peso', 1), campo=f"Peso do {rotulo.lower()}")
        if peso <= 0:
            raise ValidationError(f"{rotulo}: o peso deve ser maior que zero.")
        resultado.append({
            'ordem': validate_integer(crit.get('ordem', ordem), min_value=1, campo='Ordem'),
            'titulo': sanitize_string(crit.get('titulo'), max_length=255, campo=f"Título do {rotulo.lower()}"),
            'escala_min': escala_min,
            'escala_max': escala_max,
            'peso': peso,
        })
    return resultado


def validar_dados_chamada(payload, atual=None, tz_local='America/Sao_Paulo'):
    """
    Valida os campos escalares da chamada.

    Na criação (`atual` None) os campos obrigatórios precisam estar presentes;
    na atualização apenas os campos enviados são validados, e a janela de
    experiência é conferida contra os valores já gravados.
    """
    criando = atual is None
    dados = {}

    if criando or 'titulo' in payload:
        dados['titulo'] = sanitize_string(payload.get('titulo'), max_length=TITULO_CHAMADA_MAX, campo='Título')
    if criando or 'descricao_markdown' in payload:
        dados['descricao_markdown'] = sanitize_string(payload.get('descricao_markdown'), campo='Descrição')
    if criando or 'periodo_experiencia_inicio' in payload:
        dados['periodo_experiencia_inicio'] = validate_ano_mes(
            payload.get('periodo_experiencia_inicio'), 'Início do período de experiência'
        )
    if criando or 'periodo_experiencia_fim' in payload:
        dados['periodo_experiencia_fim'] = validate_ano_mes(
            payload.get('periodo_experiencia_fim'), 'Fim do período de experiência'
        )
    if criando or 'prazo_final_br' in payload:
        dados['prazo_final_br'] = validate_prazo(payload.get('prazo_final_br'), tz_local)

    inicio = dados.get('periodo_experiencia_inicio') or (atual or {}).get('periodo_experiencia_inicio')
    fim = dados.get('periodo_experiencia_fim') or (atual or {}).get('periodo_experiencia_fim')
    if inicio and fim and inicio > fim:
        raise ValidationError("O início do período de experiência deve ser anterior ou igual ao fim.")

    if criando or 'aceita_poster' in payload:
        dados['aceita_poster'] = validate_boolean(payload.get('aceita_poster'), default=True)
    if criando or 'max_coautores' in payload:
        valor = payload.get('max_coautores')
        dados['max_coautores'] = MAX_COAUTORES_PADRAO if valor is None else validate_integer(
            valor, min_value=0, max_value=100, campo='Máximo de coautores'
        )
    if criando or 'limites' in payload:
        dados['limites'] = json.dumps(validar_limites(payload.get('limites')))

    for campo in CAMPOS_TEXTO_LIVRE:
        if campo in payload:
            dados[campo] = optional_string(payload.get(campo), campo=campo)

    return dados
