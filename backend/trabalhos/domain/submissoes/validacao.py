"""
Regras de preenchimento de uma submissão.

Rascunho exige apenas título (dentro do limite) e início da experiência em
AAAA-MM. Submissão exige também todos os textos preenchidos e dentro dos
limites da chamada, e o início dentro da janela de experiência.
"""
from ...common.exceptions import ValidationError
from ...common.validation import optional_string, sanitize_string, validate_ano_mes, validate_integer
from ...constants import (
    CAMPOS_COAUTOR,
    LIMITE_BIBLIOGRAFIA,
    STATUS_RASCUNHO,
    STATUS_SUBMETIDO,
)
from ..chamadas import mesclar_limites

CAMPOS_TEXTO = ['introducao', 'objetivos', 'metodo', 'resultados', 'consideracoes']

ROTULOS = {
    'titulo': 'Título',
    'introducao': 'Introdução',
    'objetivos': 'Objetivos',
    'metodo': 'Método/Descrição da prática',
    'resultados': 'Resultados/Impactos',
    'consideracoes': 'Considerações finais',
}

CAMPOS_EDITAVEIS = ['titulo', 'inicio_experiencia', 'linha_tematica_id', 'bibliografia'] + CAMPOS_TEXTO


def normalizar_status_entrada(status):
    """'rascunho' permanece rascunho; qualquer outro valor significa submeter."""
    if str(status or '').strip().lower() == STATUS_RASCUNHO:
        return STATUS_RASCUNHO
    return STATUS_SUBMETIDO


def validar_campos_submissao(dados, chamada, status):
    """
    Valida e normaliza os campos da submissão contra a chamada.

    `dados` já traz a mescla do que está gravado com o que foi enviado.
    Retorna o dict de colunas a gravar.
    """
    limites = mesclar_limites(chamada.get('limites'))

    titulo = dados.get('titulo')
    if not isinstance(titulo, str) or not titulo.strip() or len(titulo.strip()) > limites['titulo']:
        raise ValidationError(f"Título obrigatório (até {limites['titulo']} caracteres).")

    campos = {
        'titulo': titulo.strip(),
        'inicio_experiencia': validate_ano_mes(dados.get('inicio_experiencia'), 'Início da experiência'),
        'linha_tematica_id': validate_integer(
            dados.get('linha_tematica_id'), allow_none=True, campo='Linha temática'
        ),
    }

    if status == STATUS_SUBMETIDO:
        inicio = campos['inicio_experiencia']
        if not (chamada['periodo_experiencia_inicio'] <= inicio <= chamada['periodo_experiencia_fim']):
            raise ValidationError("Início fora do período permitido pela chamada.")
        for campo in CAMPOS_TEXTO:
            valor = dados.get(campo)
            texto = valor.strip() if isinstance(valor, str) else ''
            if not texto or len(texto) > limites[campo]:
                raise ValidationError(f"{ROTULOS[campo]} obrigatório (até {limites[campo]} caracteres).")
            campos[campo] = texto
        campos['bibliografia'] = optional_string(
            dados.get('bibliografia'), max_length=LIMITE_BIBLIOGRAFIA, campo='Bibliografia'
        )
        if campos['linha_tematica_id'] is None:
            raise ValidationError("Linha temática inválida para esta chamada.")
    else:
        for campo in CAMPOS_TEXTO + ['bibliografia']:
            campos[campo] = optional_string(dados.get(campo), campo=ROTULOS.get(campo, campo))

    return campos


def normalizar_coautores(coautores, max_coautores):
    if coautores is None:
        return []
    if not isinstance(coautores, list):
        raise ValidationError("Coautores devem ser uma lista.")
    if len(coautores) > max_coautores:
        raise ValidationError(f"Máximo de {max_coautores} coautores.")
    resultado = []
    for coautor in coautores:
        if not isinstance(coautor, dict):
            raise ValidationError("Coautor inválido.")
        item = {'nome': sanitize_string(coautor.get('nome'), max_length=255, campo='Nome do coautor')}
        for campo in CAMPOS_COAUTOR[1:]:
            item[campo] = optional_string(coautor.get(campo), max_length=255, campo=campo)
        resultado.append(item)
    return resultado
