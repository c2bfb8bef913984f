PERFIL_ADMIN = "administrador"
PERFIL_INSTRUTOR = "instrutor"

# Perfis que podem receber atribuição como avaliador
PERFIS_AVALIADORES = frozenset({PERFIL_ADMIN, PERFIL_INSTRUTOR})

# Status da submissão
STATUS_RASCUNHO = "rascunho"
STATUS_SUBMETIDO = "submetido"
STATUS_EM_AVALIACAO = "em_avaliacao"
STATUS_APROVADO_EXPOSICAO = "aprovado_exposicao"
STATUS_APROVADO_ORAL = "aprovado_oral"
STATUS_REPROVADO = "reprovado"

STATUS_SUBMISSAO_LIST = [
    STATUS_RASCUNHO,
    STATUS_SUBMETIDO,
    STATUS_EM_AVALIACAO,
    STATUS_APROVADO_EXPOSICAO,
    STATUS_APROVADO_ORAL,
    STATUS_REPROVADO,
]

# Únicos status em que o autor ainda pode editar
STATUS_EDITAVEIS = frozenset({STATUS_RASCUNHO, STATUS_SUBMETIDO})

STATUS_FINAIS = [STATUS_REPROVADO, STATUS_APROVADO_EXPOSICAO, STATUS_APROVADO_ORAL]

# Campos de texto com limite configurável por chamada
CAMPOS_LIMITADOS = ['titulo', 'introducao', 'objetivos', 'metodo', 'resultados', 'consideracoes']

LIMITES_PADRAO = {
    'titulo': 100,
    'introducao': 2000,
    'objetivos': 1000,
    'metodo': 1500,
    'resultados': 1500,
    'consideracoes': 1000,
}

LIMITE_MIN = 1
LIMITE_MAX = 5000

LIMITE_BIBLIOGRAFIA = 8000
TITULO_CHAMADA_MAX = 200

MAX_COAUTORES_PADRAO = 10
MAX_AVALIADORES = 2

# Escalas padrão dos critérios (escrita 1-5, oral 1-3)
ESCALA_ESCRITA_PADRAO = (1, 5)
ESCALA_ORAL_PADRAO = (1, 3)

# Classificação
TOP_EXPOSICAO = 40
TOP_ORAL_POR_LINHA = 6

CAMPOS_COAUTOR = ['nome', 'email', 'unidade', 'papel', 'cpf', 'vinculo']
