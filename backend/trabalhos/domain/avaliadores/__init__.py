from .atribuicao import (
    MODO_MERGE,
    MODO_REPLACE,
    atribuir_avaliadores,
    restaurar_avaliador,
    revogar_avaliador,
)
from .consultas import (
    contagem_minhas_avaliacoes,
    listar_avaliadores,
    listar_submissoes_do_avaliador,
    resumo_avaliadores,
)
