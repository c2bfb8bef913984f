from .crud import (
    atualizar_submissao,
    carregar_submissao,
    criar_submissao,
    listar_minhas_submissoes,
    listar_submissoes_admin,
    obter_submissao,
    remover_submissao,
    serializar_submissao,
)
from .poster import baixar_poster, enviar_poster
