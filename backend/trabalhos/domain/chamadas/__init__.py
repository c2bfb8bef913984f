from .crud import (
    atualizar_chamada,
    carregar_chamada,
    criar_chamada,
    dentro_do_prazo,
    listar_chamadas_admin,
    listar_chamadas_ativas,
    obter_chamada,
    publicar_chamada,
    remover_chamada,
    serializar_chamada,
)
from .validacao import mesclar_limites
