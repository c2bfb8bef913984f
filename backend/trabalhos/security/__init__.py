from .acesso import (
    exigir_admin,
    exigir_avaliador_ou_admin,
    is_admin,
    is_autor,
    normalizar_perfis,
    pode_avaliar_ou_ver,
)
from .middleware import configure_cors, init_security_headers
