from .consolidacao import consolidar_classificacao, definir_status_final
from .ranking import ordenar_ranking, selecionar_exposicao, selecionar_oral
