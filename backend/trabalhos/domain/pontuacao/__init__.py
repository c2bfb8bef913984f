from .calculo import media_normalizada, nota10_normalizada, nota_final, total_por_criterio
from .consultas import agregar_notas, definir_nota_visivel, nota_normalizada, totais_da_chamada
from .registro import registrar_notas_escritas, registrar_notas_orais
