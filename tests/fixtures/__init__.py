"""
Test Fixtures — Dados de teste reutilizáveis.

Contém factories e constantes para criar objetos de teste.
"""

from datetime import datetime, timedelta, timezone

# ──────────────────────────────────────────────
# Fixtures de Usuários
# ──────────────────────────────────────────────

ADMIN_ID = 1
AUTOR_ID = 2
OUTRO_USUARIO_ID = 5
INSTRUTOR_IDS = (7, 9, 11)

# (id, nome, email, perfil) — perfis gravados em formatos variados
USUARIOS = [
    (ADMIN_ID, "Administrador", "admin@test.com", "administrador"),
    (AUTOR_ID, "Autora Teste", "autora@test.com", "usuario"),
    (OUTRO_USUARIO_ID, "Outro Usuário", "outro@test.com", "usuario"),
    (7, "Instrutor Sete", "sete@test.com", "instrutor"),
    (9, "Instrutora Nove", "nove@test.com", '["Instrutora"]'),
    (11, "Instrutor Onze", "onze@test.com", "usuario, instrutor"),
]


def make_usuario(usuario_id: int, *perfis: str) -> dict:
    """Factory para o usuário já resolvido (como em g.usuario)."""
    return {"id": usuario_id, "perfis": frozenset(perfis or ("usuario",))}


ADMIN = make_usuario(ADMIN_ID, "administrador")
AUTOR = make_usuario(AUTOR_ID, "usuario")
OUTRO_USUARIO = make_usuario(OUTRO_USUARIO_ID, "usuario")


def make_avaliador(usuario_id: int) -> dict:
    return make_usuario(usuario_id, "instrutor")


# ──────────────────────────────────────────────
# Fixtures de Chamadas e Submissões
# ──────────────────────────────────────────────


def prazo_futuro(dias: int = 30) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=dias)).strftime("%Y-%m-%dT%H:%M:%S+00:00")


def make_payload_chamada(**extra) -> dict:
    """Chamada com 1 linha temática, 1 critério escrito (1-5) e 1 oral (1-3)."""
    payload = {
        "titulo": "Mostra de Experiências 2025",
        "descricao_markdown": "Chamada para relatos de experiência.",
        "periodo_experiencia_inicio": "2023-01",
        "periodo_experiencia_fim": "2025-06",
        "prazo_final_br": prazo_futuro(),
        "linhas": [{"codigo": "L1", "nome": "Atenção Primária"}],
        "criterios": [{"titulo": "Relevância", "escala_min": 1, "escala_max": 5, "peso": 1}],
        "criterios_orais": [{"titulo": "Clareza", "escala_min": 1, "escala_max": 3, "peso": 1}],
        "limites": {"titulo": 100, "introducao": 2000},
    }
    payload.update(extra)
    return payload


def make_payload_submissao(linha_id, **extra) -> dict:
    payload = {
        "titulo": "Relato de experiência",
        "inicio_experiencia": "2024-03",
        "linha_tematica_id": linha_id,
        "introducao": "Introdução do trabalho.",
        "objetivos": "Objetivos do trabalho.",
        "metodo": "Descrição da prática.",
        "resultados": "Resultados alcançados.",
        "consideracoes": "Considerações finais.",
        "bibliografia": "Referência 1.",
        "coautores": [{"nome": "Coautor Um", "email": "coautor@test.com"}],
        "status": "submetido",
    }
    payload.update(extra)
    return payload


# PDF mínimo válido (assinatura %PDF)
PDF_MINIMO = (
    b"%PDF-1.4\n1 0 obj<</Type/Catalog/Pages 2 0 R>>endobj\n"
    b"2 0 obj<</Type/Pages/Kids[]/Count 0>>endobj\n"
    b"trailer<</Root 1 0 R>>\n%%EOF\n"
)
