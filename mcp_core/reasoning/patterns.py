"""
Keyword and regex tables used by request analysis and decomposition.
"""

import re

# ======================================================================
## Intents (each match scores INTENT_CONFIDENCE)
# ======================================================================

INTENT_PATTERNS: dict[str, re.Pattern] = {
    "create_content": re.compile(r"crear|generar|escribir|diseñar", re.IGNORECASE),
    "analyze_data": re.compile(r"analizar|datos|estadísticas|métricas", re.IGNORECASE),
    "get_help": re.compile(r"ayuda|problema|error|soporte", re.IGNORECASE),
    "optimize": re.compile(r"optimizar|mejorar|eficiencia", re.IGNORECASE),
    "automate": re.compile(r"automatizar|workflow|proceso", re.IGNORECASE),
    "learn": re.compile(r"aprender|enseñar|explicar|tutorial", re.IGNORECASE),
    "search": re.compile(r"buscar|encontrar|localizar", re.IGNORECASE),
    "compare": re.compile(r"comparar|diferencia|versus", re.IGNORECASE),
}
INTENT_CONFIDENCE = 0.8

DEFAULT_INTENT = "general"
DEFAULT_INTENT_CONFIDENCE = 0.6

# ======================================================================
## Entities
# ======================================================================

ENTITY_PATTERNS: dict[str, re.Pattern] = {
    "email": re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
    "url": re.compile(r"https?://[^\s]+"),
    "number": re.compile(r"\b\d+(?:\.\d+)?\b"),
    "date": re.compile(r"\b\d{1,2}/\d{1,2}/\d{4}\b"),
    "time": re.compile(r"\b\d{1,2}:\d{2}(?::\d{2})?\b"),
}
ENTITY_CONFIDENCE = 0.9

# ======================================================================
## Complexity / Domain
# ======================================================================

COMPLEX_KEYWORDS = (
    "comparar", "analizar", "optimizar", "integrar", "automatizar", "workflow",
    "proceso", "múltiple", "varios", "complejo",
)  # fmt: skip

DOMAIN_KEYWORDS: dict[str, tuple[str, ...]] = {
    "content": ("contenido", "texto", "imagen", "video", "crear", "generar"),
    "data": ("datos", "análisis", "estadísticas", "métricas", "reporte"),
    "support": ("ayuda", "problema", "error", "soporte", "asistencia"),
    "automation": ("automatizar", "workflow", "proceso", "integrar"),
    "business": ("negocio", "empresa", "estrategia", "marketing"),
    "technical": ("código", "programar", "sistema", "servidor", "api"),
}
DEFAULT_DOMAIN = "general"

EXTERNAL_DATA_KEYWORDS = ("buscar", "datos externos", "api", "web", "información actual")
USER_INPUT_KEYWORDS = ("pregunta", "confirmar", "elegir", "seleccionar", "preferencia")

# ======================================================================
## Decomposition templates
# ======================================================================

SUBTASK_TEMPLATES: dict[str, tuple[str, ...]] = {
    "create_content": (
        "Planificar estructura del contenido",
        "Generar contenido principal",
        "Revisar y optimizar contenido",
    ),
    "analyze_data": (
        "Recopilar datos relevantes",
        "Procesar y limpiar datos",
        "Realizar análisis estadístico",
        "Generar insights y conclusiones",
    ),
    "automate": (
        "Identificar proceso a automatizar",
        "Diseñar workflow automatizado",
        "Implementar automatización",
        "Probar y validar workflow",
    ),
}

GENERIC_SUBTASKS = (
    "Comprender la solicitud",
    "Buscar información relevante",
    "Formular respuesta",
)
