"""
Limpieza de la respuesta del asistente antes de sintetizar voz:
el TTS leería literalmente los marcadores de Markdown.
"""

# orden importa: primero los dobles, luego los simples
_MARKERS = ("**", "*", "__", "_", "##", "#")


def strip_markdown(text: str) -> str:
    for marker in _MARKERS:
        text = text.replace(marker, "")
    return text.strip()
