"""
Configuración de logging.
- Nivel desde Settings.LOG_LEVEL (INFO por defecto).
- Formato con timestamps y nombre del logger.
- Alinea los loggers de Uvicorn para no duplicar formato.
"""
import logging

FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=FORMAT)
    for uv_logger in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(uv_logger).setLevel(level)
    # el SDK de OpenAI loguea cada request HTTP en INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
