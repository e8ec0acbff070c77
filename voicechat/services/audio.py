"""
Normalización de audio subido por el navegador.
- Safari/iOS graban en MP4 (AAC) → .m4a
- Chrome/Firefox graban en WebM (Opus) → .webm (por defecto)
El archivo temporal vive solo dentro del `with`.
"""
import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ..core.errors import InvalidInput

log = logging.getLogger(__name__)

# algunos navegadores reportan el contenedor como video/* aunque solo haya audio
_ALLOWED_PREFIXES = ("audio/", "video/webm", "video/mp4")


def extension_for(mime: str) -> str:
    m = (mime or "").lower().strip()
    if not m.startswith(_ALLOWED_PREFIXES):
        raise InvalidInput(f"Unsupported audio type: {mime or 'unknown'}")
    return ".m4a" if "mp4" in m else ".webm"


@contextmanager
def temporary_audio(data: bytes, mime: str, directory: str) -> Iterator[Path]:
    """
    Escribe `data` en un archivo único dentro de `directory` y lo borra
    al salir, haya éxito o excepción.
    """
    suffix = extension_for(mime)
    os.makedirs(directory, exist_ok=True)
    fd, name = tempfile.mkstemp(suffix=suffix, dir=directory)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        log.debug(f"[audio] removed {path.name}")
