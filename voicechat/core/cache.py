"""
Caché clave/valor en memoria con expiración fija.
Se crea una instancia en el lifespan (app.state.cache) y se entrega a los
handlers por dependencia; no hay estado global de módulo.
"""
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class TTLCache:
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._data: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def _alive(self, key: str) -> Optional[Tuple[float, Any]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry[0] <= self._clock():
            del self._data[key]
            return None
        return entry

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._alive(key)
            return default if entry is None else entry[1]

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        expires = self._clock() + (self.ttl if ttl is None else ttl)
        with self._lock:
            self._data[key] = (expires, value)

    def incr(self, key: str, ttl: Optional[float] = None) -> int:
        """
        Incrementa un contador. La expiración se fija en el primer incremento
        (ventana fija), no se renueva con los siguientes.
        """
        with self._lock:
            entry = self._alive(key)
            if entry is None:
                expires = self._clock() + (self.ttl if ttl is None else ttl)
                count = 1
            else:
                expires, count = entry[0], int(entry[1]) + 1
            self._data[key] = (expires, count)
            return count

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        with self._lock:
            for key in list(self._data):
                self._alive(key)
            return len(self._data)
