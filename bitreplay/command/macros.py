"""
Session-scoped macro storage.
"""

import threading
from typing import Dict, List, Optional

from ..core.errors import UnknownMacroError
from .model import Command


def _normalize(name: str) -> str:
    return str(name).strip().lower()


class MacroRegistry:
    """
    Named, already-parsed command bodies.

    Names are case-insensitive. Defining an existing name overwrites it.
    Writers are serialised with an RLock so several sessions may share one
    registry.
    """

    def __init__(self) -> None:
        self._macros: Dict[str, Command] = {}
        self._lock = threading.RLock()

    def define(self, name: str, command: Command) -> None:
        with self._lock:
            self._macros[_normalize(name)] = command

    def get(self, name: str) -> Optional[Command]:
        with self._lock:
            return self._macros.get(_normalize(name))

    def require(self, name: str) -> Command:
        """
        Look up a macro body.

        Raises:
            UnknownMacroError: If no macro has that name
        """
        body = self.get(name)
        if body is None:
            raise UnknownMacroError(f"Macro '{name}' not found")
        return body

    def remove(self, name: str) -> bool:
        with self._lock:
            return self._macros.pop(_normalize(name), None) is not None

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._macros)

    def clear(self) -> None:
        with self._lock:
            self._macros.clear()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._macros)
