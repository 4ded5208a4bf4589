import logging
import threading
from dataclasses import dataclass
from typing import Any, List, Type, TypeVar


logger = logging.getLogger(__name__)

R = TypeVar("R")


@dataclass(frozen=True)
class UnrecognizedEnumValue:
    """A raw string that matched no known member; `fallback` was used instead."""
    field: str
    raw: Any
    fallback: Any


@dataclass(frozen=True)
class DuplicateSignal:
    name: str
    previous: Any
    replacement: Any


@dataclass(frozen=True)
class SkippedSignal:
    name: str
    raw_kind: Any


class DiagnosticLog:
    """
    Side channel for non-fatal anomalies seen while building snapshots.
    Builders append to it; nothing in the model depends on its contents.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[Any] = []

    def record(self, item) -> None:
        with self._lock:
            self._records.append(item)

    @property
    def records(self) -> List[Any]:
        with self._lock:
            return list(self._records)

    def of_type(self, cls: Type[R]) -> List[R]:
        return [r for r in self.records if isinstance(r, cls)]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


def note_unrecognized(field: str, raw, fallback, diagnostics=None) -> None:
    logger.warning(f"Unrecognized {field} value {raw!r}; using {fallback.name}")
    if diagnostics is not None:
        diagnostics.record(UnrecognizedEnumValue(field=field, raw=raw, fallback=fallback))
