# golem/engine/journal.py
from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from threading import RLock
from typing import Deque, List, Optional

from .types import EffectLogEntry, EffectStatus


# ======================================================================
# 1. ХРАНИЛИЩЕ ЖУРНАЛА ЭФФЕКТОВ
# ======================================================================

class EffectLogStorage(ABC):
    """
    Абстрактное хранилище журнала сработавших правил.
    Автомат складывает туда записи, а API/тесты — читают.
    """

    @abstractmethod
    def append(self, entry: EffectLogEntry) -> None:
        """Добавить запись в журнал."""
        raise NotImplementedError

    @abstractmethod
    def list_recent(
        self,
        limit: int = 100,
        status: Optional[EffectStatus] = None,
    ) -> List[EffectLogEntry]:
        """
        Вернуть последние записи (новые — первыми).
        Можно отфильтровать по статусу.
        """
        raise NotImplementedError


# ======================================================================
# 2. IN-MEMORY ЖУРНАЛ
# ======================================================================

class InMemoryEffectLog(EffectLogStorage):
    """
    Журнал в памяти.
    Хранит последние N записей (по умолчанию 1000) в deque.
    """

    def __init__(self, max_entries: int = 1000) -> None:
        self._max_entries = max_entries
        self._entries: Deque[EffectLogEntry] = deque(maxlen=max_entries)
        self._lock = RLock()

    def append(self, entry: EffectLogEntry) -> None:
        with self._lock:
            self._entries.appendleft(entry)  # новые — в начало

    def list_recent(
        self,
        limit: int = 100,
        status: Optional[EffectStatus] = None,
    ) -> List[EffectLogEntry]:
        with self._lock:
            if status is None:
                return list(self._entries)[:limit]
            filtered = [e for e in self._entries if e.status == status]
            return filtered[:limit]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
