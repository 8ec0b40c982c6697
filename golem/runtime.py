# golem/runtime.py
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from threading import RLock
from typing import Any, Deque, Dict, List, Optional

from golem.engine.automaton import Automaton
from golem.engine.items import InMemoryItemRegistry, Item
from golem.engine.journal import InMemoryEffectLog
from golem.loader import World, world_from_dict

log = logging.getLogger("game")

# сюда кладём живую ссылку после init_game()
_game_ctx: "GameContext | None" = None


@dataclass
class ActionOutcome:
    """Итог одного действия игрока — то, что увидит UI."""
    fired: bool
    messages: List[str] = field(default_factory=list)


class GameContext:
    """
    Держим всё в одном месте:
    - предметы мира (реестр)
    - автомат правил
    - журнал сработавших правил
    - последние сообщения статуса
    """

    def __init__(
        self,
        cfg: Dict[str, Any],
        *,
        journal_max_entries: int = 1000,
        status_history: int = 50,
    ) -> None:
        self.journal = InMemoryEffectLog(max_entries=journal_max_entries)
        self.status: Deque[Dict[str, Any]] = deque(maxlen=status_history)

        # эффекты меняют мир — действия игроков выполняем по одному
        self._lock = RLock()
        # сообщения текущего действия (None — вне действия)
        self._pending: Optional[List[str]] = None

        self.world: World = self.reload(cfg)

    # --- мир ----------------------------------------------------------------

    def reload(self, cfg: Dict[str, Any]) -> World:
        """Пересобрать мир из конфига. Журнал и статус не трогаем."""
        world = world_from_dict(
            cfg,
            status_sink=self._on_status,
            journal=self.journal,
        )
        with self._lock:
            self.world = world
        log.info(
            "world built: %d item(s), %d state(s)",
            len(world.registry), len(world.automaton.states),
        )
        return world

    @property
    def registry(self) -> InMemoryItemRegistry:
        return self.world.registry

    @property
    def automaton(self) -> Automaton:
        return self.world.automaton

    def item(self, item_id: int) -> Item:
        it = self.registry.get(item_id)
        if it is None:
            raise KeyError(f"item {item_id} not found")
        return it

    # --- действия игрока ----------------------------------------------------

    def tap(self, item_id: int) -> ActionOutcome:
        return self._act(self.item(item_id), None)

    def drag(self, item_id: int, target_id: int) -> ActionOutcome:
        return self._act(self.item(item_id), self.item(target_id))

    def _act(self, item: Item, target: Optional[Item]) -> ActionOutcome:
        with self._lock:
            before = self.journal.list_recent(1)
            self._pending = []
            try:
                self.automaton.apply(item, target, context={"source": "player"})
                messages = self._pending
            finally:
                self._pending = None
            after = self.journal.list_recent(1)

        fired = bool(after) and (not before or after[0] is not before[0])
        return ActionOutcome(fired=fired, messages=messages)

    def _on_status(self, text: str) -> None:
        self.status.appendleft({"ts": datetime.utcnow(), "text": text})
        if self._pending is not None:
            self._pending.append(text)


def init_game(
    cfg: Dict[str, Any],
    *,
    journal_max_entries: int = 1000,
    status_history: int = 50,
) -> GameContext:
    """
    Вызываем ОДИН раз при старте приложения,
    cfg — уже проверенный YAML мира (settings.cfg).
    """
    global _game_ctx

    ctx = GameContext(
        cfg,
        journal_max_entries=journal_max_entries,
        status_history=status_history,
    )
    _game_ctx = ctx
    return ctx


def get_game() -> GameContext:
    global _game_ctx
    if _game_ctx is None:
        raise RuntimeError("GameContext is not initialized")
    return _game_ctx


def game_instance() -> Optional[GameContext]:
    """Вернёт текущий контекст игры (или None, если не инициализирован)."""
    return _game_ctx


def reset_game() -> None:
    """Забыть контекст (для тестов и остановки приложения)."""
    global _game_ctx
    _game_ctx = None
