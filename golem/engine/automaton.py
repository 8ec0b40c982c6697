# golem/engine/automaton.py
from __future__ import annotations

from datetime import datetime
from threading import RLock
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .items import Item, ItemLookup, NullItemLookup
from .journal import EffectLogStorage
from .matcher import EdgeMatcher
from .types import (
    AutomatonBuildError,
    Edge,
    EffectEdge,
    EffectLogEntry,
    EffectStatus,
    Path,
    State,
    StateId,
    effect_label,
)

import logging
log = logging.getLogger("automaton")


class Automaton:
    """
    Взвешенный автомат правил:
      - хранит арену состояний (states[0] — начальное)
      - принимает рёбра от внешнего сборщика (код, YAML)
      - на apply() перебирает все пути от начального состояния
      - выбирает завершённый путь с минимальным весом и запускает его эффект

    ВАЖНО:
    - при равных весах побеждает тот путь, что найден раньше
      (порядок рёбер в состоянии = порядок обхода)
    - нет подходящего правила — это норма: apply() просто ничего не делает
    """

    def __init__(
        self,
        *,
        lookup: Optional[ItemLookup] = None,
        journal: Optional[EffectLogStorage] = None,
        matcher: Optional[EdgeMatcher] = None,
    ) -> None:
        self._states: List[State] = []
        self._lookup = lookup if lookup is not None else NullItemLookup()
        self._journal = journal
        self._matcher = matcher or EdgeMatcher()

        # блокировка на построение графа; поиск граф не меняет
        self._lock = RLock()

        self.create_state()

    # ------------------------------------------------------------------ #
    # ПОСТРОЕНИЕ
    # ------------------------------------------------------------------ #
    def create_state(self) -> StateId:
        """Новое состояние без исходящих рёбер; вернёт его номер."""
        with self._lock:
            sid = len(self._states)
            self._states.append(State(id=sid))
            return sid

    def attach_outgoing(self, source: StateId, edge: Edge) -> Optional[StateId]:
        """
        Прицепить ребро к состоянию source.
        Вернёт номер состояния назначения (None для EffectEdge),
        чтобы цепочки правил было удобно собирать.
        """
        with self._lock:
            self._check_state(source, "source")
            if not isinstance(edge, EffectEdge):
                self._check_state(edge.dest, "destination")
                if self._reachable(edge.dest, source):
                    raise AutomatonBuildError(
                        f"edge s{source} -> s{edge.dest} closes a cycle"
                    )
            self._states[source].outgoing.append(edge)
            return None if isinstance(edge, EffectEdge) else edge.dest

    def validate(self) -> None:
        """
        Полная проверка графа: все назначения существуют и граф без циклов.
        Semicolon и name на пустом входе ничего не съедают, поэтому
        запрещён любой цикл, а не только из name/tag.
        """
        with self._lock:
            for state in self._states:
                for edge in state.outgoing:
                    if not isinstance(edge, EffectEdge):
                        self._check_state(edge.dest, "destination")

            # 0 — не посещено, 1 — в стеке, 2 — готово
            color = [0] * len(self._states)

            def visit(sid: StateId) -> None:
                color[sid] = 1
                for edge in self._states[sid].outgoing:
                    if isinstance(edge, EffectEdge):
                        continue
                    if color[edge.dest] == 1:
                        raise AutomatonBuildError(
                            f"cycle through s{edge.dest}"
                        )
                    if color[edge.dest] == 0:
                        visit(edge.dest)
                color[sid] = 2

            for state in self._states:
                if color[state.id] == 0:
                    visit(state.id)

    # ------------------------------------------------------------------ #
    # ДОСТУП
    # ------------------------------------------------------------------ #
    @property
    def states(self) -> Tuple[State, ...]:
        with self._lock:
            return tuple(self._states)

    @property
    def initial(self) -> State:
        return self._states[0]

    @property
    def lookup(self) -> ItemLookup:
        return self._lookup

    def state(self, sid: StateId) -> State:
        self._check_state(sid, "state")
        return self._states[sid]

    def index_of(self, state: State) -> int:
        """Номер состояния в арене (или -1, если оно не из этого автомата)."""
        with self._lock:
            for i, s in enumerate(self._states):
                if s is state:
                    return i
            return -1

    # ------------------------------------------------------------------ #
    # ПОИСК
    # ------------------------------------------------------------------ #
    def search(
        self,
        sid: StateId,
        items: Sequence[Item],
        paths: List[Path],
        lookup: ItemLookup,
    ) -> List[Path]:
        """
        Перебор путей из состояния sid. Для каждого ребра пути
        размножаются заново, чтобы соседние ветки не делили вес и предметы.
        Вернёт только завершённые пути (с эффектом), в порядке обхода.
        """
        result: List[Path] = []
        for edge in self._states[sid].outgoing:
            forked = [p.fork() for p in paths]
            followed = self._matcher.follow(edge, items, forked, lookup)
            if followed is None:
                continue
            if followed.complete:
                log.debug("s%d: effect %s reached", sid, effect_label(edge.effect))  # type: ignore[union-attr]
                result.extend(followed.paths)
            else:
                result.extend(self.search(edge.dest, followed.items, followed.paths, lookup))  # type: ignore[union-attr]
        return result

    def match(
        self,
        item: Item,
        target: Optional[Item] = None,
        *,
        lookup: Optional[ItemLookup] = None,
    ) -> Optional[Path]:
        """
        Найти выигрывающий путь, но эффект не запускать.
        """
        items = [item] if target is None else [item, target]
        if lookup is None:
            lookup = self._lookup
        paths = self.search(0, items, [Path()], lookup)
        log.debug("match %s: %d complete path(s)", [str(i) for i in items], len(paths))

        best: Optional[Path] = None
        for p in paths:
            if not p.complete:
                continue
            # строго меньше: при равенстве остаётся найденный раньше
            if best is None or p.weight < best.weight:
                best = p
        return best

    def apply(
        self,
        item: Item,
        target: Optional[Item] = None,
        *,
        lookup: Optional[ItemLookup] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Основной вход: «игрок применил item (к target)».
        """
        path = self.match(item, target, lookup=lookup)
        inputs = [item.name] if target is None else [item.name, target.name]
        if path is None or path.effect is None:
            log.debug("no rule for %s", inputs)
            return

        label = effect_label(path.effect)
        log.info(
            "rule FIRED for %s: %s (weight=%s, items=%s)",
            inputs, label, path.weight, [str(i) for i in path.items],
        )

        error: Optional[str] = None
        status = EffectStatus.SUCCESS
        try:
            path.effect(self, list(path.items))
        except Exception as exc:  # noqa: BLE001
            # эффект упал — фиксируем в журнале, игру не роняем
            log.exception("effect %s failed", label)
            status = EffectStatus.FAILED
            error = str(exc) or type(exc).__name__

        if self._journal is not None:
            self._journal.append(
                EffectLogEntry(
                    ts=datetime.utcnow(),
                    input_items=inputs,
                    items=[i.name for i in path.items],
                    weight=path.weight,
                    effect=label,
                    status=status,
                    error=error,
                    context=dict(context or {}),
                )
            )

    # ------------------------------------------------------------------ #
    # ВНУТРЕННЕЕ
    # ------------------------------------------------------------------ #
    def _check_state(self, sid: Any, what: str) -> None:
        if isinstance(sid, bool) or not isinstance(sid, int) or not 0 <= sid < len(self._states):
            raise AutomatonBuildError(f"{what} state s{sid} does not exist")

    def _reachable(self, start: StateId, goal: StateId) -> bool:
        """Дойдём ли из start в goal по рёбрам графа."""
        seen = set()
        stack = [start]
        while stack:
            sid = stack.pop()
            if sid == goal:
                return True
            if sid in seen:
                continue
            seen.add(sid)
            for edge in self._states[sid].outgoing:
                if not isinstance(edge, EffectEdge):
                    stack.append(edge.dest)
        return False

    def __repr__(self) -> str:
        return f"Automaton(states={len(self._states)})"
