# golem/engine/effects.py
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Callable, List, Optional

from .items import InMemoryItemRegistry, Item
from .types import EffectFunc, effect_label

if TYPE_CHECKING:
    from .automaton import Automaton


log = logging.getLogger("effects")

# ---- коллбеки, которые передаются снаружи ---------------------------------

# Сообщение игроку (строка статуса)
StatusSink = Callable[[str], None]

_FMT_RE = re.compile(r"%(\d+|%|\((\d+)\))")


def format_message(text: str, items: List[Item]) -> str:
    """
    Подстановка описаний предметов: %1, %2... (или %(1), если дальше цифры).
    %% превращается в %. Ссылка мимо списка даёт пустую строку.
    """
    def _sub(m: "re.Match[str]") -> str:
        if m.group(1) == "%":
            return "%"
        ref = int(m.group(2) or m.group(1))
        if 1 <= ref <= len(items):
            return items[ref - 1].description
        return ""

    return _FMT_RE.sub(_sub, text)


def _check_ref(ref: object, what: str = "ref") -> int:
    if isinstance(ref, bool) or not isinstance(ref, int) or ref < 1:
        raise ValueError(f"{what}: item reference must be an integer >= 1, got {ref!r}")
    return ref


def _resolve(items: List[Item], ref: int) -> Item:
    # внешняя адресация с единицы: "предмет 1" = items[0]
    if ref > len(items):
        raise IndexError(f"item reference {ref} out of range (have {len(items)} item(s))")
    return items[ref - 1]


def _labelled(fn: EffectFunc, label: str) -> EffectFunc:
    fn.label = label  # type: ignore[attr-defined]
    return fn


class EffectFactory:
    """
    Собирает эффекты для EffectEdge.

    Мы специально не шьём сюда конкретный UI.
    Всё, что нужно — передаётся в __init__:
      - status_sink — куда писать сообщения игроку
      - registry — реестр, из которого удаляем предметы
      - pc_tag — тег персонажа игрока: когда его переносят,
        в статус уходит описание новой локации
    """

    def __init__(
        self,
        *,
        status_sink: Optional[StatusSink] = None,
        registry: Optional[InMemoryItemRegistry] = None,
        pc_tag: str = "PC",
    ) -> None:
        self._status_sink = status_sink
        self._registry = registry
        self._pc_tag = pc_tag

    # --------------------------------------------------------------------- #
    # ЭФФЕКТЫ
    # --------------------------------------------------------------------- #
    def status(self, text: str) -> EffectFunc:
        """Показать сообщение игроку."""
        def _status(automaton: "Automaton", items: List[Item]) -> None:
            self._emit(format_message(text, items))

        return _labelled(_status, f"status({text!r})")

    def move(self, parent_ref: int, child_ref: int) -> EffectFunc:
        """Положить предмет №child_ref внутрь предмета №parent_ref."""
        _check_ref(parent_ref, "move.parent")
        _check_ref(child_ref, "move.child")

        def _move(automaton: "Automaton", items: List[Item]) -> None:
            parent = _resolve(items, parent_ref)
            child = _resolve(items, child_ref)
            parent.append_child(child)
            log.debug("moved %s into %s", child, parent)
            if child.has_tag(self._pc_tag):
                self._emit(parent.description)

        return _labelled(_move, f"move({parent_ref}, {child_ref})")

    def remove(self, ref: int) -> EffectFunc:
        """Убрать предмет №ref из мира."""
        _check_ref(ref, "remove")

        def _remove(automaton: "Automaton", items: List[Item]) -> None:
            item = _resolve(items, ref)
            if item.parent is not None:
                item.parent.remove_child(item)
            if self._registry is not None:
                self._registry.unregister(item)
            log.debug("removed %s", item)

        return _labelled(_remove, f"remove({ref})")

    def add_tag(self, ref: int, tag: str) -> EffectFunc:
        _check_ref(ref, "add_tag")
        if not tag:
            raise ValueError("add_tag: tag must not be empty")

        def _add_tag(automaton: "Automaton", items: List[Item]) -> None:
            _resolve(items, ref).tag(tag)

        return _labelled(_add_tag, f"add_tag({ref}, {tag!r})")

    def remove_tag(self, ref: int, tag: str) -> EffectFunc:
        _check_ref(ref, "remove_tag")
        if not tag:
            raise ValueError("remove_tag: tag must not be empty")

        def _remove_tag(automaton: "Automaton", items: List[Item]) -> None:
            _resolve(items, ref).untag(tag)

        return _labelled(_remove_tag, f"remove_tag({ref}, {tag!r})")

    def seq(self, *effects: EffectFunc) -> EffectFunc:
        """Выполнить эффекты по порядку (упавший прерывает цепочку)."""
        for e in effects:
            if not callable(e):
                raise ValueError(f"seq: effect must be callable, got {e!r}")

        def _seq(automaton: "Automaton", items: List[Item]) -> None:
            for e in effects:
                e(automaton, items)

        return _labelled(_seq, "seq(" + ", ".join(effect_label(e) for e in effects) + ")")

    # --------------------------------------------------------------------- #
    # ВСПОМОГАТЕЛЬНЫЕ
    # --------------------------------------------------------------------- #
    def _emit(self, text: str) -> None:
        log.info("status: %s", text)
        if self._status_sink is not None:
            self._status_sink(text)
