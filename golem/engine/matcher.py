# golem/engine/matcher.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .items import Item, ItemLookup
from .types import (
    CommaEdge,
    Edge,
    EffectEdge,
    NameEdge,
    Path,
    SemicolonEdge,
    TagEdge,
)

log = logging.getLogger("automaton")


@dataclass
class FollowResult:
    """
    Что получилось после прохода по ребру:
      - items — оставшийся (не поглощённый) вход
      - paths — обновлённые пути
      - complete — True для EffectEdge (дальше идти некуда)
    """
    items: List[Item]
    paths: List[Path]
    complete: bool = False


class EdgeMatcher:
    """
    Проверяет, проходится ли ребро на текущем входе.
    Получает:
      - ребро
      - остаток входа (1–2 предмета или пусто)
      - пути, уже размноженные под это ребро (их можно менять)
      - сервис поиска предметов для неявной цели
    Возвращает: FollowResult или None (ребро не подходит)
    """

    # ------------------------------------------------------------------
    def follow(
        self,
        edge: Edge,
        items: Sequence[Item],
        paths: List[Path],
        lookup: ItemLookup,
    ) -> Optional[FollowResult]:
        if isinstance(edge, NameEdge):
            return self._follow_name(edge, items, paths, lookup)
        elif isinstance(edge, TagEdge):
            return self._follow_tag(edge, items, paths)
        elif isinstance(edge, CommaEdge):
            return self._follow_comma(edge, items, paths)
        elif isinstance(edge, SemicolonEdge):
            return self._follow_semicolon(edge, items, paths)
        elif isinstance(edge, EffectEdge):
            return self._follow_effect(edge, items, paths)
        raise TypeError(f"unknown edge type: {type(edge).__name__}")

    # ------------------------------------------------------------------
    def _follow_name(
        self,
        edge: NameEdge,
        items: Sequence[Item],
        paths: List[Path],
        lookup: ItemLookup,
    ) -> Optional[FollowResult]:
        if items:
            if items[0].name != edge.name:
                return None
            rest = list(items)
        else:
            # вход пуст — правило может сослаться на предмет мира по имени
            found = lookup.find_by_name(edge.name)
            if found is None:
                return None
            rest = [found]

        for p in paths:
            p.weight += edge.weight
        log.debug(
            "-> s%d matched %s for %s, weight += %s",
            edge.dest, rest[0], edge.name, edge.weight,
        )
        return FollowResult(items=rest, paths=paths)

    def _follow_tag(
        self,
        edge: TagEdge,
        items: Sequence[Item],
        paths: List[Path],
    ) -> Optional[FollowResult]:
        if not items or items[0].has_tag(edge.tag) != edge.polarity:
            return None

        for p in paths:
            p.weight += edge.weight
        log.debug(
            "-> s%d matched %s for tag %s%s, weight += %s",
            edge.dest, items[0], "+" if edge.polarity else "-", edge.tag, edge.weight,
        )
        return FollowResult(items=list(items), paths=paths)

    def _follow_comma(
        self,
        edge: CommaEdge,
        items: Sequence[Item],
        paths: List[Path],
    ) -> Optional[FollowResult]:
        # нужен хотя бы один предмет, который можно забрать
        if not items:
            return None

        head = items[0]
        for p in paths:
            p.items.append(head)
            p.weight += edge.weight
        log.debug("-> s%d pushed %s, weight += %s", edge.dest, head, edge.weight)
        return FollowResult(items=list(items[1:]), paths=paths)

    def _follow_semicolon(
        self,
        edge: SemicolonEdge,
        items: Sequence[Item],
        paths: List[Path],
    ) -> Optional[FollowResult]:
        # после точки с запятой на входе не должно остаться ничего
        if len(items) > 1:
            return None

        for p in paths:
            if items:
                p.items.append(items[0])
            p.weight += edge.weight
        log.debug(
            "-> s%d pushed %s, weight += %s; no more items",
            edge.dest, items[0] if items else None, edge.weight,
        )
        return FollowResult(items=[], paths=paths)

    def _follow_effect(
        self,
        edge: EffectEdge,
        items: Sequence[Item],
        paths: List[Path],
    ) -> Optional[FollowResult]:
        if len(items) > 1:
            return None

        for p in paths:
            if items:
                p.items.append(items[0])
            p.weight += edge.weight
            p.effect = edge.effect
        log.debug("-> effect, weight += %s", edge.weight)
        return FollowResult(items=[], paths=paths, complete=True)
