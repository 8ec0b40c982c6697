# golem/loader.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from golem.core.validate_world import validate_world_cfg
from golem.engine.automaton import Automaton
from golem.engine.effects import EffectFactory, StatusSink
from golem.engine.items import InMemoryItemRegistry, Item
from golem.engine.journal import EffectLogStorage
from golem.engine.types import (
    CommaEdge,
    Edge,
    EffectEdge,
    EffectFunc,
    NameEdge,
    SemicolonEdge,
    StateId,
    TagEdge,
)


@dataclass
class World:
    """Всё, что собрано из одного YAML: предметы, автомат и фабрика эффектов."""
    registry: InMemoryItemRegistry
    automaton: Automaton
    effects: EffectFactory


def _parse_items(items: List[Dict[str, Any]], registry: InMemoryItemRegistry) -> List[Item]:
    out: List[Item] = []
    for d in items or []:
        item = Item(
            str(d["name"]),
            d.get("tags") or [],
            description=d.get("description"),
        )
        registry.register(item)
        out.append(item)

    # родителей расставляем вторым проходом: ссылка может идти вперёд
    for d, item in zip(items or [], out):
        parent_name = d.get("parent")
        if parent_name:
            parent = registry.find_by_name(str(parent_name))
            if parent is not None:
                parent.append_child(item)
    return out


def _parse_effect(d: Dict[str, Any], effects: EffectFactory) -> EffectFunc:
    t = str(d.get("type", "")).lower()
    if t == "status":
        return effects.status(str(d.get("text", "")))
    if t == "move":
        return effects.move(int(d["parent"]), int(d["child"]))
    if t == "remove":
        return effects.remove(int(d["ref"]))
    if t == "add_tag":
        return effects.add_tag(int(d["ref"]), str(d["tag"]))
    if t == "remove_tag":
        return effects.remove_tag(int(d["ref"]), str(d["tag"]))
    if t == "seq":
        return effects.seq(*[_parse_effect(sub, effects) for sub in d.get("effects") or []])
    raise ValueError(f"Unsupported effect type: {d.get('type')!r}")


def _parse_edge(d: Dict[str, Any], effects: EffectFactory) -> Tuple[StateId, Edge]:
    src = int(d.get("from", 0))
    kind = str(d.get("kind", "")).lower()
    weight = d.get("weight", 0) or 0

    if kind == "name":
        return src, NameEdge(name=str(d["name"]), dest=int(d["to"]), weight=weight)
    if kind == "tag":
        tag = str(d["tag"])
        if "polarity" in d:
            polarity = d["polarity"]
            if isinstance(polarity, str):
                polarity = polarity.lower() == "true"
            return src, TagEdge(tag=tag, dest=int(d["to"]), polarity=bool(polarity), weight=weight)
        if tag[0] in "+-":
            return src, TagEdge.parse(tag, dest=int(d["to"]), weight=weight)
        return src, TagEdge(tag=tag, dest=int(d["to"]), weight=weight)
    if kind == "comma":
        return src, CommaEdge(dest=int(d["to"]), weight=weight)
    if kind == "semicolon":
        return src, SemicolonEdge(dest=int(d["to"]), weight=weight)
    if kind == "effect":
        return src, EffectEdge(effect=_parse_effect(d["effect"], effects), weight=weight)
    raise ValueError(f"Unsupported edge kind: {d.get('kind')!r}")


def world_from_dict(
    data: Dict[str, Any],
    *,
    status_sink: Optional[StatusSink] = None,
    journal: Optional[EffectLogStorage] = None,
) -> World:
    """
    Собирает мир из словаря (формат см. load_world_from_yaml).
    Состояния создаются заранее, поэтому рёбра можно писать в любом порядке.
    """
    validate_world_cfg(data)

    registry = InMemoryItemRegistry()
    _parse_items(data.get("items") or [], registry)

    effects = EffectFactory(
        status_sink=status_sink,
        registry=registry,
        pc_tag=str(data.get("pc_tag", "PC")),
    )
    automaton = Automaton(lookup=registry, journal=journal)

    auto = data.get("automaton") or {}
    parsed = [_parse_edge(e, effects) for e in auto.get("edges") or []]

    # сколько состояний нужно: явно из YAML или по максимальному номеру
    n_states = int(auto.get("states") or 1)
    for src, edge in parsed:
        n_states = max(n_states, src + 1)
        if not isinstance(edge, EffectEdge):
            n_states = max(n_states, edge.dest + 1)
    while len(automaton.states) < n_states:
        automaton.create_state()

    for src, edge in parsed:
        automaton.attach_outgoing(src, edge)
    automaton.validate()

    return World(registry=registry, automaton=automaton, effects=effects)


def load_world_from_yaml(
    path: str,
    *,
    status_sink: Optional[StatusSink] = None,
    journal: Optional[EffectLogStorage] = None,
) -> World:
    """
    Загружает мир из YAML-файла вида:

    pc_tag: PC
    items:
      - name: Cave
        description: "A mysterious cave."
      - name: Alice
        tags: [PC]
        parent: Cave
      - name: stone
        parent: Cave
    automaton:
      states: 3
      edges:
        - {from: 0, to: 1, kind: name, name: stone}
        - from: 1
          kind: effect
          effect: {type: status, text: "A plain looking stone."}
        - {from: 0, to: 2, kind: tag, tag: "+PC"}
        - from: 2
          kind: effect
          weight: 1
          effect: {type: status, text: "That's you."}
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"world file not found: {path}")

    data = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    return world_from_dict(data, status_sink=status_sink, journal=journal)
