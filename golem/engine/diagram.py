# golem/engine/diagram.py
"""
Диаграмма автомата в формате Graphviz (dot).

Чисто производное представление для отладки правил:
  dot -Tsvg automaton.dot > automaton.svg
"""
from __future__ import annotations

from typing import Dict, List, Optional

from .automaton import Automaton
from .types import (
    CommaEdge,
    Edge,
    EffectEdge,
    NameEdge,
    SemicolonEdge,
    TagEdge,
    effect_label,
)

# цвет ребра по виду; у name-рёбер цвета нет
EDGE_COLORS = {
    TagEdge: "#5eb26b",
    CommaEdge: "#4dbce9",
    SemicolonEdge: "#ad2bad",
    EffectEdge: "#ff6a4d",
}


def _quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def _edge_line(source: int, edge: Edge) -> str:
    if isinstance(edge, NameEdge):
        label = edge.name
    elif isinstance(edge, TagEdge):
        label = ("+" if edge.polarity else "-") + edge.tag
    elif isinstance(edge, EffectEdge):
        label = effect_label(edge.effect)
    else:
        label = ""

    if edge.weight:
        label += f"/{edge.weight:g}"

    dest = "sink" if isinstance(edge, EffectEdge) else f"s{edge.dest}"
    attrs: Dict[str, str] = {"label": _quote(label)}
    color: Optional[str] = EDGE_COLORS.get(type(edge))
    if color:
        attrs["color"] = color
    extra = ", ".join(f'{k}="{v}"' for k, v in attrs.items())
    return f"  s{source} -> {dest} [{extra}];"


def render_dot(automaton: Automaton) -> str:
    lines: List[str] = [
        "digraph automaton {",
        "  rankdir=LR;",
        "  node [shape=circle];",
        '  sink [shape=point, color="#ff6a4d"];',
    ]
    for state in automaton.states:
        lines.append(f'  s{state.id} [label="{state.id}"];')
        for edge in state.outgoing:
            lines.append(_edge_line(state.id, edge))
    lines.append("}")
    return "\n".join(lines) + "\n"
