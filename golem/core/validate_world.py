# golem/core/validate_world.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Set

ALLOWED_EDGE_KINDS   = {"name", "tag", "comma", "semicolon", "effect"}
ALLOWED_EFFECT_TYPES = {"status", "move", "remove", "add_tag", "remove_tag", "seq"}

def _as_int(v, name, min_: Optional[int] = None, max_: Optional[int] = None) -> int:
    if isinstance(v, bool):
        raise ValueError(f"{name}: ожидается целое, получено {v!r}")
    try:
        iv = int(v)
    except Exception:
        raise ValueError(f"{name}: ожидается целое, получено {v!r}")
    if iv != v:
        raise ValueError(f"{name}: ожидается целое, получено {v!r}")
    if min_ is not None and iv < min_:
        raise ValueError(f"{name}: должно быть ≥ {min_} (получено {iv})")
    if max_ is not None and iv > max_:
        raise ValueError(f"{name}: должно быть ≤ {max_} (получено {iv})")
    return iv

def _as_float(v, name, min_: Optional[float] = None) -> float:
    if isinstance(v, bool):
        raise ValueError(f"{name}: ожидается число, получено {v!r}")
    try:
        fv = float(v)
    except Exception:
        raise ValueError(f"{name}: ожидается число, получено {v!r}")
    if min_ is not None and fv < min_:
        raise ValueError(f"{name}: должно быть ≥ {min_} (получено {fv})")
    return fv

def _as_bool(v, name) -> bool:
    if isinstance(v, bool):
        return v
    # допускаем 'true'/'false'/1/0 из yaml
    if isinstance(v, (int, float)) and v in (0, 1):
        return bool(v)
    if isinstance(v, str) and v.lower() in ("true", "false"):
        return v.lower() == "true"
    raise ValueError(f"{name}: должен быть true/false")

def _as_str(v, name) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError(f"{name}: должен быть непустой строкой")
    return v

def validate_effect_cfg(eff: Any, name: str) -> None:
    """Проверка описания эффекта (рекурсивно для seq)."""
    if not isinstance(eff, dict):
        raise ValueError(f"{name}: должен быть объектом")
    etype = str(eff.get("type", "")).lower()
    if etype not in ALLOWED_EFFECT_TYPES:
        raise ValueError(f"{name}.type: неизвестный тип эффекта {eff.get('type')!r}")

    if etype == "status":
        if not isinstance(eff.get("text"), str):
            raise ValueError(f"{name}.text: должен быть строкой")
    elif etype == "move":
        _as_int(eff.get("parent"), f"{name}.parent", 1)
        _as_int(eff.get("child"), f"{name}.child", 1)
    elif etype == "remove":
        _as_int(eff.get("ref"), f"{name}.ref", 1)
    elif etype in ("add_tag", "remove_tag"):
        _as_int(eff.get("ref"), f"{name}.ref", 1)
        _as_str(eff.get("tag"), f"{name}.tag")
    elif etype == "seq":
        inner = eff.get("effects")
        if not isinstance(inner, list) or not inner:
            raise ValueError(f"{name}.effects: должен быть непустым списком")
        for i, sub in enumerate(inner):
            validate_effect_cfg(sub, f"{name}.effects[{i}]")

def validate_world_cfg(cfg: Dict[str, Any]) -> None:
    """Бросает ValueError с понятным текстом, если описание мира некорректно."""
    if not isinstance(cfg, dict):
        raise ValueError("корневой YAML должен быть объектом")

    if "pc_tag" in cfg:
        _as_str(cfg["pc_tag"], "pc_tag")

    # ─── items ───
    items = cfg.get("items", [])
    if not isinstance(items, list):
        raise ValueError("items: должен быть списком")
    names: Set[str] = set()
    for i, it in enumerate(items):
        if not isinstance(it, dict):
            raise ValueError(f"items[{i}]: должен быть объектом")
        names.add(_as_str(it.get("name"), f"items[{i}].name"))
        tags = it.get("tags", [])
        if not isinstance(tags, list) or not all(isinstance(t, str) and t for t in tags):
            raise ValueError(f"items[{i}].tags: должен быть списком строк")
        if "description" in it and it["description"] is not None and not isinstance(it["description"], str):
            raise ValueError(f"items[{i}].description: должен быть строкой")
    for i, it in enumerate(items):
        parent = it.get("parent")
        if parent is None:
            continue
        if parent not in names:
            raise ValueError(f"items[{i}].parent: нет предмета с именем {parent!r}")
        if parent == it.get("name"):
            raise ValueError(f"items[{i}].parent: предмет не может лежать сам в себе")

    # ─── automaton ───
    auto = cfg.get("automaton", {})
    if not isinstance(auto, dict):
        raise ValueError("automaton: должен быть объектом")
    n_states: Optional[int] = None
    if "states" in auto:
        n_states = _as_int(auto["states"], "automaton.states", 1)

    edges: List[Any] = auto.get("edges", [])
    if not isinstance(edges, list):
        raise ValueError("automaton.edges: должен быть списком")
    for i, e in enumerate(edges):
        name = f"automaton.edges[{i}]"
        if not isinstance(e, dict):
            raise ValueError(f"{name}: должен быть объектом")
        src = _as_int(e.get("from", 0), f"{name}.from", 0)
        kind = str(e.get("kind", "")).lower()
        if kind not in ALLOWED_EDGE_KINDS:
            raise ValueError(f"{name}.kind: неизвестный вид ребра {e.get('kind')!r}")
        if "weight" in e:
            _as_float(e["weight"], f"{name}.weight", 0)

        ids = [src]
        if kind != "effect":
            ids.append(_as_int(e.get("to"), f"{name}.to", 0))
        if n_states is not None:
            for sid in ids:
                if sid >= n_states:
                    raise ValueError(f"{name}: состояния s{sid} нет (всего {n_states})")

        if kind == "name":
            _as_str(e.get("name"), f"{name}.name")
        elif kind == "tag":
            tag = _as_str(e.get("tag"), f"{name}.tag")
            if "polarity" in e:
                _as_bool(e["polarity"], f"{name}.polarity")
            elif tag[0] in "+-" and len(tag) == 1:
                raise ValueError(f"{name}.tag: после знака нужно имя тега")
        elif kind == "effect":
            validate_effect_cfg(e.get("effect"), f"{name}.effect")
