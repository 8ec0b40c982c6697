# golem/api/routes/game.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from golem.core.config import settings
from golem.engine.diagram import render_dot
from golem.engine.items import Item
from golem.engine.types import EffectLogEntry, EffectStatus
from golem.runtime import ActionOutcome, GameContext, game_instance

router = APIRouter(prefix="/api/game", tags=["game"])


class TapRequest(BaseModel):
    item_id: int


class DragRequest(BaseModel):
    item_id: int
    target_id: int


def _ctx() -> GameContext:
    ctx = game_instance()
    if ctx is None:
        raise HTTPException(500, "Game engine is not initialized")
    return ctx


def _item_to_dict(item: Item) -> Dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "tags": sorted(item.tags),
        "description": item.description,
        "parent_id": item.parent.id if item.parent is not None else None,
        "location_id": item.location.id,
        "children": [c.id for c in item.children],
    }


def _entry_to_dict(e: EffectLogEntry) -> Dict[str, Any]:
    return {
        "ts": e.ts.isoformat(),
        "input": e.input_items,
        "items": e.items,
        "weight": e.weight,
        "effect": e.effect,
        "status": e.status.value,
        "error": e.error,
    }


def _outcome_to_dict(o: ActionOutcome) -> Dict[str, Any]:
    return {"fired": o.fired, "messages": list(o.messages)}


@router.get("/items")
def list_items(tag: Optional[str] = Query(None)) -> List[Dict[str, Any]]:
    registry = _ctx().registry
    items = registry.list_items() if tag is None else registry.find_by_tag(tag)
    return [_item_to_dict(i) for i in items]


@router.post("/tap")
def tap(req: TapRequest) -> Dict[str, Any]:
    ctx = _ctx()
    try:
        return _outcome_to_dict(ctx.tap(req.item_id))
    except KeyError as e:
        raise HTTPException(404, str(e.args[0]) if e.args else "item not found")


@router.post("/drag")
def drag(req: DragRequest) -> Dict[str, Any]:
    ctx = _ctx()
    try:
        return _outcome_to_dict(ctx.drag(req.item_id, req.target_id))
    except KeyError as e:
        raise HTTPException(404, str(e.args[0]) if e.args else "item not found")


@router.get("/status")
def list_status(limit: int = Query(20, ge=1, le=1000)) -> List[Dict[str, Any]]:
    return [
        {"ts": s["ts"].isoformat(), "text": s["text"]}
        for s in list(_ctx().status)[:limit]
    ]


@router.get("/journal")
def journal(
    limit: int = Query(100, ge=1, le=1000),
    status: Optional[str] = None,
) -> List[Dict[str, Any]]:
    st = None
    if status is not None:
        try:
            st = EffectStatus(status)
        except ValueError:
            raise HTTPException(400, f"unknown status: {status}")
    return [_entry_to_dict(e) for e in _ctx().journal.list_recent(limit=limit, status=st)]


@router.get("/automaton.dot", response_class=PlainTextResponse)
def automaton_dot() -> str:
    return render_dot(_ctx().automaton)


@router.post("/reload")
def reload_world():
    ctx = _ctx()
    try:
        # как при старте: перечитать файл, собрать мир из settings.cfg
        settings.load_yaml_config()
        world = ctx.reload(settings.cfg)
        return {
            "ok": True,
            "items_count": len(world.registry),
            "states_count": len(world.automaton.states),
        }
    except FileNotFoundError:
        raise HTTPException(404, f"world file not found: {settings.world_path}")
    except Exception as e:
        raise HTTPException(500, f"world load failed: {e}")
