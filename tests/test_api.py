import pytest
import yaml
from fastapi import FastAPI
from fastapi.testclient import TestClient

from golem.api.routes.game import router
from golem.core.config import settings
from golem.runtime import get_game, init_game, reset_game


@pytest.fixture
def client(monkeypatch, world_file):
    monkeypatch.setattr(settings, "_world_path", world_file)
    monkeypatch.setattr(settings, "_cfg", {})
    settings.load_yaml_config()

    app = FastAPI()
    app.include_router(router)
    init_game(settings.cfg)
    yield TestClient(app)
    reset_game()


def ids(client):
    return {i["name"]: i["id"] for i in client.get("/api/game/items").json()}


def test_items(client):
    items = {i["name"]: i for i in client.get("/api/game/items").json()}
    assert items["Alice"]["tags"] == ["PC"]
    assert items["Alice"]["parent_id"] == items["Cave"]["id"]
    assert items["Cave"]["description"] == "A mysterious cave."


def test_items_by_tag(client):
    assert [i["name"] for i in client.get("/api/game/items", params={"tag": "PC"}).json()] == ["Alice"]
    assert client.get("/api/game/items", params={"tag": "Glowing"}).json() == []


def test_tap(client):
    resp = client.post("/api/game/tap", json={"item_id": ids(client)["stone"]})
    assert resp.status_code == 200
    assert resp.json() == {"fired": True, "messages": ["A plain looking stone."]}

    status = client.get("/api/game/status").json()
    assert status[0]["text"] == "A plain looking stone."


def test_tap_without_rule(client):
    resp = client.post("/api/game/tap", json={"item_id": ids(client)["opening"]})
    assert resp.json() == {"fired": False, "messages": []}
    assert client.get("/api/game/journal").json() == []


def test_drag_moves_player(client):
    i = ids(client)
    resp = client.post("/api/game/drag", json={"item_id": i["Alice"], "target_id": i["hole"]})
    assert resp.json() == {"fired": True, "messages": ["A dark tunnel."]}

    items = {it["name"]: it for it in client.get("/api/game/items").json()}
    assert items["Alice"]["parent_id"] == i["Tunnel"]

    [entry] = client.get("/api/game/journal").json()
    assert entry["input"] == ["Alice", "hole"]
    assert entry["items"] == ["Alice", "hole", "Tunnel"]
    assert entry["status"] == "success"
    assert client.get("/api/game/journal", params={"status": "failed"}).json() == []


def test_unknown_item(client):
    assert client.post("/api/game/tap", json={"item_id": 999}).status_code == 404
    i = ids(client)
    assert client.post("/api/game/drag", json={"item_id": i["Alice"], "target_id": 999}).status_code == 404


def test_bad_journal_filter(client):
    assert client.get("/api/game/journal", params={"status": "maybe"}).status_code == 400


def test_dot(client):
    resp = client.get("/api/game/automaton.dot")
    assert resp.status_code == 200
    assert resp.text.startswith("digraph automaton")


def test_reload_restores_world(client):
    i = ids(client)
    client.post("/api/game/drag", json={"item_id": i["Alice"], "target_id": i["hole"]})
    resp = client.post("/api/game/reload")
    assert resp.json() == {"ok": True, "items_count": 13, "states_count": 36}

    items = {it["name"]: it for it in client.get("/api/game/items").json()}
    assert items["Alice"]["parent_id"] == items["Cave"]["id"]
    # журнал переживает перезагрузку мира
    assert len(get_game().journal) == 1


def test_not_initialized():
    reset_game()
    app = FastAPI()
    app.include_router(router)
    assert TestClient(app).get("/api/game/items").status_code == 500


def test_app_startup(monkeypatch, world_file):
    from golem.main import app

    monkeypatch.setattr(settings, "_world_path", world_file)
    monkeypatch.setattr(settings, "_cfg", {})
    with TestClient(app) as c:
        assert len(c.get("/api/game/items").json()) == 13
    with pytest.raises(RuntimeError):
        get_game()


def test_reload_picks_up_edited_file(client, monkeypatch, tmp_path):
    cfg = dict(settings.cfg)
    cfg["items"] = [{"name": "Cave"}, {"name": "Alice", "tags": ["PC"], "parent": "Cave"}]
    cfg["automaton"] = {"edges": []}
    edited = tmp_path / "world.yaml"
    edited.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    monkeypatch.setattr(settings, "_world_path", edited)

    resp = client.post("/api/game/reload")
    assert resp.json() == {"ok": True, "items_count": 2, "states_count": 1}
    assert sorted(i["name"] for i in client.get("/api/game/items").json()) == ["Alice", "Cave"]
    assert settings.cfg["automaton"] == {"edges": []}


def test_reload_missing_file(client, monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "_world_path", tmp_path / "gone.yaml")
    assert client.post("/api/game/reload").status_code == 404
    # старый мир остался на месте
    assert len(client.get("/api/game/items").json()) == 13


def test_reload_invalid_file(client, monkeypatch, tmp_path):
    broken = tmp_path / "world.yaml"
    broken.write_text(yaml.safe_dump({"items": [{"tags": ["PC"]}]}), encoding="utf-8")
    monkeypatch.setattr(settings, "_world_path", broken)
    assert client.post("/api/game/reload").status_code == 500
    assert len(client.get("/api/game/items").json()) == 13
