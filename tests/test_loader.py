from pathlib import Path

import pytest
import yaml

from golem.engine.journal import InMemoryEffectLog
from golem.engine.types import AutomatonBuildError, EffectEdge, EffectStatus, TagEdge
from golem.loader import load_world_from_yaml, world_from_dict


def write_world(tmp_path: Path, world: dict) -> Path:
    path = tmp_path / "world.yaml"
    path.write_text(yaml.safe_dump(world))
    return path


SMALL_WORLD = {
    "items": [
        {"name": "Cave", "description": "A mysterious cave."},
        {"name": "stone", "parent": "Cave"},
        {"name": "Alice", "tags": ["PC"], "parent": "Cave"},
    ],
    "automaton": {
        "edges": [
            {"from": 0, "to": 1, "kind": "name", "name": "stone"},
            {"from": 1, "kind": "effect", "effect": {"type": "status", "text": "A stone."}},
            {"from": 1, "to": 2, "kind": "comma", "weight": 1},
            {"from": 2, "to": 3, "kind": "tag", "tag": "+PC"},
            {
                "from": 3,
                "kind": "effect",
                "effect": {
                    "type": "seq",
                    "effects": [
                        {"type": "move", "parent": 2, "child": 1},
                        {"type": "status", "text": "Taken."},
                    ],
                },
            },
        ]
    },
}


def test_load_small_world(tmp_path):
    messages = []
    world = load_world_from_yaml(str(write_world(tmp_path, SMALL_WORLD)), status_sink=messages.append)

    assert len(world.registry) == 3
    # состояния выводятся из максимального номера
    assert len(world.automaton.states) == 4

    cave = world.registry.find_by_name("Cave")
    stone = world.registry.find_by_name("stone")
    alice = world.registry.find_by_name("Alice")
    assert stone.parent is cave
    assert alice.has_tag("PC")
    assert cave.description == "A mysterious cave."

    world.automaton.apply(stone)
    assert messages == ["A stone."]

    world.automaton.apply(stone, alice)
    assert stone.parent is alice
    assert messages == ["A stone.", "Taken."]


def test_parent_may_be_declared_later():
    world = world_from_dict({"items": [{"name": "stone", "parent": "Cave"}, {"name": "Cave"}]})
    assert world.registry.find_by_name("stone").parent is world.registry.find_by_name("Cave")


def test_tag_forms():
    world = world_from_dict({
        "automaton": {
            "states": 4,
            "edges": [
                {"from": 0, "to": 1, "kind": "tag", "tag": "-Open"},
                {"from": 0, "to": 2, "kind": "tag", "tag": "Open", "polarity": False},
                {"from": 0, "to": 3, "kind": "tag", "tag": "Open"},
            ],
        }
    })
    edges = world.automaton.state(0).outgoing
    assert edges == [
        TagEdge("Open", 1, polarity=False),
        TagEdge("Open", 2, polarity=False),
        TagEdge("Open", 3, polarity=True),
    ]


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_world_from_yaml(str(tmp_path / "nope.yaml"))


def test_invalid_world_rejected(tmp_path):
    bad = {"automaton": {"edges": [{"from": 0, "to": 1, "kind": "teleport"}]}}
    with pytest.raises(ValueError, match="kind"):
        load_world_from_yaml(str(write_world(tmp_path, bad)))


def test_lookahead_cycle_in_file_rejected():
    bad = {
        "automaton": {
            "edges": [
                {"from": 0, "to": 1, "kind": "name", "name": "stone"},
                {"from": 1, "to": 0, "kind": "tag", "tag": "+Heavy"},
            ]
        }
    }
    with pytest.raises(AutomatonBuildError):
        world_from_dict(bad)


def test_journal_is_wired(tmp_path):
    journal = InMemoryEffectLog()
    world = load_world_from_yaml(str(write_world(tmp_path, SMALL_WORLD)), journal=journal)
    world.automaton.apply(world.registry.find_by_name("stone"))
    [entry] = journal.list_recent()
    assert entry.status == EffectStatus.SUCCESS
    assert entry.effect == "status('A stone.')"


class TestCavePlaythrough:
    """The bundled cave adventure, played from start to finish."""

    @pytest.fixture
    def game(self, world_file):
        messages = []
        world = load_world_from_yaml(str(world_file), status_sink=messages.append)
        return world, messages

    def item(self, world, name):
        return world.registry.find_by_name(name)

    def test_every_effect_edge_is_labelled(self, game):
        world, _ = game
        effects = [e for s in world.automaton.states for e in s.outgoing if isinstance(e, EffectEdge)]
        assert effects
        assert all(getattr(e.effect, "label", None) for e in effects)

    def test_taps_describe_items(self, game):
        world, messages = game
        world.automaton.apply(self.item(world, "Alice"))
        world.automaton.apply(self.item(world, "stone"))
        assert messages == ["You are Alice, the famous explorer.", "A plain looking stone."]
        # тап не должен ничего менять в мире
        assert not self.item(world, "stone").has_tag("Glowing")

    def test_closed_door(self, game):
        world, messages = game
        world.automaton.apply(self.item(world, "Alice"), self.item(world, "door"))
        assert messages == ["The door is closed."]
        assert self.item(world, "Alice").parent is self.item(world, "Cave")

    def test_plain_stone_gets_stuck(self, game):
        world, messages = game
        stone, cavity = self.item(world, "stone"), self.item(world, "cavity")
        world.automaton.apply(stone, cavity)
        assert messages == ["The stone is stuck in the cavity."]
        assert cavity.has_tag("Filled")
        assert self.item(world, "stone") is None

    def test_full_walkthrough(self, game):
        world, messages = game
        a = world.automaton
        alice = self.item(world, "Alice")
        stone = self.item(world, "stone")

        a.apply(stone, alice)
        assert stone.parent is alice

        a.apply(alice, self.item(world, "hole"))
        assert alice.parent is self.item(world, "Tunnel")
        assert messages[-1] == "A dark tunnel."

        a.apply(alice, self.item(world, "opening"))
        assert alice.location is self.item(world, "Chamber")

        a.apply(stone, self.item(world, "fountain"))
        assert stone.has_tag("Glowing")
        assert messages[-1] == "The stone now emits a warm glow."

        a.apply(alice, self.item(world, "doorway"))
        assert alice.parent is self.item(world, "Tunnel")

        a.apply(stone, self.item(world, "cavity"))
        assert self.item(world, "door").has_tag("Open")
        assert self.item(world, "cavity").has_tag("Glowing")
        assert messages[-1] == "The stone door opens with a mighty sound."

        a.apply(alice, self.item(world, "door"))
        assert alice.parent is self.item(world, "TreasureRoom")
        assert messages[-1] == "Finally, the treasure room."

        a.apply(self.item(world, "treasure"), alice)
        assert self.item(world, "treasure").parent is alice
        assert messages[-1] == "You win!"


def test_semicolon_cycle_in_file_rejected():
    bad = {
        "items": [{"name": "hole"}],
        "automaton": {
            "edges": [
                {"from": 0, "to": 1, "kind": "comma"},
                {"from": 1, "to": 2, "kind": "semicolon"},
                {"from": 2, "to": 1, "kind": "name", "name": "hole"},
                {"from": 2, "kind": "effect", "effect": {"type": "status", "text": "loop"}},
            ]
        },
    }
    with pytest.raises(AutomatonBuildError):
        world_from_dict(bad)
