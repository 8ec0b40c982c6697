from pathlib import Path
from typing import List

import pytest

from golem.engine.items import InMemoryItemRegistry, Item

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class Recorder:
    """Effect stub that remembers every call."""

    def __init__(self, label: str) -> None:
        self.label = label
        self.calls: List[List[Item]] = []

    def __call__(self, automaton, items) -> None:
        self.calls.append(list(items))

    @property
    def fired(self) -> bool:
        return bool(self.calls)


@pytest.fixture
def recorder():
    return Recorder


@pytest.fixture
def registry() -> InMemoryItemRegistry:
    return InMemoryItemRegistry()


@pytest.fixture
def world_file() -> Path:
    return DATA_DIR / "world.yaml"
