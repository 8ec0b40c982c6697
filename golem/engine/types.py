# golem/engine/types.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from numbers import Real
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Union

if TYPE_CHECKING:
    from .automaton import Automaton
    from .items import Item


# Номер состояния в арене автомата (states[0] — начальное)
StateId = int

# Эффект: (автомат, собранные предметы) -> None
EffectFunc = Callable[["Automaton", List["Item"]], None]


class AutomatonBuildError(ValueError):
    """Ошибка построения автомата (ошибка того, кто собирает граф)."""


# === 1. БАЗОВЫЕ ENUM'Ы =======================================================

class EdgeKind(Enum):
    """Виды рёбер — весь «алфавит» автомата."""
    NAME = "name"            # имя текущего предмета (не поглощает)
    TAG = "tag"              # наличие/отсутствие тега (не поглощает)
    COMMA = "comma"          # поглощает текущий предмет, дальше — цель
    SEMICOLON = "semicolon"  # поглощает последний предмет, вход пуст
    EFFECT = "effect"        # конец правила, назначает эффект


class EffectStatus(Enum):
    """Результат исполнения эффекта."""
    SUCCESS = "success"
    FAILED = "failed"


# === 2. РЁБРА ================================================================

def _check_weight(weight: Any) -> None:
    # bool — тоже Real, но весом его считать странно
    if isinstance(weight, bool) or not isinstance(weight, Real):
        raise AutomatonBuildError(f"edge weight must be a number, got {weight!r}")
    if weight < 0:
        raise AutomatonBuildError(f"edge weight must be >= 0, got {weight!r}")


def _check_dest(dest: Any) -> None:
    if isinstance(dest, bool) or not isinstance(dest, int) or dest < 0:
        raise AutomatonBuildError(f"edge destination must be a state id, got {dest!r}")


def _check_label(value: Any, what: str) -> None:
    if not isinstance(value, str) or not value:
        raise AutomatonBuildError(f"{what} must be a non-empty string, got {value!r}")


@dataclass(frozen=True)
class NameEdge:
    """Текущий предмет называется `name` (или такой предмет есть в мире)."""
    name: str
    dest: StateId
    weight: float = 0

    kind = EdgeKind.NAME

    def __post_init__(self) -> None:
        _check_label(self.name, "name")
        _check_dest(self.dest)
        _check_weight(self.weight)


@dataclass(frozen=True)
class TagEdge:
    """
    Текущий предмет имеет тег (polarity=True) или не имеет его (False).
    """
    tag: str
    dest: StateId
    polarity: bool = True
    weight: float = 0

    kind = EdgeKind.TAG

    def __post_init__(self) -> None:
        _check_label(self.tag, "tag")
        _check_dest(self.dest)
        _check_weight(self.weight)

    @classmethod
    def parse(cls, signed_tag: str, dest: StateId, weight: float = 0) -> "TagEdge":
        """Создать ребро из записи вида "+Open" / "-Open"."""
        if not signed_tag or signed_tag[0] not in "+-":
            raise AutomatonBuildError(f"tag must start with + or -, got {signed_tag!r}")
        return cls(tag=signed_tag[1:], dest=dest, polarity=signed_tag[0] == "+", weight=weight)


@dataclass(frozen=True)
class CommaEdge:
    dest: StateId
    weight: float = 0

    kind = EdgeKind.COMMA

    def __post_init__(self) -> None:
        _check_dest(self.dest)
        _check_weight(self.weight)


@dataclass(frozen=True)
class SemicolonEdge:
    dest: StateId
    weight: float = 0

    kind = EdgeKind.SEMICOLON

    def __post_init__(self) -> None:
        _check_dest(self.dest)
        _check_weight(self.weight)


@dataclass(frozen=True)
class EffectEdge:
    """Терминальное ребро: состояния назначения нет."""
    effect: EffectFunc
    weight: float = 0

    kind = EdgeKind.EFFECT

    def __post_init__(self) -> None:
        if not callable(self.effect):
            raise AutomatonBuildError(f"effect must be callable, got {self.effect!r}")
        _check_weight(self.weight)


Edge = Union[NameEdge, TagEdge, CommaEdge, SemicolonEdge, EffectEdge]


# === 3. СОСТОЯНИЕ И ПУТЬ =====================================================

@dataclass
class State:
    """
    Состояние автомата. Ссылки на автомат нет — номер состояния
    в арене и есть его идентичность.
    """
    id: StateId
    outgoing: List[Edge] = field(default_factory=list)


@dataclass
class Path:
    """
    Путь поиска: накопленный вес, собранные предметы и (когда путь
    завершён) эффект. Живёт только внутри одного apply().
    """
    weight: float = 0
    items: List["Item"] = field(default_factory=list)
    effect: Optional[EffectFunc] = None

    @property
    def complete(self) -> bool:
        return self.effect is not None

    def fork(self) -> "Path":
        """
        Независимая копия для новой ветки. Список предметов копируется,
        сами предметы — нет (это ссылки на объекты мира).
        """
        return Path(weight=self.weight, items=copy.copy(self.items), effect=self.effect)


# === 4. ЖУРНАЛ ЭФФЕКТОВ ======================================================

@dataclass
class EffectLogEntry:
    """
    Запись в журнал: что применили, к чему, с каким весом и чем закончилось.
    """
    ts: datetime
    input_items: List[str]
    items: List[str]
    weight: float
    effect: str
    status: EffectStatus
    error: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


def effect_label(effect: Optional[EffectFunc]) -> str:
    """Короткое имя эффекта для журнала и диаграммы."""
    if effect is None:
        return "<none>"
    label = getattr(effect, "label", None)
    if label:
        return str(label)
    return getattr(effect, "__name__", None) or repr(effect)
