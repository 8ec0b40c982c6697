# golem/engine/__init__.py
"""
Движок правил golem (взвешенный автомат).

Состав:
  - types.py     → рёбра, состояния, пути, записи журнала
  - items.py     → предметы мира и сервис поиска по имени
  - matcher.py   → проход по ребру (сопоставление входа)
  - automaton.py → основной автомат: построение, поиск, apply
  - effects.py   → готовые эффекты (статус, перенос, теги, ...)
  - journal.py   → журнал сработавших правил
  - diagram.py   → диаграмма автомата в dot
"""
from .automaton import Automaton
from .effects import EffectFactory
from .items import InMemoryItemRegistry, Item, ItemLookup
from .journal import InMemoryEffectLog
from .types import (
    AutomatonBuildError,
    CommaEdge,
    EffectEdge,
    NameEdge,
    Path,
    SemicolonEdge,
    TagEdge,
)

__all__ = [
    "Automaton",
    "AutomatonBuildError",
    "CommaEdge",
    "EffectEdge",
    "EffectFactory",
    "InMemoryEffectLog",
    "InMemoryItemRegistry",
    "Item",
    "ItemLookup",
    "NameEdge",
    "Path",
    "SemicolonEdge",
    "TagEdge",
]
