# golem/engine/items.py
from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, Iterable, List, Optional


# ======================================================================
# 1. ПРЕДМЕТ
# ======================================================================

class Item:
    """
    Предмет мира: персонаж, вещь или локация.
    Локация — это просто предмет без родителя.

    Во время поиска по автомату предмет только читается
    (name, has_tag); меняют его эффекты.
    """

    def __init__(
        self,
        name: str,
        tags: Iterable[str] = (),
        *,
        description: Optional[str] = None,
    ) -> None:
        if not name:
            raise ValueError("item name must not be empty")
        self.name = name
        self.tags: set[str] = set(tags)
        self.id: Optional[int] = None  # выдаёт реестр
        self.parent: Optional[Item] = None
        self.children: List[Item] = []
        self._description = description

    # --- теги -------------------------------------------------------------

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def tag(self, *tags: str) -> "Item":
        for t in tags:
            if t:
                self.tags.add(t)
        return self

    def untag(self, tag: str) -> Optional[str]:
        """Снять тег; вернёт его, если он действительно был."""
        if tag in self.tags:
            self.tags.discard(tag)
            return tag
        return None

    # --- иерархия ---------------------------------------------------------

    def append_child(self, child: "Item") -> "Item":
        """
        Положить child внутрь этого предмета.
        Если он лежал в другом месте — сначала достаём оттуда.
        """
        if child is self:
            raise ValueError(f"cannot put {self.name} inside itself")
        if child.parent is self:
            return child
        # нельзя положить предка внутрь потомка
        node = self.parent
        while node is not None:
            if node is child:
                raise ValueError(f"cannot put {child.name} inside its own content")
            node = node.parent
        if child.parent is not None:
            child.parent.remove_child(child)
        child.parent = self
        self.children.append(child)
        return child

    def item(self, *children: "Item") -> "Item":
        """Добавить несколько детей и вернуть себя (для цепочек)."""
        for c in children:
            self.append_child(c)
        return self

    def remove_child(self, child: "Item") -> Optional["Item"]:
        if child.parent is not self:
            return None
        self.children.remove(child)
        child.parent = None
        return child

    @property
    def location(self) -> "Item":
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    # --- описание ---------------------------------------------------------

    @property
    def description(self) -> str:
        return self._description or str(self)

    @description.setter
    def description(self, text: Optional[str]) -> None:
        self._description = text

    def __str__(self) -> str:
        return self.name + "".join(f"+{t}" for t in sorted(self.tags))

    def __repr__(self) -> str:
        return f"Item({self!s}, id={self.id})"


# ======================================================================
# 2. ПОИСК ПРЕДМЕТОВ ПО ИМЕНИ
# ======================================================================

class ItemLookup(ABC):
    """
    Сервис поиска «живого» предмета по имени.
    Нужен NameEdge, когда вход уже пуст: правило ссылается на предмет
    мира (например, "hole"), который игрок явно не указал.
    """

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Item]:
        """Вернёт первый живой предмет с таким именем или None."""
        raise NotImplementedError


class NullItemLookup(ItemLookup):
    """Пустой мир: неявных целей не бывает."""

    def find_by_name(self, name: str) -> Optional[Item]:
        return None


# ======================================================================
# 3. IN-MEMORY РЕЕСТР
# ======================================================================

class InMemoryItemRegistry(ItemLookup):
    """
    Реестр предметов в памяти.
    Порядок регистрации сохраняется: find_by_name отдаёт самый ранний.
    """

    def __init__(self, items: Iterable[Item] = ()) -> None:
        self._items: Dict[int, Item] = {}
        self._by_name: Dict[str, List[Item]] = {}
        self._ids = itertools.count(1)
        self._lock = RLock()
        for it in items:
            self.register(it)

    def register(self, item: Item) -> Item:
        with self._lock:
            if item.id is not None and self._items.get(item.id) is item:
                return item
            item.id = next(self._ids)
            self._items[item.id] = item
            self._by_name.setdefault(item.name, []).append(item)
            return item

    def unregister(self, item: Item) -> Optional[Item]:
        """Убрать предмет из мира (если его нет — молча)."""
        with self._lock:
            if item.id is None or self._items.get(item.id) is not item:
                return None
            del self._items[item.id]
            same = self._by_name.get(item.name, [])
            if item in same:
                same.remove(item)
            if not same:
                self._by_name.pop(item.name, None)
            return item

    def get(self, item_id: int) -> Optional[Item]:
        with self._lock:
            return self._items.get(item_id)

    def find_by_name(self, name: str) -> Optional[Item]:
        with self._lock:
            same = self._by_name.get(name)
            return same[0] if same else None

    def find_all(self, name: str) -> List[Item]:
        with self._lock:
            return list(self._by_name.get(name, []))

    def find_by_tag(self, tag: str) -> List[Item]:
        """
        Живые предметы с тегом, в порядке регистрации.
        Теги меняются на самих предметах, поэтому индекса нет, только обход.
        """
        with self._lock:
            return [it for it in self._items.values() if it.has_tag(tag)]

    def list_items(self) -> List[Item]:
        with self._lock:
            return list(self._items.values())

    def __contains__(self, item: object) -> bool:
        with self._lock:
            return isinstance(item, Item) and self._items.get(item.id) is item  # type: ignore[arg-type]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
