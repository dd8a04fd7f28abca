# automate_core/headers.py
from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Tuple, Union

Pair = Tuple[str, str]

JSON_HEADER: Pair = ("Content-Type", "application/json")


class HeaderSet(Mapping):
    """
    Conjunto ordenado e inmutable de headers HTTP.

    - Los nombres no distinguen mayúsculas (`Cookie` == `cookie`).
    - Cada nombre aparece una sola vez; el último valor agregado gana
      pero conserva la posición original.
    - `with_header` / `merged` devuelven un conjunto nuevo.
    """

    __slots__ = ("_items",)

    def __init__(self, pairs: Union[Mapping, Iterable[Pair]] = ()) -> None:
        items: dict[str, Pair] = {}
        source = pairs.items() if isinstance(pairs, Mapping) else pairs
        for name, value in source:
            name = str(name).strip()
            if not name:
                raise ValueError("Nombre de header vacío")
            items[name.lower()] = (name, str(value))
        self._items = items

    def __getitem__(self, name: str) -> str:
        return self._items[name.lower()][1]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._items

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        # solo nombres: los valores llevan cookies y tokens
        return f"HeaderSet({list(self)!r})"

    def with_header(self, name: str, value: str) -> "HeaderSet":
        return HeaderSet([*self._items.values(), (name, value)])

    def merged(self, other: Union[Mapping, Iterable[Pair]]) -> "HeaderSet":
        extra = other.items() if isinstance(other, Mapping) else other
        return HeaderSet([*self._items.values(), *extra])

    def without(self, name: str) -> "HeaderSet":
        return HeaderSet(p for k, p in self._items.items() if k != name.lower())

    def as_dict(self) -> dict[str, str]:
        return dict(self._items.values())


def cookie_header(*parts: str) -> Pair:
    """Une pares `nombre=valor` en un solo header cookie (separados por `;`)."""
    return ("cookie", ";".join(p for p in parts if p))
