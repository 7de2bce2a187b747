import json
from collections.abc import Mapping
from typing import Any, Iterable, Iterator, Union

_MISSING = object()


class Collection(Mapping):
    """Read-only wrapper around a decoded response body.

    Values are reachable by key (``collection["errcode"]``), by position
    (``collection[0]`` when ``0`` is not itself a key) and by dotted path
    (``collection.get("user.name")``). Lists are wrapped with their indexes
    as keys.

    Examples:
        ```python
        items = Collection({"errcode": 0, "user": {"name": "foo"}})

        items.get("user.name")  # "foo"
        items[0]  # 0
        items.only("errcode")  # {"errcode": 0}
        ```
    """

    def __init__(self, items: Union[Mapping, Iterable, None] = None) -> None:
        if items is None:
            items = {}
        elif isinstance(items, Collection):
            items = items.to_dict()
        elif not isinstance(items, Mapping):
            items = dict(enumerate(items))
        self._items: dict[Any, Any] = dict(items)

    def __getitem__(self, key: Any) -> Any:
        if key in self._items:
            return self._items[key]
        if isinstance(key, int) and not isinstance(key, bool):
            try:
                return list(self._items.values())[key]
            except IndexError:
                pass
        raise KeyError(key)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Collection({self._items!r})"

    def get(self, key: Any, default: Any = None) -> Any:
        if key in self._items:
            return self._items[key]
        if not isinstance(key, str) or "." not in key:
            return default

        value: Any = self._items
        for segment in key.split("."):
            if isinstance(value, Mapping) and segment in value:
                value = value[segment]
            elif isinstance(value, list) and segment.isdigit() and int(segment) < len(value):
                value = value[int(segment)]
            else:
                return default
        return value

    def has(self, key: Any) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def only(self, *keys: Any) -> dict[Any, Any]:
        return {key: self._items[key] for key in keys if key in self._items}

    def except_(self, *keys: Any) -> dict[Any, Any]:
        return {key: value for key, value in self._items.items() if key not in keys}

    def first(self, default: Any = None) -> Any:
        return next(iter(self._items.values()), default)

    def last(self, default: Any = None) -> Any:
        return next(reversed(self._items.values()), default) if self._items else default

    def to_dict(self) -> dict[Any, Any]:
        return dict(self._items)

    def to_json(self, **kwargs: Any) -> str:
        kwargs.setdefault("ensure_ascii", False)
        return json.dumps(self._items, **kwargs)
