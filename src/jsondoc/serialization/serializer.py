"""Document serialization.

Serializers turn objects into the ``bytes`` stored by a persistence layer
and back.  Plain data (dicts, lists, strings, numbers, booleans, ``None``)
round-trips as-is.  Pydantic models are tagged with their class so they are
restored as instances of the same class::

    {"#type": "myapp.models.Foo", "bar": "one"}

Keys of plain dicts that start with ``#`` are written with an extra leading
``#`` so they can never be mistaken for the type tag.

Classes
-------
- Serializer      — abstract base: serialize / deserialize
- JsonSerializer  — UTF-8 JSON documents
- YamlSerializer  — UTF-8 YAML documents
"""
from __future__ import annotations

import json
import sys
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

import yaml
from pydantic import BaseModel, ValidationError

from jsondoc.errors import SerializationError

TYPE_KEY = "#type"


def _escape(key: str) -> str:
    return "#" + key if key.startswith("#") else key


def _unescape(key: str) -> str:
    return key[1:] if key.startswith("##") else key


class Serializer(ABC):
    """Convert objects to document payloads and back.

    ``deserialize(serialize(obj))`` must produce an object structurally
    equivalent to ``obj``.  The store treats the payload as opaque.
    """

    @abstractmethod
    def serialize(self, obj: Any) -> bytes:
        """Return the payload for ``obj``.

        Raises
        ------
        SerializationError
            If ``obj`` cannot be represented.
        """

    @abstractmethod
    def deserialize(self, data: bytes) -> Any:
        """Return the object encoded in ``data``.

        Raises
        ------
        SerializationError
            If ``data`` is malformed or names an unknown type.
        """


class _ModelTagging:
    """Conversion between objects and tagged plain-data trees.

    Parameters
    ----------
    types:
        Optional allow-list of model classes.  When given, only these
        classes are restored and any other ``#type`` tag is rejected.
        When omitted, tagged classes are looked up by dotted path among
        already imported modules.  Document content never triggers an
        import.
    """

    def __init__(self, types: Iterable[type[BaseModel]] | None = None) -> None:
        self._types: dict[str, type[BaseModel]] | None = (
            {self.type_name(cls): cls for cls in types} if types is not None else None
        )

    @staticmethod
    def type_name(cls: type) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    def to_tree(self, obj: Any) -> Any:
        if isinstance(obj, BaseModel):
            data = obj.model_dump(mode="json")
            return {TYPE_KEY: self.type_name(type(obj)), **{_escape(key): value for key, value in data.items()}}
        if isinstance(obj, dict):
            return {_escape(str(key)): self.to_tree(value) for key, value in obj.items()}
        if isinstance(obj, (list, tuple)):
            return [self.to_tree(item) for item in obj]
        if obj is None or isinstance(obj, (str, int, float, bool)):
            return obj
        raise SerializationError(f"unable to serialize object of type {type(obj).__name__}")

    def from_tree(self, tree: Any) -> Any:
        if isinstance(tree, dict):
            if TYPE_KEY in tree:
                data = {_unescape(key): value for key, value in tree.items() if key != TYPE_KEY}
                cls = self._resolve(str(tree[TYPE_KEY]))
                try:
                    return cls.model_validate(data)
                except ValidationError as exc:
                    raise SerializationError(f"invalid data for {cls.__name__}", exc) from exc
            return {_unescape(key): self.from_tree(value) for key, value in tree.items()}
        if isinstance(tree, list):
            return [self.from_tree(item) for item in tree]
        return tree

    def _resolve(self, name: str) -> type[BaseModel]:
        if self._types is not None:
            try:
                return self._types[name]
            except KeyError:
                raise SerializationError(f"type is not registered: {name}") from None
        target: Any = None
        parts = name.split(".")
        for index in range(len(parts) - 1, 0, -1):
            module = sys.modules.get(".".join(parts[:index]))
            if module is None:
                continue
            target = module
            try:
                for attr in parts[index:]:
                    target = getattr(target, attr)
            except AttributeError as exc:
                raise SerializationError(f"unable to resolve type: {name}", exc) from exc
            break
        if target is None:
            raise SerializationError(f"unable to resolve type: {name} (module is not imported)")
        if not (isinstance(target, type) and issubclass(target, BaseModel)):
            raise SerializationError(f"not a pydantic model: {name}")
        return target


class JsonSerializer(Serializer):
    """Serialize documents as UTF-8 JSON.

    Parameters
    ----------
    indent:
        JSON indentation level (default 2).  ``None`` writes compact JSON.
    types:
        Optional allow-list of pydantic model classes that may be restored.
    """

    def __init__(
        self,
        indent: int | None = 2,
        types: Iterable[type[BaseModel]] | None = None,
    ) -> None:
        self.indent = indent
        self._tagging = _ModelTagging(types)

    def serialize(self, obj: Any) -> bytes:
        tree = self._tagging.to_tree(obj)
        return json.dumps(tree, indent=self.indent, ensure_ascii=False).encode("utf-8")

    def deserialize(self, data: bytes) -> Any:
        try:
            tree = json.loads(data.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise SerializationError("unable to decode JSON document", exc) from exc
        return self._tagging.from_tree(tree)

    def __repr__(self) -> str:
        return f"JsonSerializer(indent={self.indent!r})"


class YamlSerializer(Serializer):
    """Serialize documents as UTF-8 YAML using ``yaml.safe_dump``.

    Parameters
    ----------
    types:
        Optional allow-list of pydantic model classes that may be restored.
    """

    def __init__(self, types: Iterable[type[BaseModel]] | None = None) -> None:
        self._tagging = _ModelTagging(types)

    def serialize(self, obj: Any) -> bytes:
        tree = self._tagging.to_tree(obj)
        text = yaml.safe_dump(tree, default_flow_style=False, allow_unicode=True, sort_keys=True)
        return text.encode("utf-8")

    def deserialize(self, data: bytes) -> Any:
        try:
            tree = yaml.safe_load(data.decode("utf-8"))
        except (UnicodeDecodeError, yaml.YAMLError) as exc:
            raise SerializationError("unable to decode YAML document", exc) from exc
        return self._tagging.from_tree(tree)

    def __repr__(self) -> str:
        return "YamlSerializer()"
