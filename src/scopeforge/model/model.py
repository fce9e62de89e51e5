"""Models and restricted model views.

A Model is an ordered set of declared fields. Each field carries scope tags,
so a scope expression can narrow a model to a view:

    contact.view("public | !private")
"""

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from scopeforge.model.registry import AccessorRegistry
from scopeforge.model.types import (
    FieldAccessor,
    FieldDescriptor,
    FieldKind,
    RelationDescriptor,
    SelectedField,
    relation_field,
)
from scopeforge.scopes import parse_cached

logger = logging.getLogger(__name__)


class Model:
    """A set of declared fields, attributes and relations.

    Attributes:
        name: Entity name (empty for ad-hoc models)
        parent: The model this one was selected from, for views
        accessors: Attribute-style access rules for instances
    """

    def __init__(self, name: str = "", parent: "Model | None" = None):
        self.name = name
        self.parent = parent
        self.accessors = AccessorRegistry()
        self._fields: dict[str, FieldDescriptor] = {}
        self._kinds: dict[str, FieldKind] = {}
        self._relations: dict[str, RelationDescriptor] = {}

    def __repr__(self) -> str:
        return f"Model({self.name!r}, fields={list(self._fields)})"

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def fields(self) -> Iterator[str]:
        yield from self._fields.keys()

    def attributes(self) -> Iterator[str]:
        for name, kind in self._kinds.items():
            if kind == FieldKind.ATTRIBUTE:
                yield name

    def relations(self) -> Iterator[str]:
        yield from self._relations.keys()

    def field(self, name: str) -> FieldDescriptor | None:
        return self._fields.get(name)

    def kind(self, name: str) -> FieldKind | None:
        return self._kinds.get(name)

    def relation(self, name: str) -> RelationDescriptor | None:
        return self._relations.get(name)

    def describe(self) -> list[SelectedField]:
        """Describe every field, in declaration order."""
        result = []
        for name, descriptor in self._fields.items():
            relation = self._relations.get(name)
            result.append(
                SelectedField(
                    name=name,
                    kind=self._kinds[name],
                    scopes=list(descriptor.scopes),
                    entity=relation.entity if relation else None,
                )
            )
        return result

    # -------------------------------------------------------------------------
    # Declaration
    # -------------------------------------------------------------------------

    def add_field(self, name: str, descriptor: FieldDescriptor) -> None:
        """Declare a field. The first declaration of a name wins."""
        self._declare(name, descriptor, FieldKind.FIELD)

    def add_attribute(self, name: str, descriptor: FieldDescriptor) -> None:
        """Declare a stored attribute."""
        self._declare(name, descriptor, FieldKind.ATTRIBUTE)

    def add_relation(self, name: str, relation: RelationDescriptor) -> None:
        """Declare a relation field referencing another entity."""
        if self._declare(name, relation_field(name, relation), FieldKind.RELATION):
            self._relations[name] = relation

    def _declare(self, name: str, descriptor: FieldDescriptor, kind: FieldKind) -> bool:
        if name in self._fields:
            logger.debug("Field '%s' already declared on %r, keeping the first", name, self)
            return False
        self._fields[name] = descriptor
        self._kinds[name] = kind
        self.accessors.register(FieldAccessor.for_descriptor(name, descriptor))
        return True

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def scope_info(self) -> dict[str, list[str]]:
        """Map each declared field to its scope tags."""
        return {name: list(d.scopes) for name, d in self._fields.items()}

    def select(self, fields: Iterable[str]) -> "Model":
        """Project this model onto the named fields.

        Unknown names are skipped; each field keeps its kind and descriptor.
        """
        view = Model(self.name, parent=self)

        for name in fields:
            descriptor = self._fields.get(name)
            if descriptor is None:
                continue

            kind = self._kinds[name]
            if kind == FieldKind.RELATION:
                view.add_relation(name, self._relations[name])
            elif kind == FieldKind.ATTRIBUTE:
                view.add_attribute(name, descriptor)
            else:
                view.add_field(name, descriptor)

        return view

    def view(self, expression: str, strict: bool = False) -> "Model":
        """Restrict this model to the fields selected by a scope expression.

        Raises:
            ParseError: If the expression is malformed
        """
        compiled = parse_cached(expression, strict)
        selected = compiled.evaluate(self.scope_info(), list(self.fields()))
        return self.select(selected)

    # -------------------------------------------------------------------------
    # Instances
    # -------------------------------------------------------------------------

    def create_instance(self) -> "ModelInstance":
        return ModelInstance(self)

    def wrap(self, data: dict[str, Any]) -> "ModelInstance":
        """Wrap existing record data (not copied)."""
        return ModelInstance(self, data)

    def get_instance_field(self, data: dict[str, Any], name: str) -> Any:
        descriptor = self._fields.get(name)
        if descriptor is not None and descriptor.get is not None:
            return descriptor.get(data)
        return None

    def set_instance_field(self, data: dict[str, Any], name: str, value: Any) -> None:
        descriptor = self._fields.get(name)
        if descriptor is not None and descriptor.set is not None:
            descriptor.set(data, value)


class ModelInstance:
    """A record viewed through a Model.

    Declared fields are reachable as attributes (``contact.email``) through
    the model's accessor registry.
    """

    def __init__(self, model: Model, data: dict[str, Any] | None = None):
        object.__setattr__(self, "_model", model)
        object.__setattr__(self, "_data", {} if data is None else data)

    @property
    def model(self) -> Model:
        return self._model

    def get(self, name: str) -> Any:
        return self._model.get_instance_field(self._data, name)

    def set(self, name: str, value: Any) -> None:
        self._model.set_instance_field(self._data, name, value)

    def assign(self, data: dict[str, Any]) -> None:
        """Set every non-None value in ``data``."""
        for name, value in data.items():
            if value is not None:
                self.set(name, value)

    def data(self) -> dict[str, Any]:
        """Collect readable, non-None field values in declaration order."""
        result: dict[str, Any] = {}
        for name in self._model.fields():
            value = self.get(name)
            if value is None:
                continue
            if hasattr(value, "to_json"):
                value = value.to_json()
            result[name] = value
        return result

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        accessor = self._model.accessors.get(name)
        if not accessor.readable:
            raise AttributeError(f"Field '{name}' is not readable")
        return self.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        accessor = self._model.accessors.get(name)
        if not accessor.writable:
            raise AttributeError(f"Field '{name}' is read-only")
        self.set(name, value)

    def __repr__(self) -> str:
        return f"ModelInstance({self._model.name!r}, {self._data!r})"
