"""Accessor registry for model instances.

Each model owns one registry mapping field name -> FieldAccessor.
ModelInstance consults it for attribute-style access instead of having
properties attached to its class at runtime.
"""

from scopeforge.model.types import FieldAccessor


class AccessorRegistry:
    """Per-model registry of field accessors.

    Example:
        registry.register(FieldAccessor("email", readable=True, writable=True))
        registry.get("email").writable  # True
    """

    def __init__(self) -> None:
        self._accessors: dict[str, FieldAccessor] = {}

    def register(self, accessor: FieldAccessor) -> None:
        """Register an accessor.

        Idempotent - re-registering the same name is a no-op.
        """
        if accessor.name in self._accessors:
            return
        self._accessors[accessor.name] = accessor

    def get(self, name: str) -> FieldAccessor:
        """Get the accessor for a field.

        Raises:
            AttributeError: If no accessor is registered under ``name``
        """
        if name not in self._accessors:
            raise AttributeError(f"No field '{name}' is declared on this model")
        return self._accessors[name]

    def is_registered(self, name: str) -> bool:
        return name in self._accessors

    def list_registered(self) -> list[str]:
        """Registered field names in declaration order."""
        return list(self._accessors.keys())

    def clear(self) -> None:
        self._accessors.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._accessors

    def __len__(self) -> int:
        return len(self._accessors)
