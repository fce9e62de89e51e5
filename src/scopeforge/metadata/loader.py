"""Load entity metadata (fields, scopes, named views) from YAML files."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from scopeforge.model import Model, RelationDescriptor, data_field
from scopeforge.scopes import ParseError, ScopeExpr, parse

logger = logging.getLogger(__name__)


@dataclass
class RelationConfig:
    """Configuration for a relation field."""

    entity: str  # The related entity name


@dataclass
class FieldDefinition:
    name: str
    type: str
    display_name: str
    primary_key: bool = False
    read_only: bool = False
    scopes: list[str] = field(default_factory=list)
    relation: RelationConfig | None = None


@dataclass
class EntityModel:
    name: str
    display_name: str
    primary_key: str
    fields: list[FieldDefinition]
    views: dict[str, str] = field(default_factory=dict)  # view name -> scope expression
    compiled_views: dict[str, ScopeExpr] = field(default_factory=dict, repr=False)

    def get_field(self, name: str) -> FieldDefinition | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def view_expression(self, name: str) -> str | None:
        """Scope expression of a named view, or None if undeclared."""
        return self.views.get(name)


class MetadataLoader:
    """Loads entity and block definitions from YAML files.

    Usage:
        loader = MetadataLoader(Path("metadata"))
        loader.load_all()
        contact = loader.build_model("Contact")
        public_contact = contact.view("public")
    """

    def __init__(self, metadata_path: Path, strict: bool = False):
        self.metadata_path = metadata_path
        self.strict = strict
        self.entities: dict[str, EntityModel] = {}
        self.blocks: dict[str, list[dict]] = {}

    def load_all(self) -> None:
        """Load all blocks and entities."""
        self._load_blocks()
        self._load_entities()

    def _load_blocks(self) -> None:
        """Load reusable block definitions."""
        blocks_path = self.metadata_path / "blocks"
        if not blocks_path.exists():
            return

        for yaml_file in sorted(blocks_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "block" in data:
                    self.blocks[data["block"]] = data.get("fields", [])

    def _load_entities(self) -> None:
        """Load entity definitions."""
        entities_path = self.metadata_path / "entities"
        if not entities_path.exists():
            logger.warning("No entities directory under %s", self.metadata_path)
            return

        for yaml_file in sorted(entities_path.glob("*.yaml")):
            with open(yaml_file) as f:
                data = yaml.safe_load(f)
                if data and "entity" in data:
                    try:
                        entity = self._resolve_entity(data)
                    except ValueError as e:
                        logger.error("Skipping %s: %s", yaml_file, e)
                        continue
                    self.entities[entity.name] = entity
                else:
                    logger.warning("Skipping %s: no 'entity' key", yaml_file)

    def _resolve_entity(self, data: dict) -> EntityModel:
        """Resolve an entity definition, expanding blocks and compiling views."""
        name = data["entity"]

        all_fields: list[dict] = []

        # Expand included blocks
        for include in data.get("includes", []):
            block_name = include["block"]
            prefix = include.get("prefix", "")

            if block_name not in self.blocks:
                logger.warning("Entity '%s' includes unknown block '%s'", name, block_name)
                continue

            for block_field in self.blocks[block_name]:
                field_copy = block_field.copy()
                if prefix:
                    field_copy["name"] = prefix + field_copy["name"]
                all_fields.append(field_copy)

        # Add entity's own fields
        all_fields.extend(data.get("fields", []))

        fields = [self._resolve_field(f) for f in all_fields]

        primary_key = "id"
        for f in fields:
            if f.primary_key:
                primary_key = f.name
                break

        views = {str(k): str(v) for k, v in (data.get("views") or {}).items()}
        compiled_views = self._compile_views(name, views)

        return EntityModel(
            name=name,
            display_name=data.get("displayName", name),
            primary_key=primary_key,
            fields=fields,
            views={k: v for k, v in views.items() if k in compiled_views},
            compiled_views=compiled_views,
        )

    def _compile_views(self, entity_name: str, views: dict[str, str]) -> dict[str, ScopeExpr]:
        """Compile named views.

        A view that does not compile is dropped with an error log. A strict
        loader rejects the whole entity instead.

        Raises:
            ValueError: (strict) If any view does not compile
        """
        compiled: dict[str, ScopeExpr] = {}
        for view_name, expression in views.items():
            try:
                compiled[view_name] = parse(expression, strict=self.strict)
            except ParseError as e:
                if self.strict:
                    raise ValueError(
                        f"Entity '{entity_name}' view '{view_name}': {e}"
                    ) from e
                logger.error("Entity '%s' view '%s' skipped: %s", entity_name, view_name, e)
        return compiled

    def _resolve_field(self, data: dict) -> FieldDefinition:
        """Convert field dict to FieldDefinition."""
        name = data["name"]
        field_type = data.get("type", "string")

        display_name = data.get("displayName", self._to_display_name(name))

        scopes = data.get("scopes") or []
        if isinstance(scopes, str):
            scopes = [scopes]

        relation_data = data.get("relation")
        relation = None
        if relation_data:
            relation = RelationConfig(entity=relation_data.get("entity", ""))

        return FieldDefinition(
            name=name,
            type=field_type,
            display_name=display_name,
            primary_key=data.get("primaryKey", False),
            read_only=data.get("readOnly", False),
            scopes=[str(s) for s in scopes],
            relation=relation,
        )

    def _to_display_name(self, name: str) -> str:
        """Convert camelCase to Title Case."""
        result = []
        for i, char in enumerate(name):
            if char.isupper() and i > 0:
                result.append(" ")
            result.append(char)
        return "".join(result).title()

    def get_entity(self, name: str) -> EntityModel | None:
        """Get a resolved entity by name."""
        return self.entities.get(name)

    def list_entities(self) -> list[str]:
        """List all entity names."""
        return list(self.entities.keys())

    def build_model(self, name: str) -> Model:
        """Build a Model for an entity.

        Relation-typed fields become relations; everything else is an
        attribute stored under its own name.

        Raises:
            KeyError: If the entity is unknown
        """
        entity = self.entities.get(name)
        if entity is None:
            raise KeyError(f"Unknown entity '{name}'")

        model = Model(entity.name)
        for f in entity.fields:
            if f.type == "relation" and f.relation is not None:
                model.add_relation(
                    f.name,
                    RelationDescriptor(entity=f.relation.entity, scopes=tuple(f.scopes)),
                )
            else:
                model.add_attribute(
                    f.name,
                    data_field(f.name, scopes=f.scopes, read_only=f.read_only),
                )
        return model

    def build_view(self, entity_name: str, view_name: str) -> Model:
        """Build the restricted Model for a named view of an entity.

        Raises:
            KeyError: If the entity or the view is unknown
        """
        model = self.build_model(entity_name)
        entity = self.entities[entity_name]
        compiled = entity.compiled_views.get(view_name)
        if compiled is None:
            raise KeyError(f"Entity '{entity_name}' has no view '{view_name}'")
        return model.select(compiled.evaluate(model.scope_info(), list(model.fields())))


def describe_fields(model: Model) -> list[dict[str, Any]]:
    """Field descriptions of a model, ready for JSON output."""
    return [f.to_dict() for f in model.describe()]
