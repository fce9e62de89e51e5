"""FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from scopeforge.config import ScopeforgeConfig
from scopeforge.metadata.loader import MetadataLoader, describe_fields
from scopeforge.metadata.validator import validate_metadata_dir
from scopeforge.scopes import ParseError, parse, parse_stages

logger = logging.getLogger(__name__)

# Global instances (initialized on startup)
config: ScopeforgeConfig | None = None
metadata_loader: MetadataLoader | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load metadata on startup."""
    global config, metadata_loader

    config = ScopeforgeConfig.from_env()
    config.configure_logging()

    # Validate metadata YAML files against JSON Schemas (warn on errors, don't block startup)
    schema_issues = validate_metadata_dir(config.metadata_path)
    if schema_issues:
        error_count = sum(1 for i in schema_issues if i.severity == "error")
        warn_count = sum(1 for i in schema_issues if i.severity == "warning")
        for issue in schema_issues:
            if issue.severity == "error":
                logger.error("Metadata schema error: %s", issue)
            else:
                logger.warning("Metadata schema warning: %s", issue)
        logger.warning(
            "Metadata validation: %d error(s), %d warning(s). "
            "Run 'scopeforge metadata validate' for details.",
            error_count,
            warn_count,
        )

    metadata_loader = MetadataLoader(config.metadata_path, strict=config.strict)
    metadata_loader.load_all()
    logger.info("Loaded %d entities from %s", len(metadata_loader.entities), config.metadata_path)

    yield


app = FastAPI(title="ScopeForge API", lifespan=lifespan)


def _strict(requested: bool | None) -> bool:
    if requested is not None:
        return requested
    return config.strict if config else False


# --- Metadata Endpoints ---


@app.get("/api/entities")
async def list_entities() -> dict[str, Any]:
    """List all available entities."""
    if not metadata_loader:
        raise HTTPException(500, "Metadata loader not initialized")

    entities = []
    for name in metadata_loader.list_entities():
        entity = metadata_loader.get_entity(name)
        if entity:
            entities.append({
                "name": entity.name,
                "displayName": entity.display_name,
                "primaryKey": entity.primary_key,
                "views": sorted(entity.views),
            })

    return {"entities": entities}


@app.get("/api/entities/{entity}/fields")
async def get_entity_fields(
    entity: str,
    scope: str | None = None,
    view: str | None = None,
    strict: bool | None = None,
) -> dict[str, Any]:
    """Fields of an entity, optionally restricted by a scope expression or named view."""
    if not metadata_loader:
        raise HTTPException(500, "Metadata loader not initialized")

    entity_model = metadata_loader.get_entity(entity)
    if not entity_model:
        raise HTTPException(404, f"Entity '{entity}' not found")

    if scope is not None and view is not None:
        raise HTTPException(400, "Use either 'scope' or 'view', not both")

    # Named views are compiled once at load time with the loader's strictness
    if view is not None and strict is not None:
        raise HTTPException(400, "'strict' applies to 'scope' only, not to named views")

    model = metadata_loader.build_model(entity)
    if view is not None:
        expression = entity_model.view_expression(view)
        if expression is None:
            raise HTTPException(404, f"View '{view}' not found on entity '{entity}'")
        model = metadata_loader.build_view(entity, view)
    elif scope is not None:
        expression = scope
        try:
            model = model.view(scope, strict=_strict(strict))
        except ParseError as e:
            raise HTTPException(400, str(e))
    else:
        expression = None

    return {
        "entity": entity_model.name,
        "scope": expression,
        "fields": describe_fields(model),
    }


# --- Scope Expression Endpoints ---


class ParseRequest(BaseModel):
    expression: str
    strict: bool | None = None


class EvaluateRequest(BaseModel):
    expression: str
    scopeInfo: dict[str, list[str]]
    fields: list[str] | None = None  # Defaults to the keys of scopeInfo
    strict: bool | None = None


@app.post("/api/scopes/parse")
async def parse_scope(request: ParseRequest) -> dict[str, Any]:
    """Compile a scope expression and return its intermediate forms."""
    strict = _strict(request.strict)
    try:
        tokens, postfix, compiled = parse_stages(request.expression, strict=strict)
    except ParseError as e:
        raise HTTPException(400, str(e))

    return {
        "expression": request.expression,
        "tokens": tokens,
        "postfix": postfix,
        "canonical": str(compiled),
        "tree": compiled.to_dict(),
    }


@app.post("/api/scopes/evaluate")
async def evaluate_scope(request: EvaluateRequest) -> dict[str, Any]:
    """Evaluate a scope expression against ad-hoc field scopes."""
    try:
        compiled = parse(request.expression, strict=_strict(request.strict))
    except ParseError as e:
        raise HTTPException(400, str(e))

    fields = request.fields if request.fields is not None else list(request.scopeInfo)
    return {"fields": compiled.evaluate(request.scopeInfo, fields)}
