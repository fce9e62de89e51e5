"""ScopeForge — scope expressions over declared model fields."""

from scopeforge.model import Model, ModelInstance
from scopeforge.scopes import ParseError, ScopeExpr, parse

__version__ = "0.1.0"

__all__ = ["Model", "ModelInstance", "ParseError", "ScopeExpr", "parse"]
