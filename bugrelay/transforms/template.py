"""
Template Renderer
=================
Liquid-style placeholder substitution for static JSON payload templates.

    render_template({"title": "{{ emoji }} {{ title }}"}, event)

Rules:
    - Every string inside dicts / lists is rendered; other values pass through.
    - ``{{ path }}`` reads a key; dotted paths read nested mappings.
    - Missing values and None render as "".
    - Lists render concatenated unless a ``join`` filter is given.
    - Booleans render as "true" / "false".

Filters (chainable with ``|``):
    default: "x"   — used when the value is missing, None, False or empty
    join: ", "     — joins a list with the given separator
"""
import re
from collections.abc import Mapping
from typing import Any, List, Tuple

from pydantic import BaseModel

_PLACEHOLDER_RE = re.compile(r"\{\{\s*(.+?)\s*\}\}")
_FILTER_RE = re.compile(r"^(\w+)\s*(?::\s*(.+))?$", re.DOTALL)

_MISSING = object()


class TemplateError(ValueError):
    """A placeholder uses an unknown filter."""


def _split_pipes(expression: str) -> List[str]:
    """Split on '|' outside quotes."""
    parts, current, quote = [], [], ""
    for char in expression:
        if quote:
            current.append(char)
            if char == quote:
                quote = ""
        elif char in ("'", '"'):
            quote = char
            current.append(char)
        elif char == "|":
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return parts


def _literal(arg: str) -> str:
    arg = arg.strip()
    if len(arg) >= 2 and arg[0] == arg[-1] and arg[0] in ("'", '"'):
        return arg[1:-1]
    return arg


def _lookup(context: Mapping, path: str) -> Any:
    value: Any = context
    for key in path.split("."):
        if isinstance(value, Mapping) and key in value:
            value = value[key]
        else:
            return _MISSING
    return value


def _is_blank(value: Any) -> bool:
    return value is _MISSING or value is None or value is False or value in ("", [], {})


def _to_text(value: Any) -> str:
    if _is_blank(value) and value is not False:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "".join(_to_text(item) for item in value)
    return str(value)


def _apply(value: Any, filters: List[Tuple[str, str]]) -> Any:
    for name, arg in filters:
        if name == "default":
            if _is_blank(value):
                value = arg
        elif name == "join":
            if isinstance(value, list):
                value = arg.join(_to_text(item) for item in value)
        else:
            raise TemplateError(f"Unknown template filter '{name}'")
    return value


def render_string(template: str, context: Mapping) -> str:
    def substitute(match: re.Match) -> str:
        path, *raw_filters = _split_pipes(match.group(1))
        filters = []
        for raw in raw_filters:
            parsed = _FILTER_RE.match(raw)
            if not parsed:
                raise TemplateError(f"Malformed template filter '{raw}'")
            filters.append((parsed.group(1), _literal(parsed.group(2) or "")))
        return _to_text(_apply(_lookup(context, path), filters))

    return _PLACEHOLDER_RE.sub(substitute, template)


def render_template(template: Any, context: Any) -> Any:
    """Render every placeholder in a nested JSON template."""
    if isinstance(context, BaseModel):
        context = context.model_dump()
    if isinstance(template, str):
        return render_string(template, context)
    if isinstance(template, Mapping):
        return {key: render_template(value, context) for key, value in template.items()}
    if isinstance(template, list):
        return [render_template(item, context) for item in template]
    return template
