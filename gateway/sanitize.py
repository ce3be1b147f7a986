"""
Gateway — Input Sanitizers
===========================

What:  Pure functions that clean untrusted structured input.
Why:   Two classes of payload must never reach a handler:
       1. Query-operator injection: a JSON body like
          {"email": {"$gt": ""}} turns an equality lookup into
          "any email" when passed straight to a document store.
       2. Markup injection: "<script>...</script>" stored and later
          rendered executes in someone else's browser.
How:   Both walks recurse over mappings and sequences and return new
       containers; the middleware writes the results back onto the context.

Rules:
    Operator keys: any mapping key that starts with '$' or contains '.'
    is removed (or has those characters replaced, when a replacement is
    configured). Values are never rejected, only stripped.

    Markup: every '<' in every string (keys included) becomes '&lt;' and
    surrounding whitespace is trimmed. Without '<' no tag can open, so
    nothing the browser parses as markup survives.
"""

import re
from typing import Any, Optional, Tuple

_OPERATOR_KEY = re.compile(r"^\$|\.")


def is_operator_key(key: Any) -> bool:
    return isinstance(key, str) and bool(_OPERATOR_KEY.search(key))


def strip_operators(value: Any, replace_with: Optional[str] = None) -> Tuple[Any, bool]:
    """
    Remove (or rename) operator-looking keys at every nesting level.

    Returns:
        (cleaned value, True if any key was removed or renamed)
    """
    if isinstance(value, dict):
        cleaned = {}
        found = False
        for key, item in value.items():
            if is_operator_key(key):
                found = True
                if replace_with is None:
                    continue
                key = _OPERATOR_KEY.sub(replace_with, key)
                # Renaming must not clobber a legitimate key
                if key in value or key in cleaned:
                    continue
            item, nested = strip_operators(item, replace_with)
            found = found or nested
            cleaned[key] = item
        return cleaned, found

    if isinstance(value, (list, tuple)):
        items = []
        found = False
        for item in value:
            item, nested = strip_operators(item, replace_with)
            found = found or nested
            items.append(item)
        return type(value)(items), found

    return value, False


def neutralize_markup(value: Any) -> Any:
    """Escape '<' and trim every string, recursively."""
    if isinstance(value, str):
        return value.replace("<", "&lt;").strip()
    if isinstance(value, dict):
        cleaned = {}
        for key, item in value.items():
            key = neutralize_markup(key)
            # Two keys escaping to the same text: the first one wins
            if key in cleaned:
                continue
            cleaned[key] = neutralize_markup(item)
        return cleaned
    if isinstance(value, (list, tuple)):
        return type(value)(neutralize_markup(item) for item in value)
    return value


def sanitize(value: Any, replace_with: Optional[str] = None) -> Tuple[Any, bool]:
    """Operator strip first, then markup neutralization."""
    stripped, found = strip_operators(value, replace_with)
    return neutralize_markup(stripped), found
