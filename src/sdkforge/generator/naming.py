"""Turn free-form API names into class, method and field identifiers.

Postman folder names ("User accounts"), OpenAPI operation ids
(``getPetById``) and JSON keys (``first-name``) all end up as Python
identifiers in the generated SDK. The helpers here split such names into
words and re-join them:

* :func:`pascal_case` -- class names (``UserAccounts``).
* :func:`camel_case` -- resource accessor and method names (``getPetById``).
* :func:`snake_case` -- fallback for keys that are not valid identifiers.
* :func:`field_name` -- DTO field / request parameter names. Valid
  identifiers are kept verbatim so the serialised keys match the API.
* :func:`unique_name` -- numeric suffixes for names that are already taken.
"""

from __future__ import annotations

import keyword
import re
from collections.abc import Collection

_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z]|\b|[^A-Za-z]|$)|[A-Z]?[a-z]+|[A-Z]+|\d+")
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def split_words(name: str) -> list[str]:
    """Split *name* on separators and CamelCase boundaries.

    Example::

        >>> split_words("getPetById")
        ['get', 'Pet', 'By', 'Id']
        >>> split_words("X-Request-ID")
        ['X', 'Request', 'ID']
    """
    return _WORD_RE.findall(name)


def _capitalise(word: str) -> str:
    # Acronyms read as words: "ID" -> "Id", "XML" -> "Xml".
    if word.isupper() and len(word) > 1:
        return word[0] + word[1:].lower()
    return word[:1].upper() + word[1:]


def pascal_case(name: str, default: str = "Unnamed") -> str:
    """Return *name* as a PascalCase class name.

    A leading digit gets an underscore prefix; an empty result falls back to
    *default*.
    """
    result = "".join(_capitalise(w) for w in split_words(name))
    if not result:
        return default
    if result[0].isdigit():
        result = f"_{result}"
    return result


def camel_case(name: str, default: str = "unnamed") -> str:
    """Return *name* as a camelCase identifier (keywords get a trailing ``_``)."""
    pascal = pascal_case(name, default="")
    if not pascal:
        return default
    if pascal[0] == "_":
        result = pascal
    else:
        result = pascal[0].lower() + pascal[1:]
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


def snake_case(name: str, default: str = "param") -> str:
    """Return *name* as a snake_case identifier.

    Example::

        >>> snake_case("X-Request-ID")
        'x_request_id'
        >>> snake_case("class")
        'class_'
    """
    result = "_".join(w.lower() for w in split_words(name))
    if not result:
        return default
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


def field_name(name: str) -> str:
    """Return an identifier for a field, keeping valid names verbatim."""
    if _IDENT_RE.match(name) and not keyword.iskeyword(name):
        return name
    return snake_case(name)


def singular(name: str) -> str:
    """Crude English singular used to name array element shapes."""
    lower = name.lower()
    if lower.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if lower.endswith(("sses", "xes", "ches", "shes")):
        return name[:-2]
    if lower.endswith("s") and not lower.endswith("ss") and len(name) > 1:
        return name[:-1]
    return f"{name}Item"


def unique_name(base: str, taken: Collection[str]) -> str:
    """Return *base*, or *base* with the lowest numeric suffix (from 2) not in *taken*."""
    if base not in taken:
        return base
    n = 2
    while f"{base}{n}" in taken:
        n += 1
    return f"{base}{n}"
