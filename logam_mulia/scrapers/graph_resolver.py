# logam_mulia/scrapers/graph_resolver.py

"""Resolver for flattened, index-addressed page state payloads.

Nuxt serializes its client state (``__NUXT_DATA__``) as one flat JSON
array.  Every distinct value appears once; objects and arrays hold the
*positions* of their members instead of the members themselves::

    [{"data": 1}, ["ShallowReactive", 2], {"hargaEmas": 3}, ...]

Reactive containers are wrapped as ``[tag, position]`` pairs and dates
as ``["Date", "<iso string>"]``.  Negative positions encode
``undefined``/``NaN`` style sentinels and resolve to nothing.

All lookups here return ``None`` instead of raising: a malformed entry
only costs that entry.
"""

import re
from typing import Any

MAX_HOPS = 8

_WRAPPER_TAGS: frozenset[str] = frozenset({
    "Reactive", "ShallowReactive", "Ref", "ShallowRef",
})
_LITERAL_TAGS: frozenset[str] = frozenset({"Date"})

# Ordered (substring, category); first match wins
VENDOR_CATEGORY_RULES: list[tuple[str, str]] = [
    ("antam mulia retro", "antam-retro"),
    ("antam non pegadaian", "antam-non-pegadaian"),
    ("antam", "antam"),
    ("ubs", "ubs"),
    ("galeri 24", "galeri24"),
    ("galeri24", "galeri24"),
    ("dinar", "dinar"),
    ("lotus archi", "lotus-archi"),
]
OTHER_CATEGORY = "other"

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def _is_position(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def resolve(store: list[Any], position: Any) -> Any:
    """Return the value stored at *position*, unwrapping containers.

    Reactive wrappers (``["ShallowReactive", 5]``) are followed to the
    position they point at, at most ``MAX_HOPS`` times.  Returns ``None``
    for out-of-range, negative or non-integer positions.
    """
    current = position
    for _ in range(MAX_HOPS):
        if not _is_position(current):
            return None
        if current < 0 or current >= len(store):
            return None
        value = store[current]
        if (
            isinstance(value, list)
            and len(value) == 2
            and isinstance(value[0], str)
        ):
            tag = value[0]
            if tag in _WRAPPER_TAGS:
                current = value[1]
                continue
            if tag in _LITERAL_TAGS:
                return value[1]
        return value
    return None


def resolve_field(
    store: list[Any], obj: Any, name: str,
) -> Any:
    """Look up *name* on a resolved object and resolve what it holds.

    A field holding a position is dereferenced once; an inline string
    or float literal is returned unchanged.
    """
    if not isinstance(obj, dict) or name not in obj:
        return None
    raw = obj[name]
    if _is_position(raw):
        return resolve(store, raw)
    if isinstance(raw, (str, float)):
        return raw
    return None


def resolve_scalar(
    store: list[Any], obj: Any, name: str,
) -> str | int | float | None:
    """Like :func:`resolve_field` but only accepts scalar leaves."""
    value = resolve_field(store, obj, name)
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        return value
    return None


def walk(
    store: list[Any], root: int, path: tuple[str, ...],
) -> Any:
    """Follow a fixed chain of field names from the entry at *root*."""
    node = resolve(store, root)
    for name in path:
        node = resolve_field(store, node, name)
        if node is None:
            return None
    return node


def resolve_items(store: list[Any], container: Any) -> list[Any]:
    """Resolve every member of an array node, dropping unresolvable ones."""
    if not isinstance(container, list):
        return []
    items: list[Any] = []
    for member in container:
        value = resolve(store, member) if _is_position(member) else member
        if isinstance(value, dict):
            items.append(value)
    return items


def category_for_vendor(vendor_name: str | None) -> str:
    """Map a vendor name to a category tag.

    Falls back to a slug of the name, or ``"other"`` when empty.
    """
    if not vendor_name or not vendor_name.strip():
        return OTHER_CATEGORY
    lowered = vendor_name.lower()
    for needle, category in VENDOR_CATEGORY_RULES:
        if needle in lowered:
            return category
    slug = _SLUG_RE.sub("-", lowered).strip("-")
    return slug or OTHER_CATEGORY
