"""Shape detection for schemaless store nodes.

A node read from the document store can be one record, a keyed map of records,
a list of records, or a record wrapping its line items under a list-shaped key
(``payments``, ``items`` ...). :func:`normalize_node_to_array` tests those shape
hypotheses in a fixed order and flattens the node into a list of candidate
dicts, each carrying an ``id``.

When the signal is ambiguous the node is treated as a collection of children:
over-expansion is visible in the output, silent data loss is not.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from .models import Candidate, RawNode

# Keys whose value holds the real list of records.
LIST_KEYS: tuple[str, ...] = (
    "assets",
    "items",
    "payments",
    "purchases",
    "purchaseItems",
    "paymentItems",
    "children",
)

AMOUNT_KEYS: frozenset[str] = frozenset({"price", "amount", "total", "value", "cost"})
DATE_KEYS: frozenset[str] = frozenset(
    {"date", "purchaseDate", "acquiredAt", "createdAt", "pettyDate", "paymentDate"}
)


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------


def is_sequence(value: Any) -> bool:
    """True for list-like containers; strings and bytes are scalars here."""

    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def looks_like_single_record(node: Mapping[str, Any]) -> bool:
    """Majority vote over amount key, date key and more than two keys."""

    keys = set(node.keys())
    signals = (
        bool(keys & AMOUNT_KEYS),
        bool(keys & DATE_KEYS),
        len(keys) > 2,
    )
    return sum(signals) >= 2


# ---------------------------------------------------------------------------
# Candidate construction
# ---------------------------------------------------------------------------


def _candidate(child: Any, fallback_id: Any) -> Candidate:
    if not isinstance(child, Mapping):
        return {"id": fallback_id}
    own_id = child.get("id")
    out: Candidate = dict(child)
    out["id"] = own_id if own_id is not None else fallback_id
    return out


def _from_sequence(items: Sequence[Any]) -> list[Candidate]:
    return [_candidate(item, i) for i, item in enumerate(items)]


def _from_mapping(children: Mapping[str, Any]) -> list[Candidate]:
    return [_candidate(children[k], k) for k in children]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_node_to_array(node: RawNode) -> list[Candidate]:
    """Flatten ``node`` into candidate records.

    Order of hypotheses:

    1. falsy → ``[]``
    2. a mapping with a list-shaped key (:data:`LIST_KEYS`, first present
       wins) whose value is a sequence or mapping → its elements, tagged by
       index or key (a child's own ``id`` takes precedence)
    3. a sequence → its elements, tagged by index
    4. a mapping that looks like one record → ``[node]`` with ``id`` from the
       node or ``"single"``
    5. any other mapping → one candidate per key
    6. scalars → ``[]``
    """

    if not node:
        return []

    if isinstance(node, Mapping):
        for key in LIST_KEYS:
            if key not in node:
                continue
            nested = node[key]
            if is_sequence(nested):
                return _from_sequence(nested)
            if isinstance(nested, Mapping):
                return _from_mapping(nested)

    if is_sequence(node):
        return _from_sequence(node)

    if isinstance(node, Mapping):
        if looks_like_single_record(node):
            return [_candidate(node, "single")]
        return _from_mapping(node)

    return []


def expand_children(parent: Mapping[str, Any]) -> list[Candidate]:
    """Split a parent record into one record per child line item.

    Children inherit every parent field; child fields win on conflict, except
    ``id``: a child id is scoped to its parent (``"<parent>/<child>"``) so that
    line items of different parents never share an id. A parent whose only
    "children" are its own scalar fields (each child would carry nothing but
    an ``id``) is returned unchanged, as is a parent that normalizes to itself.
    """

    children = [c for c in normalize_node_to_array(parent) if len(c) > 1]
    if not children:
        return [dict(parent)]
    if len(children) == 1 and children[0].get("id") == parent.get("id"):
        return [dict(parent)]
    parent_id = parent.get("id")
    if parent_id is None:
        return [{**parent, **child} for child in children]
    return [{**parent, **child, "id": f"{parent_id}/{child['id']}"} for child in children]


# Any of these keys marks a mapping as a record in the deleted-records tree.
HINT_KEYS: frozenset[str] = frozenset(
    {"date", "description", "price", "total", "mainCategory", "subCategory", "approval", "comments"}
)


def flatten_hinted_records(node: RawNode, path: tuple[str, ...] = ()) -> list[tuple[str, Candidate]]:
    """Every record nested in ``node`` paired with its slash-joined key path.

    A mapping carrying one of :data:`HINT_KEYS` is a record and is not
    descended into; other mappings and sequences are walked at any depth.
    """

    if isinstance(node, Mapping):
        if node.keys() & HINT_KEYS:
            return [("/".join(path), dict(node))]
        pairs: Sequence[tuple[Any, Any]] = list(node.items())
    elif is_sequence(node):
        pairs = list(enumerate(node))
    else:
        return []
    out: list[tuple[str, Candidate]] = []
    for key, child in pairs:
        if isinstance(child, Mapping) or is_sequence(child):
            out.extend(flatten_hinted_records(child, (*path, str(key))))
    return out


__all__ = [
    "AMOUNT_KEYS",
    "DATE_KEYS",
    "HINT_KEYS",
    "LIST_KEYS",
    "expand_children",
    "flatten_hinted_records",
    "is_sequence",
    "looks_like_single_record",
    "normalize_node_to_array",
]
