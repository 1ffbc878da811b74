from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional


PathKind = Literal["root", "collection_root", "collection", "item", "leaf", "unknown"]

COLLECTION_ROOT = "projects"
LEAF_SEPARATOR = "_"

_COLLECTION_ID = r"mgp\d+"
_ITEM_ID = r"mgm\d+\.\d+"
_LEAF_ID = r"\d+\.\d+"

# Most specific first. Matching is always against the whole string, ASCII digits only.
_LEAF_RE = re.compile(
    rf"/{COLLECTION_ROOT}/{_COLLECTION_ID}/{_ITEM_ID}/(?P<item>{_ITEM_ID}){LEAF_SEPARATOR}(?P<leaf>{_LEAF_ID})",
    re.ASCII,
)
_ITEM_RE = re.compile(rf"/{COLLECTION_ROOT}/(?P<collection>{_COLLECTION_ID})/(?P<item>{_ITEM_ID})", re.ASCII)
_COLLECTION_RE = re.compile(rf"/{COLLECTION_ROOT}/(?P<collection>{_COLLECTION_ID})", re.ASCII)


@dataclass(frozen=True)
class PathMatch:
    kind: PathKind
    collection_id: Optional[str] = None
    item_id: Optional[str] = None
    leaf_id: Optional[str] = None


def classify(path: str) -> PathMatch:
    """
    Decide which virtual path shape `path` is.

    Paths are taken exactly as the FTP engine hands them over: no trailing-slash
    stripping and no case folding. The item id of a leaf comes from the file name,
    not from the enclosing directory.
    """
    m = _LEAF_RE.fullmatch(path)
    if m:
        return PathMatch("leaf", item_id=m.group("item"), leaf_id=m.group("leaf"))
    m = _ITEM_RE.fullmatch(path)
    if m:
        return PathMatch("item", collection_id=m.group("collection"), item_id=m.group("item"))
    m = _COLLECTION_RE.fullmatch(path)
    if m:
        return PathMatch("collection", collection_id=m.group("collection"))
    if path == f"/{COLLECTION_ROOT}":
        return PathMatch("collection_root")
    if path == "/":
        return PathMatch("root")
    return PathMatch("unknown")
