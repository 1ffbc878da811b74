from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal, Optional

from catalogftp.fs.errors import NotFoundError
from catalogftp.fs.fetch import RemoteFetcher
from catalogftp.fs.paths import COLLECTION_ROOT, LEAF_SEPARATOR
from catalogftp.logging.ndjson import log_event
from catalogftp.mgrast.client import MgRastError
from catalogftp.mgrast.models import DownloadList, DownloadListItem, ProjectListItem, ProjectResource


EntryKind = Literal["dir", "file"]

UNKNOWN_SIZE = -1


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    kind: EntryKind
    size: Optional[int] = None


@dataclass(frozen=True)
class ContentResolution:
    """
    Where the bytes of a file come from: inline `content`, or a `locator` the caller
    must fetch itself (`external`). Exactly one of the two is set.
    """

    size: int
    content: Optional[bytes] = None
    locator: Optional[str] = None
    external: bool = False

    def __post_init__(self) -> None:
        if (self.content is None) == (self.locator is None):
            raise ValueError("ContentResolution needs exactly one of content or locator")


def _dir(name: str) -> DirectoryEntry:
    return DirectoryEntry(name=name, kind="dir")


def project_root() -> list[DirectoryEntry]:
    return [_dir(COLLECTION_ROOT)]


def project_collection_root(projects: Iterable[ProjectListItem]) -> list[DirectoryEntry]:
    # Remote order is kept as-is.
    return [_dir(p.id) for p in projects]


def project_collection(project: ProjectResource) -> list[DirectoryEntry]:
    return [_dir(row[0]) for row in project.metagenomes if row]


def project_item(downloads: DownloadList) -> list[DirectoryEntry]:
    return [
        DirectoryEntry(name=f"{downloads.id}{LEAF_SEPARATOR}{d.file_id}", kind="file", size=d.file_size)
        for d in downloads.data
    ]


def _find_leaf(downloads: DownloadList, leaf_id: str) -> Optional[DownloadListItem]:
    for d in downloads.data:
        if d.file_id == leaf_id:
            return d
    return None


def shock_locator(shock_url: str, node_id: str) -> str:
    return f"{shock_url.rstrip('/')}/node/{node_id}?download"


def resolve_leaf_size(fetcher: RemoteFetcher, item_id: str, leaf_id: str) -> int:
    leaf = _find_leaf(fetcher.fetch_item(item_id).value, leaf_id)
    return leaf.file_size if leaf is not None else UNKNOWN_SIZE


def resolve_leaf_content(
    fetcher: RemoteFetcher,
    item_id: str,
    leaf_id: str,
    *,
    shock_url: str,
    inline_max_bytes: int = 0,
) -> ContentResolution:
    """
    Resolve a leaf file to its SHOCK download locator.

    With `inline_max_bytes` > 0, files whose declared size fits are downloaded right
    away and returned inline instead. If that download fails, or its length differs from
    the declared size, the locator is returned.

    Raises:
        NotFoundError: the item has no file with this id (or could not be fetched).
    """
    fetched = fetcher.fetch_item(item_id)
    leaf = _find_leaf(fetched.value, leaf_id)
    if leaf is None:
        raise NotFoundError(f"No file {leaf_id} in {item_id}")

    locator = shock_locator(shock_url, leaf.node_id)
    if inline_max_bytes and 0 <= leaf.file_size <= inline_max_bytes:
        try:
            content = fetcher.client.fetch_bytes(locator, max_bytes=inline_max_bytes)
            if len(content) != leaf.file_size:
                raise MgRastError(f"Downloaded {len(content)} bytes, catalog declares {leaf.file_size}")
        except MgRastError as e:
            log_event(
                level="warning",
                event="mgrast.inline_failed",
                data={"item": item_id, "leaf": leaf_id, "error": str(e)},
                sessionId=fetcher.session_id,
            )
        else:
            return ContentResolution(size=leaf.file_size, content=content)
    return ContentResolution(size=leaf.file_size, locator=locator, external=True)
