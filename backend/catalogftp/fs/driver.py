from __future__ import annotations

from datetime import datetime, timezone
from typing import BinaryIO, Callable, Optional
from uuid import uuid4

from catalogftp.fs.auth import CredentialVerifier, default_verifier
from catalogftp.fs.errors import RetrievalError
from catalogftp.fs.fetch import RemoteFetcher
from catalogftp.fs.paths import classify
from catalogftp.fs.projector import (
    UNKNOWN_SIZE,
    ContentResolution,
    DirectoryEntry,
    project_collection,
    project_collection_root,
    project_item,
    project_root,
    resolve_leaf_content,
    resolve_leaf_size,
)
from catalogftp.logging.ndjson import log_event
from catalogftp.mgrast.client import MgRastClient
from catalogftp.mgrast.config import mgrast_inline_max_bytes, mgrast_shock_url


_NAVIGABLE = frozenset({"root", "collection_root", "collection", "item"})


class CatalogDriver:
    """
    Read-only view of the MG-RAST catalog as a directory tree, one instance per session.

        /                                   root
        /projects                           every public project
        /projects/<mgp>                     metagenomes of a project
        /projects/<mgp>/<mgm>               downloadable files of a metagenome
        /projects/<mgp>/<mgm>/<mgm>_<file>  one file

    Nothing is cached: each call classifies the path and refetches what it needs.
    Remote failures show up as empty listings and unknown sizes, never as exceptions.
    """

    def __init__(
        self,
        client: MgRastClient,
        *,
        verifier: CredentialVerifier,
        shock_url: str,
        inline_max_bytes: int = 0,
        session_id: Optional[str] = None,
    ) -> None:
        self.client = client
        self.session_id = session_id
        self._verifier = verifier
        self._shock_url = shock_url
        self._inline_max_bytes = inline_max_bytes
        self._fetcher = RemoteFetcher(client, session_id=session_id)

    def close(self) -> None:
        self.client.close()

    def authenticate(self, user: str, password: str) -> bool:
        return self._verifier.verify(user, password)

    def is_navigable(self, path: str) -> bool:
        return classify(path).kind in _NAVIGABLE

    def list_directory(self, path: str) -> list[DirectoryEntry]:
        m = classify(path)
        if m.kind == "root":
            entries = project_root()
        elif m.kind == "collection_root":
            entries = project_collection_root(self._fetcher.fetch_collection_list().value)
        elif m.kind == "collection":
            entries = project_collection(self._fetcher.fetch_collection(m.collection_id).value)
        elif m.kind == "item":
            entries = project_item(self._fetcher.fetch_item(m.item_id).value)
        else:
            return []
        log_event(
            level="info",
            event="fs.list",
            data={"path": path, "kind": m.kind, "entries": len(entries)},
            sessionId=self.session_id,
        )
        return entries

    def size_of(self, path: str) -> int:
        m = classify(path)
        if m.kind != "leaf":
            return UNKNOWN_SIZE
        return resolve_leaf_size(self._fetcher, m.item_id, m.leaf_id)

    def modified_time(self, path: str) -> datetime:
        # The catalog exposes no modification times.
        _ = path
        return datetime.now(timezone.utc)

    def resolve_content(self, path: str) -> ContentResolution:
        """
        Raises:
            RetrievalError: `path` is not a file path.
            NotFoundError: `path` names a file the catalog does not have.
        """
        m = classify(path)
        if m.kind != "leaf":
            raise RetrievalError(f"Could not retrieve {path} from MG-RAST")
        res = resolve_leaf_content(
            self._fetcher,
            m.item_id,
            m.leaf_id,
            shock_url=self._shock_url,
            inline_max_bytes=self._inline_max_bytes,
        )
        log_event(
            level="info",
            event="fs.resolve",
            data={"path": path, "size": res.size, "external": res.external},
            sessionId=self.session_id,
        )
        return res

    # The catalog is read-only; every mutation is refused.

    def delete_directory(self, path: str) -> bool:
        return False

    def delete_file(self, path: str) -> bool:
        return False

    def rename(self, from_path: str, to_path: str) -> bool:
        return False

    def create_directory(self, path: str) -> bool:
        return False

    def put_file(self, dest_path: str, data: Optional[BinaryIO]) -> bool:
        return False


class DriverFactory:
    """Hands out a fresh `CatalogDriver` (with its own HTTP client) per session."""

    def __init__(
        self,
        *,
        verifier: Optional[CredentialVerifier] = None,
        client_factory: Optional[Callable[[], MgRastClient]] = None,
        shock_url: Optional[str] = None,
        inline_max_bytes: Optional[int] = None,
    ) -> None:
        self.verifier = verifier or default_verifier()
        self._client_factory = client_factory or MgRastClient
        self._shock_url = shock_url or mgrast_shock_url()
        self._inline_max_bytes = mgrast_inline_max_bytes() if inline_max_bytes is None else inline_max_bytes

    def new_driver(self) -> CatalogDriver:
        return CatalogDriver(
            self._client_factory(),
            verifier=self.verifier,
            shock_url=self._shock_url,
            inline_max_bytes=self._inline_max_bytes,
            session_id=uuid4().hex[:12],
        )
