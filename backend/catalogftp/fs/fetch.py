from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from catalogftp.logging.ndjson import log_event
from catalogftp.mgrast.client import MgRastClient, MgRastError
from catalogftp.mgrast.models import DownloadList, ProjectListItem, ProjectResource


T = TypeVar("T")


@dataclass(frozen=True)
class Fetched(Generic[T]):
    """
    A decoded remote resource, or its zero value plus the reason the fetch failed.
    Lets callers tell "empty" apart from "the remote service failed" without raising.
    """

    value: T
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class RemoteFetcher:
    """
    Fetches catalog resources for one session.

    Every method issues exactly one request. Failures are logged once and come back
    as an empty result; nothing is raised to the caller.
    """

    def __init__(self, client: MgRastClient, *, session_id: Optional[str] = None) -> None:
        self.client = client
        self.session_id = session_id

    def fetch_collection_list(self) -> Fetched[list[ProjectListItem]]:
        return self._absorb("project list", lambda: list(self.client.list_projects().data), [])

    def fetch_collection(self, collection_id: str) -> Fetched[ProjectResource]:
        return self._absorb(f"project {collection_id}", lambda: self.client.get_project(collection_id), ProjectResource())

    def fetch_item(self, item_id: str) -> Fetched[DownloadList]:
        return self._absorb(f"downloads for {item_id}", lambda: self.client.get_downloads(item_id), DownloadList())

    def _absorb(self, resource: str, call: Callable[[], T], empty: T) -> Fetched[T]:
        try:
            return Fetched(call())
        except MgRastError as e:
            log_event(
                level="error",
                event="mgrast.fetch_failed",
                data={"resource": resource, "error": str(e)},
                sessionId=self.session_id,
            )
            return Fetched(empty, error=str(e))
