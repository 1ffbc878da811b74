from __future__ import annotations

from typing import Any, Optional, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from catalogftp.mgrast.config import mgrast_api_url, mgrast_timeout
from catalogftp.mgrast.models import DownloadList, ProjectList, ProjectResource


R = TypeVar("R", bound=BaseModel)


class MgRastError(RuntimeError):
    pass


class MgRastClient:
    """
    Read-only client for the MG-RAST API.

    One instance per FTP session; `close()` aborts further requests from that session.
    """

    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or mgrast_api_url()).rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout or mgrast_timeout()),
            transport=transport,
            follow_redirects=True,
            headers={"Accept": "application/json"},
        )

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def close(self) -> None:
        self._client.close()

    def list_projects(self) -> ProjectList:
        return self._get_json("/project", ProjectList, params={"limit": "0"})

    def get_project(self, project_id: str) -> ProjectResource:
        return self._get_json(f"/project/{project_id}", ProjectResource, params={"verbosity": "full"})

    def get_downloads(self, metagenome_id: str) -> DownloadList:
        return self._get_json(f"/download/{metagenome_id}", DownloadList)

    def fetch_bytes(self, url: str, *, max_bytes: int) -> bytes:
        """Download a whole (small) file into memory."""
        buf = bytearray()
        r = self.stream(url)
        try:
            for chunk in r.iter_bytes():
                buf.extend(chunk)
                if len(buf) > max_bytes:
                    raise MgRastError(f"Download exceeds {max_bytes} bytes: {url}")
        except httpx.HTTPError as e:
            raise MgRastError(f"Download interrupted for {url}: {e}") from e
        finally:
            r.close()
        return bytes(buf)

    def stream(self, url: str, *, offset: int = 0) -> httpx.Response:
        """
        Open a streaming GET. The caller owns the response and must close it.
        A non-zero offset is sent as an open-ended Range request.
        """
        self._ensure_open()
        headers = {"Accept": "*/*"}
        if offset > 0:
            headers["Range"] = f"bytes={offset}-"
        request = self._client.build_request("GET", url, headers=headers)
        try:
            r = self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise MgRastError(f"Download request failed for {url}: {e}") from e
        if r.status_code >= 400:
            r.close()
            raise MgRastError(f"Download error {r.status_code} for {url}")
        return r

    def _ensure_open(self) -> None:
        if self._client.is_closed:
            raise MgRastError("MG-RAST client is closed")

    def _get_json(self, path: str, model: type[R], *, params: Optional[dict[str, Any]] = None) -> R:
        self._ensure_open()
        try:
            r = self._client.get(path, params=params)
        except httpx.HTTPError as e:
            raise MgRastError(f"MG-RAST request failed for {path}: {e}") from e
        if r.status_code >= 400:
            raise MgRastError(f"MG-RAST error {r.status_code} for {path}: {r.text[:200]}")
        try:
            body = r.json()
        except ValueError as e:
            raise MgRastError(f"MG-RAST returned a non-JSON body for {path}") from e
        try:
            return model.model_validate(body)
        except ValidationError as e:
            raise MgRastError(
                f"MG-RAST response for {path} did not match {model.__name__}: {e.error_count()} error(s)"
            ) from e
