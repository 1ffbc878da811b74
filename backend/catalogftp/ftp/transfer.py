from __future__ import annotations

import errno
import io
import os
from typing import Iterator, Optional

import httpx

from catalogftp.mgrast.client import MgRastClient, MgRastError


class RemoteFile(io.RawIOBase):
    """
    Read-only file object that streams a download locator.

    pyftpdlib reads files in chunks through `read(n)`; the HTTP request is sent on the
    first read. `seek` is only honoured before that (FTP REST) and becomes a Range
    request; servers that ignore Range are handled by skipping the leading bytes.
    """

    def __init__(self, client: MgRastClient, locator: str, *, name: str, size: int = -1) -> None:
        super().__init__()
        self.name = name
        self.locator = locator
        self.size = size
        self._client = client
        self._offset = 0
        self._response: Optional[httpx.Response] = None
        self._chunks: Optional[Iterator[bytes]] = None
        self._buf = b""

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return self._response is None

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        if self._response is not None:
            raise OSError(errno.ESPIPE, "Cannot seek once the transfer has started", self.name)
        if whence != io.SEEK_SET or offset < 0:
            raise OSError(errno.EINVAL, os.strerror(errno.EINVAL), self.name)
        self._offset = offset
        return offset

    def tell(self) -> int:
        return self._offset

    def _open(self) -> Iterator[bytes]:
        try:
            self._response = self._client.stream(self.locator, offset=self._offset)
        except MgRastError as e:
            raise OSError(errno.EIO, str(e), self.name) from e
        chunks = self._response.iter_bytes()
        if self._offset and self._response.status_code != 206:
            chunks = _skip(chunks, self._offset)
        return chunks

    def read(self, size: int = -1) -> bytes:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        if self._chunks is None:
            self._chunks = self._open()
        try:
            while size < 0 or len(self._buf) < size:
                chunk = next(self._chunks, None)
                if chunk is None:
                    break
                self._buf += chunk
        except httpx.HTTPError as e:
            raise OSError(errno.EIO, f"Download interrupted: {e}", self.name) from e
        if size < 0:
            data, self._buf = self._buf, b""
        else:
            data, self._buf = self._buf[:size], self._buf[size:]
        self._offset += len(data)
        return data

    def readall(self) -> bytes:
        return self.read(-1)

    def close(self) -> None:
        if self._response is not None:
            self._response.close()
        super().close()


def _skip(chunks: Iterator[bytes], n: int) -> Iterator[bytes]:
    for chunk in chunks:
        if n >= len(chunk):
            n -= len(chunk)
            continue
        yield chunk[n:]
        n = 0
