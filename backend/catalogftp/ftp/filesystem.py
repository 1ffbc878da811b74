from __future__ import annotations

import errno
import io
import os
import time
import zlib
from stat import S_IFDIR, S_IFREG, S_ISDIR, filemode
from typing import Any, Iterable, Iterator

from pyftpdlib.filesystems import AbstractedFS, FilesystemError

from catalogftp.fs.driver import CatalogDriver
from catalogftp.fs.errors import CatalogError
from catalogftp.fs.paths import classify
from catalogftp.fs.projector import DirectoryEntry
from catalogftp.ftp.transfer import RemoteFile


_DIR_MODE = S_IFDIR | 0o555
_FILE_MODE = S_IFREG | 0o444
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def _oserror(code: int, path: str) -> OSError:
    return OSError(code, os.strerror(code), path)


class _Listing(list):
    """Entry names as pyftpdlib expects them, plus the entries they came from."""

    def __init__(self, entries: Iterable[DirectoryEntry]) -> None:
        self.entries = list(entries)
        super().__init__(e.name for e in self.entries)


class CatalogFS(AbstractedFS):
    """
    pyftpdlib filesystem backed by the session's `CatalogDriver`.

    The engine normalises paths (ftpnorm/ftp2fs) before they get here; with root "/"
    the filesystem path and the virtual path are the same string.
    """

    def __init__(self, root: str, cmd_channel: Any) -> None:
        super().__init__(root, cmd_channel)
        self.driver: CatalogDriver = cmd_channel.driver

    # --- Navigation

    def chdir(self, path: str) -> None:
        if not self.driver.is_navigable(path):
            raise _oserror(errno.ENOENT, path)
        self.cwd = path

    def listdir(self, path: str) -> list[str]:
        if not self.driver.is_navigable(path):
            raise _oserror(errno.ENOTDIR, path)
        return _Listing(self.driver.list_directory(path))

    def listdirinfo(self, path: str) -> list[str]:
        return self.listdir(path)

    # --- Metadata

    def _stat(self, mode: int, size: int, mtime: float) -> os.stat_result:
        return os.stat_result((mode, 0, 0, 1, 0, 0, size, int(mtime), int(mtime), int(mtime)))

    def _entry_stat(self, entry: DirectoryEntry, path: str) -> os.stat_result:
        mtime = self.driver.modified_time(path).timestamp()
        if entry.kind == "dir":
            return self._stat(_DIR_MODE, 0, mtime)
        return self._stat(_FILE_MODE, max(entry.size or 0, 0), mtime)

    def stat(self, path: str) -> os.stat_result:
        mtime = self.driver.modified_time(path).timestamp()
        if self.driver.is_navigable(path):
            return self._stat(_DIR_MODE, 0, mtime)
        size = self.driver.size_of(path)
        if size < 0:
            raise _oserror(errno.ENOENT, path)
        return self._stat(_FILE_MODE, size, mtime)

    lstat = stat

    def isfile(self, path: str) -> bool:
        return classify(path).kind == "leaf"

    def isdir(self, path: str) -> bool:
        return self.driver.is_navigable(path)

    def islink(self, path: str) -> bool:
        return False

    def lexists(self, path: str) -> bool:
        return self.driver.is_navigable(path) or self.driver.size_of(path) >= 0

    def getsize(self, path: str) -> int:
        size = self.driver.size_of(path)
        if size < 0:
            raise _oserror(errno.ENOENT, path)
        return size

    def getmtime(self, path: str) -> float:
        return self.driver.modified_time(path).timestamp()

    def realpath(self, path: str) -> str:
        return path

    def readlink(self, path: str) -> str:
        raise _oserror(errno.EINVAL, path)

    def get_user_by_uid(self, uid: int) -> str:
        return "owner"

    def get_group_by_gid(self, gid: int) -> str:
        return "group"

    # --- Content

    def open(self, filename: str, mode: str) -> Any:
        if "r" not in mode or "+" in mode:
            if not self.driver.put_file(filename, None):
                raise _oserror(errno.EROFS, filename)
            raise FilesystemError("Uploads are not supported")
        try:
            res = self.driver.resolve_content(filename)
        except CatalogError as e:
            raise FilesystemError(str(e)) from e
        if res.content is not None:
            return io.BytesIO(res.content)
        return RemoteFile(self.driver.client, res.locator, name=filename, size=res.size)

    # --- Mutations: refused by the driver, reported as a read-only filesystem

    def mkstemp(self, suffix: str = "", prefix: str = "", dir: Any = None, mode: str = "wb") -> Any:
        target = dir or self.cwd
        if not self.driver.put_file(target, None):
            raise _oserror(errno.EROFS, target)
        raise FilesystemError("Uploads are not supported")

    def mkdir(self, path: str) -> None:
        if not self.driver.create_directory(path):
            raise _oserror(errno.EROFS, path)

    def rmdir(self, path: str) -> None:
        if not self.driver.delete_directory(path):
            raise _oserror(errno.EROFS, path)

    def remove(self, path: str) -> None:
        if not self.driver.delete_file(path):
            raise _oserror(errno.EROFS, path)

    def rename(self, src: str, dst: str) -> None:
        if not self.driver.rename(src, dst):
            raise _oserror(errno.EROFS, src)

    def chmod(self, path: str, mode: int) -> None:
        raise _oserror(errno.EROFS, path)

    def utime(self, path: str, timeval: float) -> None:
        raise _oserror(errno.EROFS, path)

    # --- Listing formatters. Entries from listdir() are reused so a LIST costs one fetch.

    def _stats_for(self, basedir: str, listing: list[str], ignore_err: bool) -> Iterator[tuple[str, os.stat_result]]:
        entries = getattr(listing, "entries", None)
        if entries is None or [e.name for e in entries] != list(listing):
            entries = [None] * len(listing)
        for basename, entry in zip(list(listing), entries):
            path = os.path.join(basedir, basename)
            try:
                st = self._entry_stat(entry, path) if entry is not None else self.lstat(path)
            except (OSError, FilesystemError):
                if ignore_err:
                    continue
                raise
            yield basename, st

    def _timefunc(self):
        return time.gmtime if getattr(self.cmd_channel, "use_gmt_times", True) else time.localtime

    def _encode(self, line: str) -> bytes:
        return line.encode("utf8", getattr(self.cmd_channel, "unicode_errors", "replace"))

    def format_list(self, basedir: str, listing: list[str], ignore_err: bool = True) -> Iterator[bytes]:
        timefunc = self._timefunc()
        for basename, st in self._stats_for(basedir, listing, ignore_err):
            mtime = timefunc(st.st_mtime)
            mtimestr = "%s %s" % (_MONTHS[mtime.tm_mon - 1], time.strftime("%d %H:%M", mtime))
            line = "%s %3s %-8s %-8s %8s %s %s\r\n" % (
                filemode(st.st_mode),
                st.st_nlink or 1,
                self.get_user_by_uid(st.st_uid),
                self.get_group_by_gid(st.st_gid),
                st.st_size,
                mtimestr,
                basename,
            )
            yield self._encode(line)

    def format_mlsx(
        self,
        basedir: str,
        listing: list[str],
        perms: str,
        facts: list[str],
        ignore_err: bool = True,
    ) -> Iterator[bytes]:
        timefunc = self._timefunc()
        for basename, st in self._stats_for(basedir, listing, ignore_err):
            is_dir = S_ISDIR(st.st_mode)
            out: dict[str, Any] = {}
            if "type" in facts:
                out["type"] = "dir" if is_dir else "file"
            if "perm" in facts:
                out["perm"] = "".join(p for p in ("el" if is_dir else "r") if p in perms)
            if "size" in facts and not is_dir:
                out["size"] = st.st_size
            if "modify" in facts:
                out["modify"] = time.strftime("%Y%m%d%H%M%S", timefunc(st.st_mtime))
            if "unique" in facts:
                out["unique"] = "%xg%x" % (st.st_dev, zlib.crc32(os.path.join(basedir, basename).encode("utf-8")))
            factstring = "".join(f"{k}={v};" for k, v in sorted(out.items()))
            yield self._encode(f"{factstring} {basename}\r\n")
