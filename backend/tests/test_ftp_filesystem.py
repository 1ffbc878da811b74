"""Tests for the pyftpdlib filesystem adapter."""

import errno
import io
from types import SimpleNamespace

import pytest
from pyftpdlib.filesystems import FilesystemError

from catalogftp.ftp.filesystem import CatalogFS
from catalogftp.ftp.transfer import RemoteFile

ITEM = "/projects/mgp1/mgm4440001.3"
LEAF = f"{ITEM}/mgm4440001.3_050.1"


@pytest.fixture
def fs(driver):
    channel = SimpleNamespace(driver=driver, use_gmt_times=True, unicode_errors="replace")
    return CatalogFS("/", channel)


class TestNavigation:
    def test_chdir_into_directory(self, fs):
        fs.chdir("/projects/mgp1")
        assert fs.cwd == "/projects/mgp1"

    @pytest.mark.parametrize("path", [LEAF, "/nope"])
    def test_chdir_refused(self, fs, path):
        with pytest.raises(OSError) as exc:
            fs.chdir(path)
        assert exc.value.errno == errno.ENOENT
        assert fs.cwd == "/"

    def test_isdir_isfile(self, fs, mgrast):
        assert fs.isdir(ITEM)
        assert not fs.isdir(LEAF)
        assert fs.isfile(LEAF)
        assert not fs.isfile(ITEM)
        assert mgrast.requests == []

    def test_engine_path_translation_is_identity(self, fs):
        assert fs.ftp2fs("/projects/mgp1/") == "/projects/mgp1"
        assert fs.fs2ftp("/projects/mgp1") == "/projects/mgp1"
        assert fs.validpath("/projects/mgp1")


class TestListing:
    def test_listdir(self, fs):
        assert fs.listdir(ITEM) == ["mgm4440001.3_050.1", "mgm4440001.3_050.2"]

    def test_listdir_of_file_refused(self, fs):
        with pytest.raises(OSError):
            fs.listdir(LEAF)

    def test_format_list_costs_one_fetch(self, fs, mgrast):
        listing = fs.listdir(ITEM)
        lines = list(fs.format_list(ITEM, listing))

        assert mgrast.paths() == ["/download/mgm4440001.3"]
        assert len(lines) == 2
        first = lines[0].decode("utf8")
        assert first.startswith("-r--r--r--")
        assert " 100 " in first
        assert first.endswith(" mgm4440001.3_050.1\r\n")

    def test_duplicate_names_keep_their_own_sizes(self, fs, mgrast):
        mgrast.downloads["mgm4440001.3"]["data"].append({"file_id": "050.1", "file_size": 300, "node_id": "n3"})

        listing = fs.listdir(ITEM)
        lines = [ln.decode("utf8") for ln in fs.format_list(ITEM, listing)]
        facts = [ln.decode("utf8") for ln in fs.format_mlsx(ITEM, listing, "elr", ["size"])]

        assert listing == ["mgm4440001.3_050.1", "mgm4440001.3_050.2", "mgm4440001.3_050.1"]
        assert [ln.split()[4] for ln in lines] == ["100", "200", "300"]
        assert facts == [
            "size=100; mgm4440001.3_050.1\r\n",
            "size=200; mgm4440001.3_050.2\r\n",
            "size=300; mgm4440001.3_050.1\r\n",
        ]

    def test_format_list_directories(self, fs):
        lines = [ln.decode("utf8") for ln in fs.format_list("/", fs.listdir("/"))]
        assert len(lines) == 1
        assert lines[0].startswith("dr-xr-xr-x")
        assert lines[0].endswith(" projects\r\n")

    def test_format_list_single_file_uses_stat(self, fs):
        lines = list(fs.format_list(ITEM, ["mgm4440001.3_050.2"]))
        assert b" 200 " in lines[0]

    def test_format_list_skips_missing(self, fs):
        assert list(fs.format_list(ITEM, ["mgm4440001.3_999.9"])) == []

    def test_format_mlsx(self, fs):
        listing = fs.listdir(ITEM)
        lines = [
            ln.decode("utf8") for ln in fs.format_mlsx(ITEM, listing, "elr", ["type", "size", "perm", "modify"])
        ]
        assert lines[0].startswith("modify=")
        assert "perm=r;size=100;type=file; mgm4440001.3_050.1\r\n" in lines[0]

    def test_format_mlsx_raises_when_asked(self, fs):
        with pytest.raises(OSError):
            list(fs.format_mlsx(ITEM, ["mgm4440001.3_999.9"], "elr", ["type"], ignore_err=False))


class TestMetadata:
    def test_getsize(self, fs):
        assert fs.getsize(LEAF) == 100

    def test_getsize_missing(self, fs):
        with pytest.raises(OSError) as exc:
            fs.getsize(f"{ITEM}/mgm4440001.3_999.9")
        assert exc.value.errno == errno.ENOENT

    def test_stat_directory_and_file(self, fs):
        assert fs.stat(ITEM).st_size == 0
        assert fs.lstat(LEAF).st_size == 100

    def test_lexists(self, fs):
        assert fs.lexists(ITEM)
        assert fs.lexists(LEAF)
        assert not fs.lexists("/nope")

    def test_getmtime_is_a_timestamp(self, fs):
        assert fs.getmtime(LEAF) > 0


class TestOpen:
    def test_locator_opens_remote_file(self, fs, mgrast):
        f = fs.open(LEAF, "rb")
        try:
            assert isinstance(f, RemoteFile)
            assert f.read() == mgrast.nodes["node-mgm4440001.3-050.1"]
        finally:
            f.close()

    def test_inline_content_opens_bytesio(self, factory, client_factory, mgrast):
        from catalogftp.fs.driver import DriverFactory

        driver = DriverFactory(
            verifier=factory.verifier,
            client_factory=client_factory,
            shock_url="http://shock.test",
            inline_max_bytes=4096,
        ).new_driver()
        try:
            fs = CatalogFS("/", SimpleNamespace(driver=driver))
            f = fs.open(LEAF, "rb")
            assert isinstance(f, io.BytesIO)
            assert f.read() == mgrast.nodes["node-mgm4440001.3-050.1"]
        finally:
            driver.close()

    def test_missing_file(self, fs):
        with pytest.raises(FilesystemError):
            fs.open(f"{ITEM}/mgm4440001.3_999.9", "rb")

    def test_directory_cannot_be_opened(self, fs):
        with pytest.raises(FilesystemError):
            fs.open(ITEM, "rb")

    @pytest.mark.parametrize("mode", ["wb", "ab", "r+b"])
    def test_write_modes_refused(self, fs, mode):
        with pytest.raises(OSError) as exc:
            fs.open(LEAF, mode)
        assert exc.value.errno == errno.EROFS


class TestMutations:
    @pytest.mark.parametrize(
        "call",
        [
            lambda fs: fs.mkdir(f"{ITEM}/new"),
            lambda fs: fs.rmdir(ITEM),
            lambda fs: fs.remove(LEAF),
            lambda fs: fs.rename(LEAF, f"{ITEM}/other"),
            lambda fs: fs.chmod(LEAF, 0o644),
            lambda fs: fs.utime(LEAF, 0),
            lambda fs: fs.mkstemp(dir=ITEM),
        ],
    )
    def test_read_only(self, fs, mgrast, call):
        with pytest.raises(OSError) as exc:
            call(fs)
        assert exc.value.errno == errno.EROFS
        assert mgrast.requests == []
