from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

# Keep module-level log writes (e.g. importing catalogftp.main) out of the user's state dir.
os.environ.setdefault("CATALOGFTP_LOG_DIR", tempfile.mkdtemp(prefix="catalogftp-test-logs-"))

from catalogftp.fs.auth import StaticCredentials  # noqa: E402
from catalogftp.fs.driver import CatalogDriver, DriverFactory  # noqa: E402
from catalogftp.mgrast.client import MgRastClient  # noqa: E402


API_URL = "http://api.test"
SHOCK_URL = "http://shock.test"


class FakeMgRast:
    """In-memory MG-RAST API + SHOCK store behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.projects: list[dict[str, Any]] = []
        self.project_details: dict[str, dict[str, Any]] = {}
        self.downloads: dict[str, dict[str, Any]] = {}
        self.nodes: dict[str, bytes] = {}
        self.failures: dict[str, Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self.honour_range = True

    def add_project(self, project_id: str, metagenomes: list[str]) -> None:
        self.projects.append({"id": project_id, "name": f"Project {project_id}", "status": "public"})
        self.project_details[project_id] = {
            "id": project_id,
            "name": f"Project {project_id}",
            "metagenomes": [[m, f"sample {m}"] for m in metagenomes],
        }

    def add_metagenome(self, metagenome_id: str, files: dict[str, int]) -> None:
        data = []
        for file_id, size in files.items():
            node_id = f"node-{metagenome_id}-{file_id}"
            data.append(
                {
                    "file_id": file_id,
                    "file_size": size,
                    "node_id": node_id,
                    "file_md5": "0" * 32,
                    "stage_name": "upload",
                    "file_name": f"{metagenome_id}.{file_id}.fna",
                }
            )
            self.nodes[node_id] = bytes(range(256)) * (size // 256) + bytes(range(size % 256))
        self.downloads[metagenome_id] = {"id": metagenome_id, "url": f"{API_URL}/download/{metagenome_id}", "data": data}

    def fail(self, path: str, status: int = 500, body: Optional[str] = None) -> None:
        self.failures[path] = lambda request: httpx.Response(status, text=body or "boom")

    def fail_with(self, path: str, exc: Exception) -> None:
        def raiser(request: httpx.Request) -> httpx.Response:
            raise exc

        self.failures[path] = raiser

    def respond(self, path: str, body: Any) -> None:
        self.failures[path] = lambda request: httpx.Response(200, json=body)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.failures:
            return self.failures[path](request)
        if request.url.host == "shock.test":
            node_id = path.rsplit("/", 1)[-1]
            if node_id not in self.nodes:
                return httpx.Response(404, text="no such node")
            data = self.nodes[node_id]
            rng = request.headers.get("Range")
            if rng and self.honour_range:
                start = int(rng.split("=", 1)[1].rstrip("-"))
                return httpx.Response(206, content=data[start:])
            return httpx.Response(200, content=data)
        if path == "/project":
            return httpx.Response(200, json={"data": self.projects, "limit": 0, "total_count": len(self.projects)})
        if path.startswith("/project/"):
            pid = path.split("/")[2]
            if pid in self.project_details:
                return httpx.Response(200, json=self.project_details[pid])
            return httpx.Response(404, json={"ERROR": f"project {pid} not found"})
        if path.startswith("/download/"):
            mid = path.split("/")[2]
            if mid in self.downloads:
                return httpx.Response(200, json=self.downloads[mid])
            return httpx.Response(404, json={"ERROR": f"metagenome {mid} not found"})
        return httpx.Response(404, text="not found")


def read_events(log_dir: Path) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    for p in sorted(log_dir.glob("catalogftp-*.ndjson")):
        for line in p.read_text(encoding="utf-8").splitlines():
            if line.strip():
                out.append(json.loads(line))
    return out


@pytest.fixture(autouse=True)
def log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    d = tmp_path / "logs"
    monkeypatch.setenv("CATALOGFTP_LOG_DIR", str(d))
    return d


@pytest.fixture
def events(log_dir: Path) -> Callable[[], list[dict[str, Any]]]:
    return lambda: read_events(log_dir)


@pytest.fixture
def mgrast() -> FakeMgRast:
    fake = FakeMgRast()
    fake.add_project("mgp1", ["mgm4440001.3", "mgm4440002.3"])
    fake.add_project("mgp2", [])
    fake.add_metagenome("mgm4440001.3", {"050.1": 100, "050.2": 200})
    return fake


@pytest.fixture
def client_factory(mgrast: FakeMgRast) -> Callable[[], MgRastClient]:
    return lambda: MgRastClient(base_url=API_URL, timeout=5.0, transport=httpx.MockTransport(mgrast.handle))


@pytest.fixture
def client(client_factory: Callable[[], MgRastClient]) -> MgRastClient:
    c = client_factory()
    yield c
    c.close()


@pytest.fixture
def factory(client_factory: Callable[[], MgRastClient]) -> DriverFactory:
    return DriverFactory(
        verifier=StaticCredentials("test", "1234"),
        client_factory=client_factory,
        shock_url=SHOCK_URL,
        inline_max_bytes=0,
    )


@pytest.fixture
def driver(factory: DriverFactory) -> CatalogDriver:
    d = factory.new_driver()
    yield d
    d.close()
