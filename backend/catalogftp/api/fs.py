from __future__ import annotations

from dataclasses import asdict
from typing import Iterator

from fastapi import APIRouter, Depends, HTTPException, Query

from catalogftp.fs.driver import CatalogDriver, DriverFactory
from catalogftp.fs.errors import CatalogError, NotFoundError


router = APIRouter()

_factory: DriverFactory | None = None


def driver_factory() -> DriverFactory:
    global _factory
    if _factory is None:
        _factory = DriverFactory()
    return _factory


def get_driver(factory: DriverFactory = Depends(driver_factory)) -> Iterator[CatalogDriver]:
    driver = factory.new_driver()
    try:
        yield driver
    finally:
        driver.close()


@router.get("/api/fs/list")
def api_fs_list(path: str = Query(...), driver: CatalogDriver = Depends(get_driver)) -> dict:
    entries = driver.list_directory(path)
    return {
        "path": path,
        "navigable": driver.is_navigable(path),
        "entries": [asdict(e) for e in entries],
    }


@router.get("/api/fs/stat")
def api_fs_stat(path: str = Query(...), driver: CatalogDriver = Depends(get_driver)) -> dict:
    return {
        "path": path,
        "navigable": driver.is_navigable(path),
        "size": driver.size_of(path),
        "modified": driver.modified_time(path).isoformat(),
    }


@router.get("/api/fs/resolve")
def api_fs_resolve(path: str = Query(...), driver: CatalogDriver = Depends(get_driver)) -> dict:
    try:
        res = driver.resolve_content(path)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except CatalogError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return {
        "path": path,
        "size": res.size,
        "external": res.external,
        "locator": res.locator,
        "inline": res.content is not None,
    }
