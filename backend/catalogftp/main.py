from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from catalogftp.api.fs import router as fs_router
from catalogftp.api.logs import router as logs_router
from catalogftp.logging.ndjson import init_logging, log_event


def _load_dotenvs() -> None:
    """
    Load environment variables from ./.env (the directory the process starts in).
    """
    load_dotenv(Path.cwd() / ".env")


def create_app() -> FastAPI:
    """
    Read-only HTTP view of the same tree the FTP server exposes, for operators.

        uvicorn catalogftp.main:app
    """
    _load_dotenvs()
    init_logging()
    app = FastAPI(title="catalogftp inspection API", version="0.1.0")

    @app.get("/api/health")
    def health() -> dict:
        return {"ok": True}

    @app.middleware("http")
    async def log_exceptions(request, call_next):  # type: ignore[no-untyped-def]
        try:
            return await call_next(request)
        except Exception as e:  # noqa: BLE001
            log_event(
                level="error",
                event="api.exception",
                data={"method": request.method, "path": str(request.url.path), "error": str(e)},
            )
            raise

    app.include_router(fs_router)
    app.include_router(logs_router)
    log_event(level="info", event="api.startup", data={"ok": True})
    return app


app = create_app()
