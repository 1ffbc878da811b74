from __future__ import annotations

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Iterator, Optional

_lock = threading.Lock()

_PREFIX = "catalogftp-"
_MAX_STR = 600
_MAX_ITEMS = 80


def log_dir() -> Path:
    p = os.environ.get("CATALOGFTP_LOG_DIR")
    if p:
        return Path(p)
    state = os.environ.get("XDG_STATE_HOME")
    base = Path(state) if state else Path.home() / ".local" / "state"
    return base / "catalogftp" / "logs"


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _clip(v: Any) -> Any:
    # Error strings from the remote service can carry whole response bodies.
    if isinstance(v, str):
        return v if len(v) <= _MAX_STR else v[:_MAX_STR] + f"...(+{len(v) - _MAX_STR} chars)"
    if v is None or isinstance(v, (int, float, bool)):
        return v
    if isinstance(v, dict):
        return {str(k): _clip(vv) for k, vv in list(v.items())[:_MAX_ITEMS]}
    if isinstance(v, (list, tuple)):
        out = [_clip(x) for x in v[:_MAX_ITEMS]]
        if len(v) > _MAX_ITEMS:
            out.append({"_truncated_items": len(v) - _MAX_ITEMS})
        return out
    return _clip(str(v))


def _files(d: Path) -> list[Path]:
    """Log files oldest first: by day, then by rotation index."""

    def key(p: Path) -> tuple[str, int]:
        day, _, rest = p.name[len(_PREFIX) :].partition(".")
        idx = rest.split(".")[0] if rest.count(".") == 1 else "0"
        return day, int(idx) if idx.isdigit() else 0

    return sorted(d.glob(f"{_PREFIX}*.ndjson"), key=key)


def _current_file(d: Path) -> Path:
    day = time.strftime("%Y-%m-%d")
    todays = [p for p in _files(d) if p.name.startswith(f"{_PREFIX}{day}.")]
    if not todays:
        return d / f"{_PREFIX}{day}.ndjson"
    last = todays[-1]
    if last.stat().st_size < _env_int("CATALOGFTP_LOG_MAX_BYTES", 50 * 1024 * 1024):
        return last
    return d / f"{_PREFIX}{day}.{len(todays)}.ndjson"


def _prune(d: Path) -> None:
    cutoff = time.time() - _env_int("CATALOGFTP_LOG_RETENTION_DAYS", 7) * 86400
    for p in _files(d):
        try:
            if p.stat().st_mtime < cutoff:
                p.unlink(missing_ok=True)
        except OSError:
            continue


def init_logging() -> None:
    """Create the log directory and drop files past the retention window."""
    with _lock:
        d = log_dir()
        d.mkdir(parents=True, exist_ok=True)
        _prune(d)


def log_event(
    *,
    level: str,
    event: str,
    data: Optional[dict[str, Any]] = None,
    sessionId: Optional[str] = None,
) -> None:
    """
    Append one NDJSON record. Writing is best-effort: a full disk or an unwritable
    directory never reaches an FTP session. Never pass credentials in `data`.
    """
    rec: dict[str, Any] = {"ts": int(time.time() * 1000), "level": level, "event": event}
    if sessionId:
        rec["sessionId"] = sessionId
    if data:
        rec["data"] = _clip(data)
    line = json.dumps(rec, ensure_ascii=False)
    with _lock:
        try:
            d = log_dir()
            d.mkdir(parents=True, exist_ok=True)
            with open(_current_file(d), "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            pass


def read_events(
    *,
    session_id: Optional[str] = None,
    event: Optional[str] = None,
    level: Optional[str] = None,
    limit: int = 200,
) -> list[dict[str, Any]]:
    """
    The newest `limit` records matching every given filter, oldest first.
    `event` ending in "." matches a whole family, e.g. "mgrast.".
    """
    d = log_dir()
    if not d.exists():
        return []
    matched: list[dict[str, Any]] = []
    for rec in _records(_files(d)):
        if session_id and rec.get("sessionId") != session_id:
            continue
        if level and rec.get("level") != level:
            continue
        name = str(rec.get("event", ""))
        if event and not (name.startswith(event) if event.endswith(".") else name == event):
            continue
        matched.append(rec)
    return matched[-limit:]


def _records(files: list[Path]) -> Iterator[dict[str, Any]]:
    for p in files:
        try:
            text = p.read_text(encoding="utf-8", errors="ignore")
        except OSError:
            continue
        for line in text.splitlines():
            try:
                rec = json.loads(line)
            except ValueError:
                # Partial line from a concurrent writer.
                continue
            if isinstance(rec, dict):
                yield rec


class NdjsonHandler(logging.Handler):
    """
    Forward stdlib log records (the FTP engine logs through `logging`) into the NDJSON channel.
    """

    def __init__(self, *, prefix: str = "ftpd", level: int = logging.INFO) -> None:
        super().__init__(level=level)
        self.prefix = prefix

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            self.handleError(record)
            return
        data: dict[str, Any] = {"logger": record.name, "message": message}
        if record.exc_info and record.exc_info[1] is not None:
            data["error"] = str(record.exc_info[1])
        log_event(level=record.levelname.lower(), event=f"{self.prefix}.log", data=data)
