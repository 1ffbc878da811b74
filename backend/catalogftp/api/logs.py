from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Query

from catalogftp.logging.ndjson import log_dir, read_events

router = APIRouter()


@router.get("/api/logs/events")
def get_log_events(
    session_id: Optional[str] = Query(None, alias="sessionId"),
    event: Optional[str] = Query(None, description='Exact name, or a family such as "mgrast."'),
    level: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=2000),
) -> dict[str, Any]:
    """
    Diagnostic records for operators, e.g. every fetch failure seen by one FTP session:

        GET /api/logs/events?sessionId=3f2a9c1b7d40&event=mgrast.fetch_failed
    """
    events = read_events(session_id=session_id, event=event, level=level, limit=limit)
    return {"dir": str(log_dir()), "events": events, "count": len(events)}
