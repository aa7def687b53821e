from __future__ import annotations

import json
import logging
import os
import secrets
import threading
from datetime import datetime
from functools import partial
from typing import Any

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from hydrolog import (
    FileStatePersistence,
    HydrationStore,
    OperationResult,
    PersistenceError,
    Reason,
    StateCorruptedError,
    data_root,
    export_state,
    import_state,
    load_config,
    now_local,
    run_hooks,
    setup_logging,
    state_path,
    today_local,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="HydroLog", version="0.1.0")

security = HTTPBasic(auto_error=False)


# ── Store ─────────────────────────────────────────────────────

# FastAPI runs sync endpoints in a thread pool; the store is not thread-safe
_lock = threading.Lock()
_store: HydrationStore | None = None


def _build_store() -> HydrationStore:
    root = data_root()
    config = load_config(root)
    setup_logging(root, config.log_level)
    store = HydrationStore.open(
        FileStatePersistence(state_path(root)),
        config=config,
        hooks=partial(run_hooks, root=root),
    )
    logger.info("Serving data root %s", root)
    return store


def get_store() -> HydrationStore:
    global _store
    with _lock:
        if _store is None:
            _store = _build_store()
        return _store


def _check(result: OperationResult) -> dict[str, Any]:
    """Translate a rejected operation into an HTTP error."""
    if result.ok:
        return result.to_dict()
    code = 404 if result.reason == Reason.NOT_FOUND else 400
    detail: dict[str, Any] = {"reason": result.reason.value, "message": result.message}
    if result.field:
        detail["field"] = result.field
    raise HTTPException(status_code=code, detail=detail)


@app.exception_handler(PersistenceError)
def _persistence_error(request: Request, exc: PersistenceError) -> JSONResponse:
    logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(StateCorruptedError)
def _state_corrupted(request: Request, exc: StateCorruptedError) -> JSONResponse:
    # The store is built on first use, so a bad state file surfaces here
    logger.error("Saved state is unreadable (%s %s): %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Saved state is corrupted: {exc}", "reason": "StateCorrupted"},
    )


# ── Auth ──────────────────────────────────────────────────────


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("HYDROLOG_USERNAME", "")
    expected_password = os.environ.get("HYDROLOG_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Read endpoints ────────────────────────────────────────────


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/state")
def api_get_state(store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Full state as stored on disk."""
    with _lock:
        store.roll_day_over()
        return store.snapshot().to_dict()


@app.get("/api/today")
def api_get_today(store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Today's record, entries newest first, with progress."""
    with _lock:
        store.roll_day_over()
        today = store.today
        target = store.settings.daily_target_ml
    summary = today.to_dict()
    summary["entries"] = [e.to_dict() for e in reversed(today.entries_by_time())]
    summary["targetMl"] = target
    return summary


@app.get("/api/history")
def api_get_history(store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _lock:
        store.roll_day_over()
        history = store.history
    return {"history": [s.to_dict() for s in history]}


@app.get("/api/stats")
def api_get_stats(store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Progress, streaks and week/month stats."""
    with _lock:
        return store.summary().to_dict()


@app.get("/api/quick-amounts")
def api_quick_amounts(store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _lock:
        return {"options": store.quick_add_options()}


@app.get("/api/reminders/decision")
def api_reminder_decision(
    last_reminder_at: str | None = None,
    store: HydrationStore = Depends(get_store),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Whether a notification scheduler may deliver a reminder now."""
    last = None
    if last_reminder_at:
        try:
            last = datetime.fromisoformat(last_reminder_at)
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Invalid timestamp: {last_reminder_at}")
        if last.tzinfo is None:
            last = last.replace(tzinfo=store.config.tz)
    with _lock:
        decision = store.reminder_decision(last_reminder_at=last)
        settings = store.reminder_settings()
    return {"decision": decision.to_dict(), "settings": settings.to_dict()}


@app.get("/api/export")
def api_export(store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> Response:
    """Versioned backup of the whole state."""
    with _lock:
        store.roll_day_over()
        text = export_state(store.snapshot(), now_local(store.config.tz))
    filename = f"hydrolog-{today_local(store.config.tz).isoformat()}.json"
    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── Mutations ─────────────────────────────────────────────────


@app.post("/api/entries")
def api_add_entry(
    payload: dict[str, Any] = Body(...),
    store: HydrationStore = Depends(get_store),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    if "amount" not in payload:
        raise HTTPException(status_code=400, detail="Missing amount")
    kind = payload.get("kind", "custom")
    with _lock:
        try:
            result = store.add_entry(payload["amount"], kind=kind)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return _check(result)


@app.delete("/api/entries/{entry_id}")
def api_remove_entry(entry_id: str, store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _lock:
        result = store.remove_entry(entry_id)
    return _check(result)


@app.put("/api/settings")
def api_update_settings(
    payload: dict[str, Any] = Body(...),
    store: HydrationStore = Depends(get_store),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Partial update; only the fields present in the body change."""
    with _lock:
        try:
            result = store.update_settings(payload)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        settings = store.settings
    response = _check(result)
    response["settings"] = settings.to_dict()
    return response


@app.post("/api/reset")
def api_reset(store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _lock:
        return _check(store.reset_all())


@app.post("/api/rollover")
def api_rollover(store: HydrationStore = Depends(get_store), username: str = Depends(get_current_user)) -> dict[str, Any]:
    with _lock:
        rolled = store.roll_day_over()
        today = store.today.date.isoformat()
    return {"ok": True, "rolledOver": rolled, "date": today}


@app.post("/api/import")
def api_import(
    payload: dict[str, Any] = Body(...),
    store: HydrationStore = Depends(get_store),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Replace all data with a backup produced by /api/export."""
    try:
        state = import_state(json.dumps(payload))
    except StateCorruptedError as e:
        raise HTTPException(status_code=400, detail=str(e))
    with _lock:
        store.replace_state(state)
        store.roll_day_over()
        history_days = len(store.history)
    return {"ok": True, "historyDays": history_days}
