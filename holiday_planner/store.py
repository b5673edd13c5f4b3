"""Document persistence, debounced saving and the single-writer planner service."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable

import holiday_planner.db as app_db
from holiday_planner.models import PlannerDocument, utcnow
from holiday_planner.planner import PlannerState
from holiday_planner.seed import seed_state

logger = logging.getLogger(__name__)

Command = Callable[[PlannerState], PlannerState]


class DocumentStore:
    """Read or replace one JSON document by key; no partial updates."""

    def __init__(self, key: str, session_factory: Callable[[], Any] | None = None) -> None:
        self.key = key
        self._session_factory = session_factory

    def _session(self):
        if self._session_factory is not None:
            return self._session_factory()
        # looked up per call so tests can rebind the module-level factory
        return app_db.SessionLocal()

    def load(self) -> dict[str, Any] | None:
        with self._session() as db:
            record = db.get(PlannerDocument, self.key)
            return None if record is None else record.payload_json

    def save(self, payload: dict[str, Any]) -> None:
        with self._session() as db:
            record = db.get(PlannerDocument, self.key)
            if record is None:
                db.add(PlannerDocument(key=self.key, payload_json=payload))
            else:
                record.payload_json = payload
            db.commit()


class DebouncedSaver:
    """Trailing-edge debounce around a write function.

    Each ``schedule`` call replaces the pending payload and restarts the
    timer, so bursts of changes produce one write of the latest payload.
    A pending write is lost if the process dies before the timer fires.
    """

    def __init__(self, write: Callable[[dict[str, Any]], None], delay: float) -> None:
        self._write = write
        self._delay = delay
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._pending: dict[str, Any] | None = None
        self.last_saved_at: datetime | None = None
        self.last_error: str | None = None

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, payload: dict[str, Any]) -> None:
        with self._lock:
            self._pending = payload
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self._delay > 0:
                self._timer = threading.Timer(self._delay, self.flush)
                self._timer.daemon = True
                self._timer.start()
        if self._delay <= 0:
            self.flush()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None

    def flush(self) -> bool:
        """Write the pending payload now. Returns False if the write failed."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            payload = self._pending
            self._pending = None
        if payload is None:
            return True
        try:
            self._write(payload)
        except Exception as exc:
            # in-memory state stays authoritative; surface the failure via status
            logger.exception("failed to save planner document")
            self.last_error = f"{type(exc).__name__}: {exc}"
            return False
        self.last_saved_at = utcnow()
        self.last_error = None
        logger.info("planner document saved")
        return True


class PlannerService:
    """Owns the in-memory state; applies commands one at a time."""

    def __init__(self, store: DocumentStore, save_delay: float) -> None:
        self.store = store
        self.saver = DebouncedSaver(store.save, save_delay)
        self._lock = threading.Lock()
        self._state: PlannerState | None = None

    def load(self) -> PlannerState:
        payload = self.store.load()
        if payload is None:
            state = seed_state()
            logger.info("no stored document under %r, starting from seed data", self.store.key)
        else:
            state = PlannerState.model_validate(payload)
            logger.info(
                "loaded %d member(s) and %d holiday(s) from %r",
                len(state.team_members),
                len(state.holidays),
                self.store.key,
            )
        with self._lock:
            self._state = state
        return state

    @property
    def state(self) -> PlannerState:
        if self._state is None:
            raise RuntimeError("planner state has not been loaded")
        return self._state

    def apply(self, command: Command) -> PlannerState:
        with self._lock:
            current = self.state
            updated = command(current)
            if updated is current:
                return current
            self._state = updated
            # scheduled under the lock so saves are queued in commit order
            self.saver.schedule(updated.to_document())
        return updated

    def replace(self, document: dict[str, Any]) -> PlannerState:
        state = PlannerState.model_validate(document)
        return self.apply(lambda _current: state)

    def status(self) -> dict[str, Any]:
        return {
            "pending": self.saver.pending,
            "lastSavedAt": self.saver.last_saved_at.isoformat() if self.saver.last_saved_at else None,
            "lastError": self.saver.last_error,
        }

    def shutdown(self) -> None:
        self.saver.flush()
