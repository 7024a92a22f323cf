"""Background cascade worker with a message protocol.

The worker runs one cascade at a time on a daemon thread and reports
through a response queue:

    post({"type": "run", "params": {...}, "datasetHandle": source_or_path})
    post({"type": "cancel"})

Responses are plain dicts:

    {"type": "progress", "loop": int, "totalLoops": int, "newReactionsCount": int}
    {"type": "complete", "results": {...}}
    {"type": "error", "error": "<Kind>: <message>"}

Every accepted run yields zero or more progress responses followed by
exactly one terminal (complete or error) response.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import Any, Dict, Iterator, Mapping, Optional

from cascadeforge.cascade._types import CascadeProgress
from cascadeforge.cascade.engine import CascadeEngine
from cascadeforge.core.errors import CascadeError
from cascadeforge.core.parameters import CascadeParameters
from cascadeforge.data.reaction_source import ReactionSource, open_reaction_source

logger = logging.getLogger(__name__)

Message = Dict[str, Any]

TERMINAL_TYPES = ("complete", "error")


def _error_text(exc: BaseException) -> str:
    if isinstance(exc, CascadeError):
        return exc.describe()
    return f"{type(exc).__name__}: {exc}"


class CascadeWorker:
    """
    Owns at most one in-flight cascade run.

    Examples
    --------
    >>> worker = CascadeWorker()
    >>> worker.post({"type": "run", "params": {"fuelNuclides": ["H-1"]},
    ...              "datasetHandle": "reactions.db"})
    >>> for response in worker.iter_responses():
    ...     print(response["type"])
    progress
    complete
    """

    def __init__(self):
        self._responses: "queue.Queue[Message]" = queue.Queue()
        self._lock = threading.Lock()
        self._busy = False
        self._engine: Optional[CascadeEngine] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def is_busy(self) -> bool:
        with self._lock:
            return self._busy

    def post(self, message: Mapping[str, Any]) -> None:
        """Deliver one inbound message."""
        kind = message.get("type")
        if kind == "run":
            self._start(message)
        elif kind == "cancel":
            self._cancel()
        else:
            logger.warning(f"Ignoring unknown worker message type {kind!r}")
            self._emit({"type": "error", "error": f"InvalidInput: Unknown message type {kind!r}"})

    def _emit(self, response: Message) -> None:
        self._responses.put(response)

    def _cancel(self) -> None:
        with self._lock:
            if self._engine is not None:
                logger.info("Cancellation requested")
                self._engine.cancel()

    def _start(self, message: Mapping[str, Any]) -> None:
        with self._lock:
            if self._busy:
                logger.warning("Rejected run request: a cascade is already in progress")
                self._emit({"type": "error", "error": "Busy: A cascade simulation is already running"})
                return

            handle = message.get("datasetHandle")
            try:
                parameters = CascadeParameters.from_dict(message.get("params") or {})
                source = open_reaction_source(handle)
            except Exception as exc:
                logger.error(f"Cannot start cascade: {exc}")
                self._emit({"type": "error", "error": _error_text(exc)})
                return

            owns_source = not isinstance(handle, ReactionSource)
            engine = CascadeEngine(source, parameters, progress_callback=self._on_progress)
            self._engine = engine
            self._busy = True
            self._thread = threading.Thread(
                target=self._execute,
                args=(engine, source, owns_source),
                name="cascade-worker",
                daemon=True,
            )
            self._thread.start()

    def _on_progress(self, progress: CascadeProgress) -> None:
        self._emit(progress.to_message())

    def _execute(self, engine: CascadeEngine, source: ReactionSource, owns_source: bool) -> None:
        try:
            result = engine.run()
            response: Message = {"type": "complete", "results": result.to_dict()}
        except Exception as exc:
            logger.error(f"Cascade run failed: {_error_text(exc)}")
            response = {"type": "error", "error": _error_text(exc)}
        finally:
            if owns_source:
                try:
                    source.close()
                except Exception as exc:
                    logger.warning(f"Failed to close reaction source: {exc}")

        # Idle before the terminal response so a consumer can start the next run at once
        with self._lock:
            self._busy = False
            self._engine = None
        self._emit(response)

    def get_response(self, timeout: Optional[float] = None) -> Message:
        """Next response; raises :class:`queue.Empty` on timeout."""
        return self._responses.get(timeout=timeout)

    def iter_responses(self, timeout: Optional[float] = None) -> Iterator[Message]:
        """Yield responses up to and including the next terminal one."""
        while True:
            response = self.get_response(timeout=timeout)
            yield response
            if response.get("type") in TERMINAL_TYPES:
                return

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the current run thread, if any, to finish."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
