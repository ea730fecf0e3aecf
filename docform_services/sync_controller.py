"""
LineSyncController -- keeps derived line amounts and totals converged.

Responsibility:
    Subscribes to a DocumentSession's change feed.  Every edit that feeds
    a line amount (quantity, rate, discount %, tax %) marks that line
    stale; a recomputation pass re-derives each stale line, writes the
    amount back only when it moved by more than the tolerance, and then
    publishes fresh DocumentTotals on ``totals_changed``.

Per-line state machine:
    stable --(edit to quantity/rate/discount_percent/tax_percent)--> stale
    stale  --(recomputation pass)--> stable

Batching:
    When the document profile sets a debounce delay (purchase orders use
    120 ms) every notification restarts a cancellable timer and the pass
    runs once the edits stop.  With no delay the pass runs synchronously
    inside the notification.  Either way each pass reads the full current
    state, so no edit is lost and the converged result is the same.

Invariants enforced:
    - Write-back only when |new - old| > tolerance (0.01 by default).  The
      write is announced with origin SYNC, which this controller ignores,
      so a write can never re-trigger the pass that produced it.
    - Write-backs never mark the document dirty.
    - A pass either completes for every stale line or does not run.

Failure modes:
    - Notifications never raise: malformed input degrades to 0 through
      coercion, and Observable logs any unexpected subscriber error.
    - flush() after close() raises ControllerClosedError.
    - A debounced controller built without a scheduler binds to the running
      asyncio loop; with none running the constructor raises RuntimeError
      instead of leaving edits unsynced.
"""

from __future__ import annotations

from decimal import Decimal

from docform_engines.line_amount import line_amount
from docform_kernel.domain.coercion import to_number
from docform_kernel.domain.scheduler import AsyncioScheduler, Scheduler
from docform_kernel.domain.values import AMOUNT_INPUT_FIELDS, DocumentTotals
from docform_kernel.exceptions import ControllerClosedError
from docform_kernel.logging_config import LogContext, get_logger
from docform_services.debounce import Debouncer
from docform_services.document import DocumentSession
from docform_services.events import (
    ChangeOrigin,
    DocumentEvent,
    DocumentLoaded,
    HeaderChanged,
    LineAdded,
    LineChanged,
    LineRemoved,
)
from docform_services.observable import Observable

logger = get_logger("services.sync")


class LineSyncController:
    """
    Recompute-on-change protocol for one document session.

    Args:
        session: The document to keep in sync.
        scheduler: Timer source for debouncing.  Defaults to the asyncio
            loop running at construction; tests pass a ManualScheduler.
        tolerance: Write-back threshold.  Defaults to the configured
            ``write_tolerance``.
        debounce_seconds: Override the profile's debounce delay.  0 means
            recompute synchronously.
    """

    def __init__(
        self,
        session: DocumentSession,
        scheduler: Scheduler | None = None,
        *,
        tolerance: Decimal | None = None,
        debounce_seconds: float | None = None,
    ):
        self.session = session
        self.tolerance = (
            tolerance
            if tolerance is not None
            else session.config.settings.write_tolerance
        )
        delay = (
            debounce_seconds
            if debounce_seconds is not None
            else session.profile.debounce_seconds
        )
        self._debouncer: Debouncer | None = None
        if delay > 0:
            self._debouncer = Debouncer(
                scheduler or AsyncioScheduler(), delay, self._recompute
            )

        self.totals_changed: Observable[DocumentTotals] = Observable(
            f"document.{session.document_id}.totals"
        )
        self.last_totals: DocumentTotals | None = None
        self.recompute_count = 0
        self.write_count = 0
        self._closed = False

        # Bring whatever the session already holds to a converged state.
        for record in session.lines:
            record.stale = True
        self._recompute()
        self._subscription = session.changes.subscribe(self._on_change)

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------

    @property
    def pending(self) -> bool:
        """True while a debounced pass is scheduled but has not run."""
        return self._debouncer is not None and self._debouncer.pending

    @property
    def debounce_seconds(self) -> float:
        return self._debouncer.delay if self._debouncer is not None else 0.0

    @property
    def stale_indexes(self) -> list[int]:
        return [i for i, record in enumerate(self.session.lines) if record.stale]

    @property
    def closed(self) -> bool:
        return self._closed

    def flush(self) -> None:
        """Run a pending pass now (e.g. right before submission)."""
        if self._closed:
            raise ControllerClosedError(self.session.document_id)
        if self._debouncer is not None:
            self._debouncer.flush()

    def close(self) -> None:
        """Cancel pending work and stop listening. Idempotent."""
        if self._closed:
            return
        self._closed = True
        if self._debouncer is not None:
            self._debouncer.cancel()
        self._subscription.cancel()
        self._log("sync_controller_closed")

    # ------------------------------------------------------------------
    # Change handling
    # ------------------------------------------------------------------

    def _on_change(self, event: DocumentEvent) -> None:
        if isinstance(event, LineChanged):
            if event.origin is ChangeOrigin.SYNC:
                return
            if event.field not in AMOUNT_INPUT_FIELDS and event.field != "amount":
                return
            self.session.lines[event.index].stale = True
        elif isinstance(event, LineAdded):
            self.session.lines[event.index].stale = True
        elif isinstance(event, DocumentLoaded):
            for record in self.session.lines:
                record.stale = True
        elif not isinstance(event, (LineRemoved, HeaderChanged)):
            return
        self._schedule()

    def _schedule(self) -> None:
        if self._debouncer is None:
            self._recompute()
            return
        self._debouncer.trigger()
        self._log("recompute_scheduled", delay_seconds=self._debouncer.delay)

    def _recompute(self) -> None:
        self.recompute_count += 1
        written = 0
        for index, record in enumerate(self.session.lines):
            if not record.stale:
                continue
            new_amount = line_amount(record.as_line_item())
            old_amount = to_number(record.amount)
            if abs(new_amount - old_amount) > self.tolerance:
                self.session.write_amount(index, new_amount)
                written += 1
                self._log(
                    "line_amount_written",
                    index=index,
                    old_amount=str(old_amount),
                    new_amount=str(new_amount),
                )
            record.stale = False
        self.write_count += written

        totals = self.session.totals
        self.last_totals = totals
        self._log(
            "recompute_completed",
            pass_number=self.recompute_count,
            lines_written=written,
            grand_total=str(totals.grand_total),
        )
        self.totals_changed.notify(totals)

    def _log(self, message: str, **extra: object) -> None:
        with LogContext.bind(
            document_id=self.session.document_id,
            document_type=self.session.document_type,
        ):
            logger.debug(message, extra=extra)
