"""
Payment session: client-side tracking of one payment until it settles.

The gateway settles UPI payments asynchronously, so the client learns the
outcome by polling the status endpoint on a fixed cadence:

  1. First lookup fires as soon as the session starts, then every
     poll_interval seconds
  2. At most one lookup is in flight; a tick that finds the previous
     lookup unresolved is skipped, never queued
  3. TransientError keeps the session PENDING and is retried next tick
  4. NotFoundError stops polling and is reported to the observer
  5. The first SUCCESS or FAILED snapshot is final: polling stops and any
     later snapshot is discarded

Polling also stops when the consumer detaches or an optional cap
(max_attempts, max_duration) is hit. Without caps a PENDING session polls
until detached.

The session runs as a cooperative asyncio task. There is no locking
because nothing else writes to a session's state.
"""

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

from clickpay.audit.logger import append_note, log_event
from clickpay.config import settings
from clickpay.engine.errors import InvalidInputError, NotFoundError, TransientError
from clickpay.models.enums import PaymentStatus, SessionEventKind
from clickpay.models.payment import SessionEvent, StatusSnapshot
from clickpay.providers.base import PaymentStatusClient

logger = logging.getLogger("clickpay.session")

Observer = Callable[[SessionEvent], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PaymentSession:
    """
    Polling state machine for a single transaction.

    Use as an async context manager, or call start() and detach() yourself:

        async with PaymentSession(txn_id, amount, client, observer=on_event) as s:
            status = await s.wait()
    """

    def __init__(
        self,
        transaction_id: str,
        amount: Decimal | float | int | str,
        client: PaymentStatusClient,
        *,
        description: Optional[str] = None,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        max_duration: Optional[float] = None,
        observer: Optional[Observer] = None,
    ):
        if not transaction_id:
            raise InvalidInputError("transaction_id", "must not be empty")
        try:
            parsed_amount = amount if isinstance(amount, Decimal) else Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise InvalidInputError("amount", f"not a number: {amount!r}") from None
        if not parsed_amount.is_finite() or parsed_amount <= 0:
            raise InvalidInputError("amount", f"must be a positive amount, got {amount!r}")

        if poll_interval is None:
            poll_interval = settings.poll_interval_ms / 1000
        if poll_interval <= 0:
            raise InvalidInputError("poll_interval", "must be greater than zero")
        if max_attempts is None:
            max_attempts = settings.poll_max_attempts
        if max_attempts is not None and max_attempts < 1:
            raise InvalidInputError("max_attempts", "must be at least 1")
        if max_duration is None:
            max_duration = settings.poll_max_duration_s
        if max_duration is not None and max_duration <= 0:
            raise InvalidInputError("max_duration", "must be greater than zero")

        self._transaction_id = transaction_id
        self._amount = parsed_amount
        self._client = client
        self._observer = observer

        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.max_duration = max_duration

        self.status = PaymentStatus.PENDING
        self.description = description
        self.last_polled_at: Optional[datetime] = None
        self.attempts = 0
        self.skipped_ticks = 0
        self.consecutive_failures = 0
        self.error: Optional[NotFoundError] = None
        self.stop_reason: Optional[str] = None
        self.notes: Optional[str] = None

        self._ticker: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._started_at: Optional[float] = None
        self._closed = False
        self._done = asyncio.Event()

    @classmethod
    def from_snapshot(
        cls,
        snapshot: StatusSnapshot,
        client: PaymentStatusClient,
        **kwargs: Any,
    ) -> "PaymentSession":
        """Create a session seeded with a snapshot already fetched by the caller."""
        if snapshot.amount is None:
            raise InvalidInputError("amount", f"snapshot for {snapshot.transaction_id} has no amount")
        session = cls(
            snapshot.transaction_id,
            snapshot.amount,
            client,
            description=snapshot.description,
            **kwargs,
        )
        session.apply(snapshot)
        return session

    # ------------------------------------------------------------------
    # Read-only identity
    # ------------------------------------------------------------------

    @property
    def transaction_id(self) -> str:
        return self._transaction_id

    @property
    def amount(self) -> Decimal:
        return self._amount

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def is_polling(self) -> bool:
        return self._ticker is not None and not self._closed

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Begin polling on the running event loop."""
        if self._ticker is not None or self._closed:
            raise RuntimeError(f"Session {self._transaction_id} was already started or closed")
        loop = asyncio.get_running_loop()
        self._started_at = loop.time()
        self._ticker = loop.create_task(self._run(), name=f"payment-session-{self._transaction_id}")
        log_event("session_started", self._transaction_id, details={
            "amount": str(self._amount),
            "poll_interval": self.poll_interval,
            "max_attempts": self.max_attempts,
            "max_duration": self.max_duration,
            "client": self._client.name,
        })

    def detach(self) -> None:
        """
        Stop tracking. Synchronous and idempotent.

        No lookup is started after this returns. A lookup already in flight
        may still complete, but its result is discarded.
        """
        if self._closed:
            return
        self.notes = append_note(self.notes, "Consumer detached")
        self._stop("detached")

    def observe(self, observer: Optional[Observer]) -> None:
        """Replace the single observer (None to stop notifications)."""
        self._observer = observer

    async def wait(self) -> PaymentStatus:
        """
        Wait until polling ends and return the final status.

        Raises:
            NotFoundError: the gateway reported the transaction as unknown.
        """
        if self._ticker is None and not self._closed:
            raise RuntimeError(f"Session {self._transaction_id} has not been started")
        await self._done.wait()
        if self.stop_reason == "not_found" and self.error is not None:
            raise self.error
        return self.status

    async def __aenter__(self) -> "PaymentSession":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.detach()

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def apply(self, snapshot: StatusSnapshot) -> bool:
        """
        Adopt a remote snapshot.

        Returns False when the snapshot is discarded: the session is closed,
        already terminal, or the snapshot belongs to another transaction.
        """
        if snapshot.transaction_id != self._transaction_id:
            logger.warning(
                "Discarding snapshot for %s on session %s",
                snapshot.transaction_id,
                self._transaction_id,
            )
            return False
        if self.status.is_terminal:
            log_event("stale_snapshot_discarded", self._transaction_id, details={
                "current": self.status.value,
                "received": snapshot.status.value,
            })
            return False
        if self._closed:
            logger.debug("Session %s closed, discarding snapshot", self._transaction_id)
            return False

        if snapshot.amount is not None and snapshot.amount != self._amount:
            logger.warning(
                "Gateway reports amount %s for %s, session keeps %s",
                snapshot.amount,
                self._transaction_id,
                self._amount,
            )
        if snapshot.description:
            self.description = snapshot.description

        previous = self.status
        self.status = snapshot.status

        if self.status != previous:
            self.notes = append_note(self.notes, f"Status {previous.value} -> {self.status.value}")
            log_event("status_changed", self._transaction_id, details={
                "from": previous.value,
                "to": self.status.value,
                "remote_status": snapshot.remote_status,
            })
            self._notify(SessionEventKind.STATUS_CHANGED)

        if self.status.is_terminal:
            self._stop("terminal")
        return True

    def _stop(self, reason: str) -> None:
        if self._closed:
            return
        self._closed = True
        self.stop_reason = reason
        if self._ticker is not None and self._ticker is not asyncio.current_task():
            self._ticker.cancel()
        self._done.set()
        log_event("polling_stopped", self._transaction_id, details={
            "reason": reason,
            "status": self.status.value,
            "attempts": self.attempts,
            "skipped_ticks": self.skipped_ticks,
        })

    def _notify(self, kind: SessionEventKind) -> None:
        if self._observer is None:
            return
        event = SessionEvent(
            kind=kind,
            transaction_id=self._transaction_id,
            status=self.status,
            error=self.error,
        )
        try:
            self._observer(event)
        except Exception:
            logger.exception("Observer failed on %s for %s", kind.value, self._transaction_id)

    def _exhaust(self, cause: str) -> None:
        self.notes = append_note(self.notes, f"Polling cap reached ({cause})")
        self._stop("exhausted")
        self._notify(SessionEventKind.EXHAUSTED)

    # ------------------------------------------------------------------
    # Poll loop
    # ------------------------------------------------------------------

    def _deadline_passed(self) -> bool:
        if self.max_duration is None or self._started_at is None:
            return False
        return asyncio.get_running_loop().time() - self._started_at >= self.max_duration

    async def _run(self) -> None:
        while not self._closed:
            if self._deadline_passed():
                self._exhaust(f"max_duration={self.max_duration}s")
                return

            if self._inflight is not None and not self._inflight.done():
                self.skipped_ticks += 1
                logger.debug("Lookup for %s still in flight, skipping tick", self._transaction_id)
            else:
                self.attempts += 1
                self._inflight = asyncio.create_task(self._poll_once())

            await asyncio.sleep(self.poll_interval)

    async def _poll_once(self) -> None:
        if self._closed:
            return
        try:
            snapshot = await self._client.fetch_status(self._transaction_id)
        except TransientError as e:
            if self._closed:
                return
            self.last_polled_at = _utcnow()
            self.consecutive_failures += 1
            log_event("poll_transient_error", self._transaction_id, level=logging.WARNING, details={
                "error": str(e),
                "status_code": e.status_code,
                "consecutive_failures": self.consecutive_failures,
            })
        except NotFoundError as e:
            if self._closed:
                return
            self.last_polled_at = _utcnow()
            self.error = e
            self.notes = append_note(self.notes, f"Not found: {e}")
            log_event("payment_not_found", self._transaction_id, level=logging.WARNING, details={
                "error": str(e),
            })
            self._stop("not_found")
            self._notify(SessionEventKind.NOT_FOUND)
            return
        except Exception as e:
            if self._closed:
                return
            self.last_polled_at = _utcnow()
            self.consecutive_failures += 1
            logger.exception("Unexpected error polling %s", self._transaction_id)
            log_event("poll_unexpected_error", self._transaction_id, level=logging.ERROR, details={
                "error": str(e),
                "consecutive_failures": self.consecutive_failures,
            })
        else:
            if self._closed:
                logger.debug("Late snapshot for closed session %s discarded", self._transaction_id)
                return
            self.last_polled_at = _utcnow()
            self.consecutive_failures = 0
            self.apply(snapshot)

        if not self._closed and self.max_attempts is not None and self.attempts >= self.max_attempts:
            self._exhaust(f"max_attempts={self.max_attempts}")


async def open_session(
    client: PaymentStatusClient,
    transaction_id: str,
    **kwargs: Any,
) -> PaymentSession:
    """
    Fetch a transaction once, then return a session tracking it.

    The session is started only if the first snapshot is still PENDING.
    NotFoundError and TransientError from the first lookup propagate to the
    caller, since there is no amount to build a session from yet.
    """
    snapshot = await client.fetch_status(transaction_id)
    session = PaymentSession.from_snapshot(snapshot, client, **kwargs)
    if not session.is_terminal:
        session.start()
    return session
