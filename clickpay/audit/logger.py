"""
Audit trail for payment session activity.

Every lifecycle step of a session (start, poll outcome, status change,
detach) is emitted as one structured log line:

  AUDIT | txn=<transaction id> action=<what happened> | {json details}

Sessions also keep a human-readable running history of the significant
events via append_note, for display next to the payment.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger("clickpay.audit")


def log_event(
    action: str,
    transaction_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    level: int = logging.INFO,
) -> dict[str, Any]:
    """
    Emit an audit record.

    Args:
        action: What happened (e.g. "session_started", "status_changed").
        transaction_id: The payment the event relates to.
        details: Arbitrary context (serialized to JSON).
        level: Logging level for the record.

    Returns:
        The record as a dict, for callers that also keep it.
    """
    entry = {
        "action": action,
        "transaction_id": transaction_id,
        "details": details or {},
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    logger.log(
        level,
        "AUDIT | txn=%s action=%s | %s",
        transaction_id or "-",
        action,
        json.dumps(details, default=str)[:200] if details else "",
    )
    return entry


def append_note(existing_notes: Optional[str], message: str) -> str:
    """Append a timestamped line to a running notes field."""
    prefix = f"[{datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}] "
    new_note = prefix + message
    if not existing_notes:
        return new_note
    return f"{existing_notes}\n{new_note}"
