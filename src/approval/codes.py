"""
Override Approval Codes.

In-memory store of short numeric codes that an approver hands to a sales
rep out of band. A code is bound to the quote's contact email, expires
after a configured TTL and can be used once.
"""

import logging
import secrets
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from config.settings import get_settings

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@dataclass
class ApprovalCode:
    """One issued approval code."""
    code: str
    contact_email: str
    created_at: datetime
    expires_at: datetime
    used: bool = False
    quote_snapshot: Dict[str, Any] = field(default_factory=dict)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "contactEmail": self.contact_email,
            "createdAt": self.created_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
            "used": self.used,
        }


class ApprovalCodeStore:
    """Thread-safe store of issued approval codes keyed by (code, email)."""

    def __init__(self, ttl_minutes: Optional[int] = None, code_length: Optional[int] = None):
        settings = get_settings()
        self.ttl = timedelta(minutes=ttl_minutes or settings.approval_code_ttl_minutes)
        self.code_length = code_length or settings.approval_code_length
        self._codes: Dict[tuple, ApprovalCode] = {}
        self._lock = threading.Lock()

    def _generate(self) -> str:
        # No leading zero, so the code always has code_length digits
        low = 10 ** (self.code_length - 1)
        return str(low + secrets.randbelow(9 * low))

    def issue(self, contact_email: str, snapshot: Optional[Dict[str, Any]] = None) -> ApprovalCode:
        """
        Issue a fresh code for a contact email.

        Args:
            contact_email: Email of the quote's contact; the code only
                validates against this address
            snapshot: Fees and override details shown to the approver

        Returns:
            The issued ApprovalCode
        """
        email = _normalize_email(contact_email)
        if not email:
            raise ValueError("contact_email is required to issue an approval code")

        now = _utcnow()
        with self._lock:
            code = self._generate()
            # Codes must be unique among live codes for the same contact
            while (code, email) in self._codes and not self._codes[(code, email)].is_expired(now):
                code = self._generate()
            approval = ApprovalCode(
                code=code,
                contact_email=email,
                created_at=now,
                expires_at=now + self.ttl,
                quote_snapshot=dict(snapshot or {}),
            )
            self._codes[(code, email)] = approval

        logger.info(f"Issued approval code for {email}, expires {approval.expires_at.isoformat()}")
        return approval

    def get(self, code: str, contact_email: str) -> Optional[ApprovalCode]:
        with self._lock:
            return self._codes.get(((code or "").strip(), _normalize_email(contact_email)))

    def validate(self, code: str, contact_email: str, now: Optional[datetime] = None) -> bool:
        """True only for a matching, unused, unexpired code bound to the email."""
        approval = self.get(code, contact_email)
        if approval is None:
            return False
        return not approval.used and not approval.is_expired(now)

    def mark_used(self, code: str, contact_email: str) -> bool:
        """
        Mark a code as used.

        Returns:
            True if a code was found and marked, False otherwise
        """
        key = ((code or "").strip(), _normalize_email(contact_email))
        with self._lock:
            approval = self._codes.get(key)
            if approval is None:
                return False
            approval.used = True
        logger.info(f"Approval code used for {key[1]}")
        return True

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Drop expired codes. Returns the number removed."""
        now = now or _utcnow()
        with self._lock:
            expired = [key for key, approval in self._codes.items() if approval.is_expired(now)]
            for key in expired:
                del self._codes[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired approval codes")
        return len(expired)

    def active_codes(self, now: Optional[datetime] = None) -> List[ApprovalCode]:
        now = now or _utcnow()
        with self._lock:
            return [a for a in self._codes.values() if not a.used and not a.is_expired(now)]

    def clear(self) -> None:
        with self._lock:
            self._codes.clear()


# Singleton instance
_store: Optional[ApprovalCodeStore] = None
_store_lock = threading.Lock()


def get_approval_store() -> ApprovalCodeStore:
    """Get the process-wide approval code store."""
    global _store
    with _store_lock:
        if _store is None:
            _store = ApprovalCodeStore()
        return _store


def reset_approval_store() -> None:
    """Forget every issued code and settings snapshot (tests, settings reload)."""
    global _store
    with _store_lock:
        _store = None
