"""
Complaint Audit Layer - Complaint Registry
Append-mostly registry of complaints and their supporting proofs.

A complaint moves through a small lifecycle:

    FILED / UNDER_INVESTIGATION   (active: proofs and status changes accepted)
    RESOLVED / REJECTED           (terminal: the record is frozen)

Every mutating operation is a single atomic step that either applies fully
and returns True, or changes nothing and returns False. Reads always hand
back independent copies so callers can never reach into registry state.
"""

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from monitoring.metrics import metrics

__version__ = "0.1.0"

logger = logging.getLogger(__name__)

# Rejection reasons reported through ComplaintRegistry.last_rejection
REASON_NOT_FOUND = "not_found"
REASON_CONFLICT = "conflict"
REASON_FROZEN = "frozen"
REASON_INVALID_INPUT = "invalid_input"
REASON_INVALID_STATUS = "invalid_status"
REASON_INVALID_TIMESTAMP = "invalid_timestamp"


class RegistryFormatError(ValueError):
    """Raised when serialized registry data cannot be loaded."""
    pass


class ComplaintStatus(str, Enum):
    """Lifecycle states of a complaint."""
    FILED = "FILED"
    UNDER_INVESTIGATION = "UNDER_INVESTIGATION"
    RESOLVED = "RESOLVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        """Terminal complaints accept no further proofs or status changes."""
        return self in TERMINAL_STATUSES

    @classmethod
    def parse(cls, value: Any) -> "ComplaintStatus | None":
        """Return the matching status, or None for anything unrecognised."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value)
        except ValueError:
            return None


TERMINAL_STATUSES = frozenset({ComplaintStatus.RESOLVED, ComplaintStatus.REJECTED})
ACTIVE_STATUSES = frozenset({ComplaintStatus.FILED, ComplaintStatus.UNDER_INVESTIGATION})


@dataclass(frozen=True)
class ProofRecord:
    """A piece of evidence, recorded by fingerprint only."""
    proof_hash: str
    proof_type: str
    submitted_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "proof_hash": self.proof_hash,
            "proof_type": self.proof_type,
            "submitted_at": self.submitted_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProofRecord":
        try:
            return cls(
                proof_hash=data["proof_hash"],
                proof_type=data["proof_type"],
                submitted_at=data["submitted_at"],
            )
        except (KeyError, TypeError) as e:
            raise RegistryFormatError(f"Invalid proof record: {e}") from e


@dataclass
class ComplaintRecord:
    """A filed complaint and the proofs submitted for it."""
    complaint_id: str
    user_id: str
    complaint_hash: str
    filed_at: str
    status: ComplaintStatus = ComplaintStatus.FILED
    last_status_update: str = ""
    proofs: list[ProofRecord] = field(default_factory=list)

    def __post_init__(self):
        if not self.last_status_update:
            self.last_status_update = self.filed_at

    @property
    def is_frozen(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict[str, Any]:
        return {
            "complaint_id": self.complaint_id,
            "user_id": self.user_id,
            "complaint_hash": self.complaint_hash,
            "filed_at": self.filed_at,
            "status": self.status.value,
            "last_status_update": self.last_status_update,
            "proofs": [proof.to_dict() for proof in self.proofs],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComplaintRecord":
        """
        Rebuild a record from its serialized form.

        Raises:
            RegistryFormatError: If fields are missing or the status is unknown
        """
        if not isinstance(data, dict):
            raise RegistryFormatError("Complaint record must be an object")

        status = ComplaintStatus.parse(data.get("status"))
        if status is None:
            raise RegistryFormatError(f"Unknown complaint status: {data.get('status')!r}")

        proofs = data.get("proofs", [])
        if not isinstance(proofs, list):
            raise RegistryFormatError("Complaint proofs must be a list")

        try:
            return cls(
                complaint_id=data["complaint_id"],
                user_id=data["user_id"],
                complaint_hash=data["complaint_hash"],
                filed_at=data["filed_at"],
                status=status,
                last_status_update=data.get("last_status_update", ""),
                proofs=[ProofRecord.from_dict(p) for p in proofs],
            )
        except KeyError as e:
            raise RegistryFormatError(f"Complaint record missing field: {e}") from e


class RegistryStore:
    """
    Mapping of complaint id to complaint record.

    Pure data holder. Enumeration is always in ascending key order so
    repeated reads of an unchanged store are identical.
    """

    def __init__(self):
        self._complaints: dict[str, ComplaintRecord] = {}

    def __len__(self) -> int:
        return len(self._complaints)

    def __contains__(self, complaint_id: str) -> bool:
        return complaint_id in self._complaints

    def get(self, complaint_id: str) -> ComplaintRecord | None:
        return self._complaints.get(complaint_id)

    def insert(self, record: ComplaintRecord) -> None:
        self._complaints[record.complaint_id] = record

    def keys(self) -> list[str]:
        return sorted(self._complaints)

    def items(self) -> list[tuple[str, ComplaintRecord]]:
        return [(key, self._complaints[key]) for key in self.keys()]


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _parse_timestamp(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ComplaintRegistry:
    """
    Registry service: the complaint operations and their lifecycle guard.

    Mutators never raise for rejected calls. They return False and record
    why in ``last_rejection``.
    """

    def __init__(self, enable_timestamp_validation: bool = False):
        """
        Create an empty registry.

        Args:
            enable_timestamp_validation: If True, timestamps must be ISO-8601
                and may not precede the complaint's previous timestamps.
                Default is False (timestamps are opaque, caller-trusted strings).
        """
        self.store = RegistryStore()
        self.enable_timestamp_validation = enable_timestamp_validation
        self.last_rejection: str | None = None

    # ------------------------------------------------------------------
    # Mutators
    # ------------------------------------------------------------------

    def register(self, complaint_id: str, complaint_hash: str, user_id: str, timestamp: str) -> bool:
        """
        Register a new complaint in the FILED state.

        Args:
            complaint_id: Caller-assigned unique complaint id
            complaint_hash: Fingerprint of the complaint text
            user_id: Identifier of the complainant
            timestamp: Filing time

        Returns:
            True if the complaint was created, False if the id is taken
            or the input is malformed
        """
        if any(_is_blank(v) for v in (complaint_id, complaint_hash, user_id, timestamp)):
            return self._reject("register", complaint_id, REASON_INVALID_INPUT)

        if complaint_id in self.store:
            return self._reject("register", complaint_id, REASON_CONFLICT)

        if self.enable_timestamp_validation and _parse_timestamp(timestamp) is None:
            return self._reject("register", complaint_id, REASON_INVALID_TIMESTAMP)

        self.store.insert(ComplaintRecord(
            complaint_id=complaint_id,
            user_id=user_id,
            complaint_hash=complaint_hash,
            filed_at=timestamp,
            status=ComplaintStatus.FILED,
            last_status_update=timestamp,
        ))
        metrics.set_gauge("complaints_registered", len(self.store))
        return self._accept("register", complaint_id, user_id=user_id)

    def attach_proof(self, complaint_id: str, proof_hash: str, proof_type: str, timestamp: str) -> bool:
        """
        Append a proof to an active complaint.

        Returns:
            True if the proof was appended; False if the complaint is unknown,
            frozen, or the input is malformed
        """
        if any(_is_blank(v) for v in (complaint_id, proof_hash, proof_type, timestamp)):
            return self._reject("attach_proof", complaint_id, REASON_INVALID_INPUT)

        complaint = self.store.get(complaint_id)
        if complaint is None:
            return self._reject("attach_proof", complaint_id, REASON_NOT_FOUND)

        if complaint.is_frozen:
            return self._reject("attach_proof", complaint_id, REASON_FROZEN)

        if not self._timestamp_acceptable(timestamp, complaint.filed_at):
            return self._reject("attach_proof", complaint_id, REASON_INVALID_TIMESTAMP)

        complaint.proofs.append(ProofRecord(
            proof_hash=proof_hash,
            proof_type=proof_type,
            submitted_at=timestamp,
        ))
        return self._accept("attach_proof", complaint_id, proof_count=len(complaint.proofs))

    def update_status(self, complaint_id: str, status: ComplaintStatus | str, timestamp: str) -> bool:
        """
        Move an active complaint to a new status.

        Any active -> any status is allowed, including the same status again.
        Terminal complaints cannot be reopened or re-labelled.

        Args:
            complaint_id: Complaint to update
            status: New status, as a ComplaintStatus or its string value
            timestamp: Time of the status change

        Returns:
            True if the status was changed, False otherwise
        """
        if _is_blank(complaint_id) or _is_blank(timestamp):
            return self._reject("update_status", complaint_id, REASON_INVALID_INPUT)

        new_status = ComplaintStatus.parse(status)
        if new_status is None:
            return self._reject("update_status", complaint_id, REASON_INVALID_STATUS)

        complaint = self.store.get(complaint_id)
        if complaint is None:
            return self._reject("update_status", complaint_id, REASON_NOT_FOUND)

        if complaint.is_frozen:
            return self._reject("update_status", complaint_id, REASON_FROZEN)

        if not self._timestamp_acceptable(timestamp, complaint.last_status_update):
            return self._reject("update_status", complaint_id, REASON_INVALID_TIMESTAMP)

        previous = complaint.status
        complaint.status = new_status
        complaint.last_status_update = timestamp
        return self._accept(
            "update_status",
            complaint_id,
            from_status=previous.value,
            to_status=new_status.value,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_all(self) -> dict[str, ComplaintRecord]:
        """Snapshot of every complaint, keyed by id in ascending order."""
        return {key: copy.deepcopy(record) for key, record in self.store.items()}

    def get_one(self, complaint_id: str) -> ComplaintRecord | None:
        """Copy of a single complaint, or None if no such complaint exists."""
        record = self.store.get(complaint_id)
        if record is None:
            return None
        return copy.deepcopy(record)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Export the registry as plain data."""
        return {
            "complaints": {key: record.to_dict() for key, record in self.store.items()}
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        enable_timestamp_validation: bool = False
    ) -> "ComplaintRegistry":
        """
        Import a registry from data produced by ``to_dict``.

        Raises:
            RegistryFormatError: If the data is not a valid registry export
        """
        if not isinstance(data, dict) or not isinstance(data.get("complaints", {}), dict):
            raise RegistryFormatError("Registry data must contain a 'complaints' object")

        registry = cls(enable_timestamp_validation=enable_timestamp_validation)
        for key, raw in data.get("complaints", {}).items():
            record = ComplaintRecord.from_dict(raw)
            if record.complaint_id != key:
                raise RegistryFormatError(
                    f"Complaint key {key!r} does not match complaint_id {record.complaint_id!r}"
                )
            registry.store.insert(record)

        metrics.set_gauge("complaints_registered", len(registry.store))
        return registry

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _timestamp_acceptable(self, timestamp: str, previous: str) -> bool:
        """Check ordering against the previous timestamp when validation is on."""
        if not self.enable_timestamp_validation:
            return True
        current = _parse_timestamp(timestamp)
        if current is None:
            return False
        earlier = _parse_timestamp(previous)
        # Records loaded from older data may carry non-ISO timestamps
        return earlier is None or current >= earlier

    def _accept(self, operation: str, complaint_id: str, **details: Any) -> bool:
        self.last_rejection = None
        metrics.increment(
            "complaint_operations_total",
            labels={"operation": operation, "outcome": "accepted"},
        )
        logger.info(
            "Complaint %s accepted",
            operation,
            extra={"complaint_id": complaint_id, **details},
        )
        return True

    def _reject(self, operation: str, complaint_id: Any, reason: str) -> bool:
        self.last_rejection = reason
        metrics.increment(
            "complaint_operations_total",
            labels={"operation": operation, "outcome": "rejected"},
        )
        logger.info(
            "Complaint %s rejected",
            operation,
            extra={"complaint_id": complaint_id, "reason": reason},
        )
        return False
