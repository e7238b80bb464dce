"""
PEPL Capability Replay

Recording and replay of host traffic so a run can be reproduced without the
outside world:

- RecordingHost: Wraps a live host and keeps a hash-chained transcript
- ReplayHost: Answers requests from a transcript, in order
- ReplayVerifier: Checks a transcript's chain and compares receipt ledgers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import hashlib
import logging

from pepl.runtime.codec import canonical_json
from pepl.runtime.host import Host, HostRequest, HostResponse, TimerIntent, response_from_dict

logger = logging.getLogger(__name__)


class ReplayMismatchError(Exception):
    """A replayed run asked the host for something the transcript does not hold."""

    def __init__(self, message: str, index: int, expected: Any = None, observed: Any = None):
        super().__init__(message)
        self.index = index
        self.expected = expected
        self.observed = observed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": str(self),
            "index": self.index,
            "expected": self.expected,
            "observed": self.observed,
        }


def chain_digest(entry: Dict[str, Any], prev_hash: Optional[str]) -> str:
    """sha256(canonical(entry) || prev) over everything but the digest."""
    payload = {k: v for k, v in entry.items() if k != "digest"}
    canon = canonical_json(payload).encode("utf-8")
    if prev_hash:
        canon += prev_hash.encode("utf-8")
    return "sha256:" + hashlib.sha256(canon).hexdigest()


class RecordingHost:
    """Forward to `inner` and append each exchange to `transcript`."""

    def __init__(self, inner: Host):
        self.inner = inner
        self.transcript: List[Dict[str, Any]] = []
        self.intents: List[Dict[str, Any]] = []

    def handle(self, request: HostRequest) -> HostResponse:
        response = self.inner.handle(request)
        entry = {
            "seq": len(self.transcript),
            "request": request.to_dict(),
            "response": response.to_dict(),
        }
        prev = self.transcript[-1]["digest"] if self.transcript else None
        entry["digest"] = chain_digest(entry, prev)
        self.transcript.append(entry)
        return response

    def schedule(self, intent: TimerIntent) -> None:
        self.intents.append(intent.to_dict())
        self.inner.schedule(intent)


class ReplayHost:
    """Serve responses from a recorded transcript; any divergence raises."""

    def __init__(self, transcript: List[Dict[str, Any]]):
        self.transcript = list(transcript)
        self.position = 0
        self.intents: List[TimerIntent] = []

    def handle(self, request: HostRequest) -> HostResponse:
        observed = request.to_dict()
        if self.position >= len(self.transcript):
            raise ReplayMismatchError(
                f"unexpected request #{self.position}: transcript has {len(self.transcript)} entries",
                self.position,
                None,
                observed,
            )
        entry = self.transcript[self.position]
        if entry["request"] != observed:
            raise ReplayMismatchError(
                f"request #{self.position} differs from the recording",
                self.position,
                entry["request"],
                observed,
            )
        self.position += 1
        return response_from_dict(entry["response"])

    def schedule(self, intent: TimerIntent) -> None:
        self.intents.append(intent)

    @property
    def exhausted(self) -> bool:
        return self.position == len(self.transcript)


@dataclass
class ReplayReport:
    """Outcome of a replay check."""
    replay_pass: bool
    chain_ok: bool
    entries_checked: int
    first_mismatch: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "replay_pass": self.replay_pass,
            "chain_ok": self.chain_ok,
            "entries_checked": self.entries_checked,
            "first_mismatch": self.first_mismatch,
            "timestamp": self.timestamp,
        }


class ReplayVerifier:
    """
    Verifies recorded runs.

    - verify_transcript: recompute a host transcript's hash chain
    - compare_receipts: find the first call whose receipt digest diverges
    """

    def verify_transcript(self, transcript: List[Dict[str, Any]]) -> ReplayReport:
        prev = None
        for i, entry in enumerate(transcript):
            expected = chain_digest(entry, prev)
            if entry.get("digest") != expected:
                return ReplayReport(
                    replay_pass=False,
                    chain_ok=False,
                    entries_checked=i + 1,
                    first_mismatch={"index": i, "field": "digest",
                                    "expected": expected, "observed": entry.get("digest")},
                )
            prev = entry["digest"]
        return ReplayReport(replay_pass=True, chain_ok=True, entries_checked=len(transcript))

    def compare_receipts(self,
                         expected: List[Dict[str, Any]],
                         observed: List[Dict[str, Any]]) -> ReplayReport:
        for i, (want, got) in enumerate(zip(expected, observed)):
            for key in ("function", "digest_in", "digest_out", "gas_used", "digest"):
                if want.get(key) != got.get(key):
                    logger.debug(f"Receipt mismatch at #{i}: {key}")
                    return ReplayReport(
                        replay_pass=False,
                        chain_ok=True,
                        entries_checked=i + 1,
                        first_mismatch={"index": i, "field": key,
                                        "expected": want.get(key), "observed": got.get(key)},
                    )
        if len(expected) != len(observed):
            return ReplayReport(
                replay_pass=False,
                chain_ok=True,
                entries_checked=min(len(expected), len(observed)),
                first_mismatch={"index": min(len(expected), len(observed)), "field": "length",
                                "expected": len(expected), "observed": len(observed)},
            )
        return ReplayReport(replay_pass=True, chain_ok=True, entries_checked=len(expected))
