"""
PEPL Host Adapters

- ScriptedHost: In-memory host answering every capability
- RecordingHost / ReplayHost: Record and replay host traffic
- ReplayVerifier: Transcript chain and receipt ledger checks
"""

from pepl.host.scripted import ScriptedHost, http_response
from pepl.host.replay import (
    RecordingHost,
    ReplayHost,
    ReplayMismatchError,
    ReplayReport,
    ReplayVerifier,
)

__all__ = [
    "ScriptedHost",
    "http_response",
    "RecordingHost",
    "ReplayHost",
    "ReplayMismatchError",
    "ReplayReport",
    "ReplayVerifier",
]
