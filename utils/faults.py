"""
Fault taxonomy shared by the relay threads and the synchronous gateway path.

Threads never raise across their boundary. Instead each failure is described
by a RelayFault tagged with a severity, and the owner decides what to do:

- ADVISORY: logged, execution continues (send failure, missing preamble,
  command for an unbound device)
- CONNECTION: the affected loop exits, everything else keeps running
- DEFECT: protocol/version mismatch or broken internal invariant; the
  outermost caller is expected to terminate the process
"""

import time
from dataclasses import dataclass, field
from enum import Enum


class FaultSeverity(Enum):
    ADVISORY = "advisory"
    CONNECTION = "connection"
    DEFECT = "defect"


@dataclass(frozen=True)
class RelayFault:
    """A failure observed by one of the controller's threads."""

    severity: FaultSeverity
    device: str
    reason: str
    timestamp: float = field(default_factory=time.time)

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.device}: {self.reason}"


class RelayError(Exception):
    """Raised on synchronous paths (gateway round trip, CoAP encoding)."""

    def __init__(self, fault: RelayFault):
        super().__init__(str(fault))
        self.fault = fault

    @property
    def severity(self) -> FaultSeverity:
        return self.fault.severity
