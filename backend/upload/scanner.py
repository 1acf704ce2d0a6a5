# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Content inspection for uploads.

``SignatureThreatScanner`` is a stand-in: it looks for a handful of words in
the first kilobyte of the file.  It is NOT a security boundary.  A real
engine (ClamAV, a vendor API …) plugs in by implementing ``ThreatScanner``;
the pipeline only ever calls ``scan()``.
"""

import time
from abc import ABC, abstractmethod
from typing import Iterable

from upload.schemas import ScanResult

DEFAULT_SIGNATURES = ("virus", "malware", "trojan", "worm", "backdoor")
SAMPLE_SIZE = 1000


class ThreatScanner(ABC):
    @abstractmethod
    def scan(self, data: bytes) -> ScanResult:
        ...


class SignatureThreatScanner(ThreatScanner):
    def __init__(
        self,
        signatures: Iterable[str] = DEFAULT_SIGNATURES,
        delay_seconds: float = 0.1,
        sample_size: int = SAMPLE_SIZE,
    ):
        self.signatures = tuple(s.lower() for s in signatures)
        self.delay_seconds = delay_seconds
        self.sample_size = sample_size

    def scan(self, data: bytes) -> ScanResult:
        start = time.perf_counter()

        # simulated engine latency
        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)

        text = bytes(data[: self.sample_size]).decode("utf-8", errors="replace").lower()
        threats = [sig for sig in self.signatures if sig in text]

        return ScanResult(
            is_clean=not threats,
            threats=threats or None,
            scan_time=int((time.perf_counter() - start) * 1000),
        )
