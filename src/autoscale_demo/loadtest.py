"""
HTTP load generator for the demo endpoints.

Requests are issued at a fixed or linearly ramping arrival rate, independent
of how fast responses come back, so queueing at the functions shows up as
latency and spillover rather than as a lower request rate.
"""
import logging
import math
import threading
import time
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, asdict
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import requests

logger = logging.getLogger(__name__)

ERROR_STATUS = "error"


@dataclass
class LoadPhase:
    """A period of constant or linearly changing arrival rate (requests per second)."""
    duration_seconds: int
    arrival_rate: int
    ramp_to: Optional[int] = None

    def __post_init__(self):
        if self.duration_seconds < 1:
            raise ValueError("duration_seconds must be at least 1")
        if self.arrival_rate < 0 or (self.ramp_to is not None and self.ramp_to < 0):
            raise ValueError("arrival rates must not be negative")

    def rate_at(self, second: int) -> int:
        """Arrival rate during the given second of the phase."""
        if self.ramp_to is None or self.duration_seconds == 1:
            return self.arrival_rate
        step = (self.ramp_to - self.arrival_rate) / (self.duration_seconds - 1)
        return round(self.arrival_rate + step * second)


@dataclass
class RequestResult:
    endpoint: str
    status: str
    latency_ms: float
    started_at: float
    error: Optional[str] = None


@dataclass
class LatencySummary:
    endpoint: str
    status: str
    count: int
    minimal: float
    maximal: float
    p50: float
    p90: float
    p99: float

    def to_dict(self):
        return asdict(self)


def percentile(sorted_values: Sequence[float], pct: float) -> float:
    """Nearest-rank percentile of an ascending sequence."""
    if not sorted_values:
        raise ValueError("percentile of empty sequence")
    rank = max(1, math.ceil(pct / 100 * len(sorted_values)))
    return sorted_values[min(rank, len(sorted_values)) - 1]


def summarize(results: Sequence[RequestResult]) -> List[LatencySummary]:
    """
    Latency statistics grouped by endpoint and status.

    Mirrors the access log summary on the dashboard: count, min, max and the
    50th, 90th and 99th percentile of the observed latency.
    """
    groups: Dict[Tuple[str, str], List[float]] = defaultdict(list)
    for result in results:
        groups[(result.endpoint, result.status)].append(result.latency_ms)

    summaries = []
    for (endpoint, status), latencies in sorted(groups.items()):
        latencies.sort()
        summaries.append(LatencySummary(
            endpoint=endpoint,
            status=status,
            count=len(latencies),
            minimal=latencies[0],
            maximal=latencies[-1],
            p50=percentile(latencies, 50),
            p90=percentile(latencies, 90),
            p99=percentile(latencies, 99),
        ))
    return summaries


class LoadTester:
    """Sends GET requests to a set of endpoints following a list of phases."""

    def __init__(self, endpoints: Dict[str, str], phases: Sequence[LoadPhase],
                 max_workers: int = 64, timeout_seconds: float = 29.0,
                 session: Optional[requests.Session] = None):
        if not endpoints:
            raise ValueError("at least one endpoint is required")
        self.endpoints = dict(endpoints)
        self.phases = list(phases)
        self.max_workers = max_workers
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self._results: List[RequestResult] = []
        self._lock = threading.Lock()

    def schedule(self) -> Iterator[Tuple[float, str]]:
        """Yield ``(offset_seconds, endpoint)`` for every request of the run."""
        offset = 0
        for phase in self.phases:
            for second in range(phase.duration_seconds):
                rate = phase.rate_at(second)
                for i in range(rate):
                    for endpoint in self.endpoints:
                        yield offset + second + i / rate, endpoint
            offset += phase.duration_seconds

    def _send(self, endpoint: str) -> None:
        url = self.endpoints[endpoint]
        started = time.perf_counter()
        started_at = time.time()
        try:
            response = self.session.get(url, timeout=self.timeout_seconds)
            result = RequestResult(
                endpoint=endpoint,
                status=str(response.status_code),
                latency_ms=(time.perf_counter() - started) * 1000,
                started_at=started_at,
            )
        except requests.RequestException as e:
            logger.debug(f"Request to {url} failed: {e}")
            result = RequestResult(
                endpoint=endpoint,
                status=ERROR_STATUS,
                latency_ms=(time.perf_counter() - started) * 1000,
                started_at=started_at,
                error=str(e),
            )
        with self._lock:
            self._results.append(result)

    def run(self) -> List[RequestResult]:
        """Run all phases and return the collected results."""
        total_seconds = sum(p.duration_seconds for p in self.phases)
        logger.info(f"Starting load test against {list(self.endpoints)} for {total_seconds}s")

        self._results = []
        futures = []
        start = time.monotonic()
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for offset, endpoint in self.schedule():
                delay = start + offset - time.monotonic()
                if delay > 0:
                    time.sleep(delay)
                futures.append(executor.submit(self._send, endpoint))
            wait(futures)

        for future in futures:
            # surface unexpected errors from worker threads
            future.result()

        logger.info(f"Load test finished: {len(self._results)} requests")
        return list(self._results)
