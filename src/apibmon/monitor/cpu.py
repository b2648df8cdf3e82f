"""
=============================================================================
CPU AND MEMORY COUNTERS
=============================================================================

Thin adapter over psutil, shaped the way the protocol worker needs it.

CPU utilization is a RATE, not a value you can read directly. The kernel
keeps cumulative counters of how many seconds each CPU spent in each
mode since boot. Utilization over an interval is the busy share of the
time that passed between two readings:

    sample A (t=0)      busy=100.0  total=400.0
    sample B (t=1)      busy=101.5  total=404.0

    utilization = (101.5 - 100.0) / (404.0 - 400.0) * 100 = 37.50 %

That is why each connection keeps its own previous sample: "CPU" always
reports the usage since THAT client last asked.

Memory is instantaneous, so it needs no baseline.

=============================================================================
"""

import time
from dataclasses import dataclass, field

import psutil


@dataclass(frozen=True)
class CPUUsageSample:
    """
    One reading of the cumulative CPU counters.

    Attributes:
        busy: Seconds spent doing work, summed over all CPUs.
        total: Seconds elapsed in every mode, summed over all CPUs.
        timestamp: time.monotonic() at the moment of the reading.
    """

    busy: float
    total: float
    timestamp: float = field(default_factory=time.monotonic)

    def percent_since(self, previous: "CPUUsageSample") -> float:
        """
        Utilization between previous and this sample, 0.0 to 100.0.

        Two samples taken too close together (no counter movement)
        report 0.0 instead of dividing by zero.
        """
        total = self.total - previous.total
        if total <= 0:
            return 0.0

        busy = self.busy - previous.busy
        return min(100.0, max(0.0, busy / total * 100.0))


class CPUMonitor:
    """
    System-wide CPU and memory usage.

    Stateless: every connection holds its own CPUUsageSample, so one
    monitor can serve every worker thread.
    """

    def sample(self) -> CPUUsageSample:
        times = psutil.cpu_times()
        # Linux already counts guest time inside user and nice
        total = sum(times) - getattr(times, "guest", 0.0) - getattr(times, "guest_nice", 0.0)
        # iowait only exists on Linux; it is waiting, not working
        idle = times.idle + getattr(times, "iowait", 0.0)
        return CPUUsageSample(busy=total - idle, total=total)

    def memory_percent(self) -> float:
        return float(psutil.virtual_memory().percent)
