"""System usage counters."""

from .cpu import CPUMonitor, CPUUsageSample

__all__ = ["CPUMonitor", "CPUUsageSample"]
