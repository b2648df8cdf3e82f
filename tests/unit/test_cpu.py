"""
Unit tests for CPU and memory counters.
"""

from collections import namedtuple

import pytest

from apibmon.monitor import cpu
from apibmon.monitor.cpu import CPUMonitor, CPUUsageSample


class TestCPUUsageSample:
    """Tests for interval computation."""

    def test_percent_since(self):
        before = CPUUsageSample(busy=100.0, total=400.0)
        after = CPUUsageSample(busy=101.5, total=404.0)

        assert after.percent_since(before) == pytest.approx(37.5)

    def test_no_elapsed_time(self):
        sample = CPUUsageSample(busy=10.0, total=20.0)

        assert sample.percent_since(sample) == 0.0

    def test_clamped(self):
        before = CPUUsageSample(busy=0.0, total=10.0)

        assert CPUUsageSample(busy=20.0, total=20.0).percent_since(before) == 100.0
        assert CPUUsageSample(busy=-5.0, total=20.0).percent_since(before) == 0.0


class TestCPUMonitor:
    """Tests for the psutil adapter."""

    def test_sample_excludes_idle_and_iowait(self, monkeypatch):
        Times = namedtuple("Times", "user system idle iowait")
        monkeypatch.setattr(cpu.psutil, "cpu_times", lambda: Times(30.0, 10.0, 50.0, 10.0))

        sample = CPUMonitor().sample()

        assert sample.total == pytest.approx(100.0)
        assert sample.busy == pytest.approx(40.0)

    def test_sample_without_iowait(self, monkeypatch):
        Times = namedtuple("Times", "user system idle")
        monkeypatch.setattr(cpu.psutil, "cpu_times", lambda: Times(30.0, 10.0, 60.0))

        sample = CPUMonitor().sample()

        assert sample.busy == pytest.approx(40.0)

    def test_guest_time_not_counted_twice(self, monkeypatch):
        Times = namedtuple("Times", "user nice system idle iowait irq softirq steal guest guest_nice")
        linux = Times(50.0, 0.0, 0.0, 50.0, 0.0, 0.0, 0.0, 0.0, 50.0, 0.0)
        monkeypatch.setattr(cpu.psutil, "cpu_times", lambda: linux)

        sample = CPUMonitor().sample()

        assert sample.total == pytest.approx(100.0)
        assert sample.busy == pytest.approx(50.0)

    def test_memory_percent(self, monkeypatch):
        Memory = namedtuple("Memory", "total available percent")
        monkeypatch.setattr(cpu.psutil, "virtual_memory", lambda: Memory(100, 25, 75.0))

        assert CPUMonitor().memory_percent() == 75.0

    def test_real_counters(self):
        monitor = CPUMonitor()
        first = monitor.sample()
        second = monitor.sample()

        assert 0.0 <= second.percent_since(first) <= 100.0
        assert 0.0 <= monitor.memory_percent() <= 100.0
