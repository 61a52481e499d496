"""
Tests for the live GPU acquisition pipeline.
"""
import sys
import time
from unittest.mock import Mock

import pytest

from src.frameworks_drivers.config import GPUConfig
from src.frameworks_drivers.gpu_monitor import GPUMonitor
from src.shared.errors import InvocationTimeout, LaunchFailure, TelemetryParseError, ToolFailure, ToolNotFound
from src.shared.nvidia_smi_parser import ACTIVE_QUERY_ARGS, DEVICE_QUERY_ARGS
from tests.helpers import FakeClock

NVIDIA_SMI = "/usr/bin/nvidia-smi"


def _monitor(invoker, path=NVIDIA_SMI, clock=lambda: 500.0):
    locator = Mock()
    locator.locate.return_value = path
    locator.candidates = [NVIDIA_SMI]
    return GPUMonitor(GPUConfig(tool_timeout_seconds=5.0), locator=locator, invoker=invoker, clock=clock)


def _invoker(device_output="", active_output="", active_error=None, device_error=None):
    def invoke(path, args, timeout=None):
        if args == DEVICE_QUERY_ARGS:
            if device_error:
                raise device_error
            return device_output
        if args == ACTIVE_QUERY_ARGS:
            if active_error:
                raise active_error
            return active_output
        raise AssertionError(f"unexpected args {args}")

    invoker = Mock()
    invoker.invoke.side_effect = invoke
    return invoker


class TestGPUMonitor:
    """Test cases for GPUMonitor.acquire."""

    def test_acquire_merges_device_and_active_queries(self, sample_device_output, sample_active_output):
        monitor = _monitor(_invoker(sample_device_output, sample_active_output))

        snapshot = monitor.acquire()

        assert snapshot.device_count == 2
        assert snapshot.active_uuids == frozenset({"GPU-aaaa-0001"})
        assert snapshot.active_count == 1
        assert snapshot.captured_at == 500.0

    def test_acquire_uses_configured_timeout_and_located_path(self, sample_device_output):
        invoker = _invoker(sample_device_output)
        monitor = _monitor(invoker)

        monitor.acquire()

        for call in invoker.invoke.call_args_list:
            assert call.args[0] == NVIDIA_SMI
            assert call.args[2] == 5.0

    def test_missing_tool_raises_without_invoking(self):
        invoker = _invoker()
        monitor = _monitor(invoker, path=None)

        with pytest.raises(ToolNotFound):
            monitor.acquire()

        invoker.invoke.assert_not_called()

    @pytest.mark.parametrize("error", [
        LaunchFailure(NVIDIA_SMI, "permission denied"),
        InvocationTimeout(NVIDIA_SMI, 5.0),
        ToolFailure(NVIDIA_SMI, 1, "", "NVIDIA-SMI has failed"),
    ])
    def test_device_query_failure_propagates(self, error):
        monitor = _monitor(_invoker(device_error=error))

        with pytest.raises(type(error)):
            monitor.acquire()

    def test_device_parse_failure_propagates(self):
        monitor = _monitor(_invoker(device_output="0,broken\n"))

        with pytest.raises(TelemetryParseError):
            monitor.acquire()

    def test_active_query_failure_degrades_to_empty_set(self, sample_device_output):
        """The device list stays valid when the compute-apps query fails."""
        monitor = _monitor(_invoker(sample_device_output, active_error=InvocationTimeout(NVIDIA_SMI, 5.0)))

        snapshot = monitor.acquire()

        assert snapshot.device_count == 2
        assert snapshot.active_uuids == frozenset()
        assert snapshot.active_count == 0

    def test_active_parse_failure_degrades_to_empty_set(self, sample_device_output):
        monitor = _monitor(_invoker(sample_device_output, active_output="not, a uuid\n"))

        snapshot = monitor.acquire()

        assert snapshot.device_count == 2
        assert snapshot.active_uuids == frozenset()

    def test_active_uuids_for_unknown_devices_are_not_counted(self, sample_device_output):
        monitor = _monitor(_invoker(sample_device_output, "GPU-other-host\nGPU-aaaa-0002\n"))

        snapshot = monitor.acquire()

        assert snapshot.active_count == 1

    def test_zero_gpus_is_a_successful_acquisition(self):
        monitor = _monitor(_invoker(""))

        snapshot = monitor.acquire()

        assert snapshot.device_count == 0


class TestGPUMonitorDeadline:
    """Both queries of one acquisition share a single tool timeout."""

    def test_active_query_gets_remaining_budget(self, sample_device_output):
        clock = FakeClock(500.0)
        invoker = _invoker(sample_device_output, "GPU-aaaa-0001\n")
        device_invoke = invoker.invoke.side_effect

        def slow_device_query(path, args, timeout=None):
            if args == DEVICE_QUERY_ARGS:
                clock.advance(3.0)
            return device_invoke(path, args, timeout)

        invoker.invoke.side_effect = slow_device_query
        monitor = _monitor(invoker, clock=clock)

        monitor.acquire()

        device_call, active_call = invoker.invoke.call_args_list
        assert device_call.args[2] == 5.0
        assert active_call.args[2] == pytest.approx(2.0)

    def test_exhausted_budget_skips_active_query(self, sample_device_output):
        clock = FakeClock(500.0)
        invoker = _invoker(sample_device_output, "GPU-aaaa-0001\n")
        device_invoke = invoker.invoke.side_effect

        def exhausting_device_query(path, args, timeout=None):
            clock.advance(5.0)
            return device_invoke(path, args, timeout)

        invoker.invoke.side_effect = exhausting_device_query
        monitor = _monitor(invoker, clock=clock)

        snapshot = monitor.acquire()

        assert invoker.invoke.call_count == 1
        assert snapshot.device_count == 2
        assert snapshot.active_uuids == frozenset()

    @pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")
    def test_slow_device_query_and_hung_active_query_stay_within_timeout(self, make_tool):
        tool = make_tool(
            'case "$1" in\n'
            '  --query-gpu=*) sleep 0.6; echo "0,NVIDIA-X,GPU-uuid-1,81920,40960,40960,50,60,200,400" ;;\n'
            '  *) exec sleep 60 ;;\n'
            'esac'
        )
        monitor = GPUMonitor(GPUConfig(tool_timeout_seconds=1.0, cache_max_age_seconds=60, nvidia_smi_paths=[tool]))

        started = time.monotonic()
        snapshot = monitor.acquire()
        elapsed = time.monotonic() - started

        assert snapshot.device_count == 1
        assert snapshot.active_uuids == frozenset()
        assert elapsed < 1.5
