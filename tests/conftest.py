"""
Test configuration and fixtures for hw-info-exporter tests.
"""
import stat

import pytest

from src.entities.node_facts import CPUFacts, MemoryFacts, NodeInfo
from src.frameworks_drivers.config import GPUConfig
from tests.helpers import FakeClock

SAMPLE_DEVICE_OUTPUT = (
    "0, NVIDIA A100-SXM4-80GB, GPU-aaaa-0001, 81920, 40960, 40960, 50, 60, 200.50, 400.00\n"
    "1, NVIDIA A100-SXM4-80GB, GPU-aaaa-0002, 81920, 1024, 80896, 0, 35, 55.10, 400.00\n"
)

SAMPLE_ACTIVE_OUTPUT = "GPU-aaaa-0001\nGPU-aaaa-0001\n"


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_device_output():
    """Two-GPU nvidia-smi device query output."""
    return SAMPLE_DEVICE_OUTPUT


@pytest.fixture
def sample_active_output():
    """Compute-apps output: two processes on the first GPU."""
    return SAMPLE_ACTIVE_OUTPUT


@pytest.fixture
def gpu_config(tmp_path):
    """GPU config pointing every probed path into a temporary directory."""
    return GPUConfig(
        tool_timeout_seconds=2.0,
        cache_max_age_seconds=300.0,
        presence_paths=[str(tmp_path / "proc" / "driver" / "nvidia" / "version")],
        nvidia_smi_paths=[str(tmp_path / "bin" / "nvidia-smi")],
    )


@pytest.fixture
def cpu_facts():
    return CPUFacts(cores=8, threads=16, model="Test CPU @ 3.00GHz", usage_percent=25.0)


@pytest.fixture
def memory_facts():
    return MemoryFacts(total_bytes=64 * 1024**3, used_bytes=16 * 1024**3, available_bytes=48 * 1024**3)


@pytest.fixture
def node_info():
    return NodeInfo(
        hostname="node-a",
        node="node-a",
        os_name="Ubuntu",
        os_version="22.04",
        kernel_version="6.1.0",
        uptime_seconds=3600,
    )


@pytest.fixture
def make_tool(tmp_path):
    """Write an executable shell script standing in for nvidia-smi and return its path."""
    def _make(body: str, name: str = "fake-tool") -> str:
        bin_dir = tmp_path / "tools"
        bin_dir.mkdir(exist_ok=True)
        path = bin_dir / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)
    return _make
