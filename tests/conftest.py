"""
Pytest configuration and shared fixtures for the danr test suite.

This module provides common fixtures, sample builders and configuration
for all test modules in the danr project.
"""

import sys
import tempfile
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data(temp_dir):
    """Sample configuration data for testing."""
    return {
        "storage": {
            "data_dir": str(temp_dir / "profiles"),
            "format": "file",
            "compress_level": 6,
        },
        "grouping": {
            "similarity_threshold": 70,
            "pattern_depth": 5,
        },
        "export": {
            "gap_multiplier": 2.5,
            "process_name": "DANR Profiled App",
            "pid": 1,
        },
        "query": {
            "default_top_functions_limit": 20,
            "default_native_functions_limit": 100,
        },
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Write sample configuration to a temporary config.toml."""
    import toml

    config_path = temp_dir / "config.toml"
    with open(config_path, "w") as f:
        toml.dump(sample_config_data, f)
    return config_path


# ============================================================================
# Profile Fixtures
# ============================================================================


class TestUtils:
    """Utility functions for building wire-format test data."""

    @staticmethod
    def thread(
        thread_id: int,
        name: str,
        frames: List[str],
        state: str = "RUNNABLE",
        is_main: bool = False,
        cpu: Optional[float] = None,
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "threadId": thread_id,
            "threadName": name,
            "state": state,
            "stackFrames": frames,
            "isMainThread": is_main,
        }
        if cpu is not None:
            data["cpuTime"] = {
                "userTimeJiffies": 10,
                "kernelTimeJiffies": 2,
                "cpuUsagePercent": cpu,
            }
        return data

    @staticmethod
    def sample(
        timestamp: int,
        threads: List[Dict[str, Any]],
        system_cpu: Optional[Dict[str, float]] = None,
    ) -> Dict[str, Any]:
        data: Dict[str, Any] = {"timestamp": timestamp, "threads": threads}
        if system_cpu is not None:
            data["systemCPU"] = system_cpu
        return data

    @staticmethod
    def anr_report(
        stack_trace: List[str],
        model: str = "Pixel 7",
        os_version: str = "14",
        is_main: bool = True,
        timestamp: str = "2024-03-01T10:00:00Z",
    ) -> Dict[str, Any]:
        return {
            "timestamp": timestamp,
            "duration": 5000,
            "mainThread": {
                "name": "main" if is_main else "worker",
                "id": 1 if is_main else 42,
                "state": "BLOCKED",
                "stackTrace": stack_trace,
                "isMainThread": is_main,
            },
            "allThreads": [],
            "deviceInfo": {
                "manufacturer": "Google",
                "model": model,
                "osVersion": os_version,
                "sdkVersion": 34,
            },
            "appInfo": {
                "packageName": "com.example.app",
                "versionName": "1.0",
                "versionCode": 1,
                "isInForeground": True,
            },
        }


@pytest.fixture
def test_utils():
    """Provide test utility functions."""
    return TestUtils


@pytest.fixture
def java_session_payload():
    """A java profiling upload with two threads and three samples."""
    main_frames = [
        "com.example.Db.query(Db.java:10)",
        "com.example.Repo.load(Repo.java:20)",
        "android.os.Looper.loop(Looper.java:30)",
    ]
    worker_frames = [
        "java.lang.Object.wait(Native Method)",
        "java.lang.Thread.run(Thread.java:1012)",
    ]
    samples = [
        TestUtils.sample(
            1_000,
            [
                TestUtils.thread(1, "main", main_frames, is_main=True, cpu=40.0),
                TestUtils.thread(7, "worker", worker_frames, state="WAITING", cpu=0.0),
            ],
            {"userPercent": 20.0, "systemPercent": 5.0, "iowaitPercent": 1.0},
        ),
        TestUtils.sample(
            1_050,
            [
                TestUtils.thread(1, "main", main_frames, is_main=True, cpu=60.0),
                TestUtils.thread(7, "worker", worker_frames, state="WAITING"),
            ],
        ),
        TestUtils.sample(
            1_100,
            [
                TestUtils.thread(1, "main", main_frames[1:], state="BLOCKED", is_main=True),
            ],
            {"userPercent": 30.0, "systemPercent": 6.0, "iowaitPercent": 0.0},
        ),
    ]
    return {
        "sessionId": "session-java-1",
        "startTime": 1_000,
        "endTime": 1_150,
        "samplingIntervalMs": 50,
        "hasRoot": False,
        "profilerType": "java",
        "samples": samples,
    }


@pytest.fixture
def java_session(java_session_payload):
    """ProfileSession built from java_session_payload."""
    from danr.models import ProfileSession

    session = ProfileSession.from_dict(java_session_payload)
    session.device_id = "device-1"
    return session


@pytest.fixture
def simpleperf_samples_payload():
    """Simpleperf samples: each 'thread' is a native function in a DSO."""
    return [
        TestUtils.sample(
            2_000,
            [
                TestUtils.thread(1, "libart.so", ["art::GC::Collect (4.45%)"]),
                TestUtils.thread(2, "libc.so", ["memcpy (12.5%)"]),
                TestUtils.thread(3, "libfoo.so", ["weird frame without percentage"]),
                TestUtils.thread(4, "libbar.so", []),
            ],
        ),
    ]


# ============================================================================
# Environment isolation
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_data_dir_env(monkeypatch):
    """Keep a developer's DANR_PROFILE_DATA_DIR out of the tests."""
    monkeypatch.delenv("DANR_PROFILE_DATA_DIR", raising=False)


# ============================================================================
# Configuration cleanup
# ============================================================================


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically reset the configuration singleton after each test."""
    yield  # Run the test

    from danr.config import manager

    manager._CONFIG = None
    manager._CONFIG_FILE_PATH = manager._DEFAULT_CONFIG_FILE_PATH
