"""
Sysmac Verification - Global pytest configuration and fixtures.

Fixtures shared by the pytest entry points that build the generated Verilog
and launch cocotb through cocotb_tools.runner. Set SIM=icarus (default) or
SIM=verilator to pick the simulator; tests marked for the other one are
skipped.
"""

import os
import sys
from pathlib import Path

import pytest

# Make sysmac importable here and in the cocotb subprocess
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "verilator: marks tests requiring Verilator")
    config.addinivalue_line("markers", "icarus: marks tests requiring Icarus Verilog")


def pytest_collection_modifyitems(config, items):  # noqa: ARG001
    """Modify test collection based on available simulators."""
    sim = os.environ.get("SIM", "icarus").lower()

    skip_verilator = pytest.mark.skip(reason="Requires Verilator simulator")
    skip_icarus = pytest.mark.skip(reason="Requires Icarus Verilog simulator")

    for item in items:
        if "verilator" in item.keywords and sim != "verilator":
            item.add_marker(skip_verilator)
        if "icarus" in item.keywords and sim != "icarus":
            item.add_marker(skip_icarus)


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture(scope="session")
def gen_dir(project_root) -> Path:
    """Return the generated RTL directory (see scripts/gen_systolic_mac.py)."""
    return project_root / "gen"


@pytest.fixture(scope="session")
def sim_name() -> str:
    """Return the current simulator name."""
    return os.environ.get("SIM", "icarus").lower()
