"""
Pytest entry point for the Tiny Tapeout cocotb tests.

Generates the wrapper Verilog into gen/, compiles it with the simulator named
by $SIM (default icarus) and runs the tb_systolic_mac cocotb module against it.

    SIM=icarus pytest verif/cocotb -v
"""

import shutil
from pathlib import Path

import pytest

from sysmac.top import TinyTapeoutTop

TOPLEVEL = "tt_um_systolic_mac"
TEST_DIR = Path(__file__).parent

SIM_BINARIES = {"icarus": "iverilog", "verilator": "verilator"}


@pytest.fixture(scope="module")
def wrapper_verilog(gen_dir):
    """Write gen/tt_um_systolic_mac.v (same output as scripts/gen_systolic_mac.py)."""
    from amaranth._toolchain.yosys import find_yosys
    from amaranth.back import verilog

    try:
        find_yosys(lambda ver: ver >= (0, 40))
    except Exception:
        pytest.skip("Yosys not found")

    gen_dir.mkdir(parents=True, exist_ok=True)
    path = gen_dir / f"{TOPLEVEL}.v"
    path.write_text(verilog.convert(TinyTapeoutTop(), name=TOPLEVEL))
    return path


def run_cocotb(sim_name, sources, build_dir):
    from cocotb_tools.runner import get_runner

    if shutil.which(SIM_BINARIES[sim_name]) is None:
        pytest.skip(f"{SIM_BINARIES[sim_name]} not found")

    runner = get_runner(sim_name)
    runner.build(
        sources=sources,
        hdl_toplevel=TOPLEVEL,
        build_dir=build_dir,
        timescale=("1ns", "1ps"),
        always=True,
    )
    runner.test(
        hdl_toplevel=TOPLEVEL,
        test_module="tb_systolic_mac",
        test_dir=TEST_DIR,
        build_dir=build_dir,
    )


@pytest.mark.slow
@pytest.mark.icarus
def test_tt_wrapper_icarus(sim_name, wrapper_verilog, tmp_path):
    run_cocotb(sim_name, [wrapper_verilog], tmp_path / "sim_build")


@pytest.mark.slow
@pytest.mark.verilator
def test_tt_wrapper_verilator(sim_name, wrapper_verilog, tmp_path):
    run_cocotb(sim_name, [wrapper_verilog], tmp_path / "sim_build")
