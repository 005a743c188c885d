#!/usr/bin/env python3
"""
Single Job Demo.

This example pushes one job through the systolic MAC array RTL and prints
what happens on every clock cycle:

1. Problem Setup
   - Pick weights, biases and an activation batch (or random ones)
   - Compute the expected drained results with NumPy

2. Execution (RTL Simulation)
   - Reset the core, then drive the bus through LOAD_W, LOAD_B,
     COMPUTE and DRAIN
   - Trace state, bus destination and every lane's accumulator

3. Verification
   - Compare the drained bytes with the NumPy reference and the
     cycle-accurate Python model

Usage:
    python 01_run_job.py [--random] [--seed N] [--quiet]

    --random      Use random INT8 operands instead of the textbook job
    --seed N      Seed for --random (default: 0)
    --quiet       Only print the summary
"""

import argparse
import sys
from pathlib import Path

import numpy as np
from amaranth.sim import Simulator

# Add src to path when running from a source checkout
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sysmac.config import MacArrayConfig  # noqa: E402
from sysmac.controller.fsm import BusDestination, ControllerState  # noqa: E402
from sysmac.model import SystolicMacModel, expected_results  # noqa: E402
from sysmac.top import SystolicMac  # noqa: E402
from sysmac.util.bits import join_bytes, to_signed  # noqa: E402
from sysmac.util.stimulus import job_stimulus  # noqa: E402


def simulate_job(config, weights, biases, activations, verbose=True):
    """Run one job on the RTL; return the drained results."""
    dut = SystolicMac(config)
    stream = job_stimulus(weights, biases, activations, config)
    drained = []

    async def testbench(ctx):
        ctx.set(dut.rst_n, 0)
        await ctx.tick()
        ctx.set(dut.rst_n, 1)
        await ctx.tick()  # IDLE -> LOAD_W

        for cycle, byte in enumerate(stream):
            ctx.set(dut.data_in, byte)
            state = ControllerState(ctx.get(dut.state))
            dest = BusDestination(ctx.get(dut.destination))
            accs = [ctx.get(pe.out_acc) for pe in dut.chain.pes]

            note = ""
            if dest != BusDestination.NONE:
                note = f"{dest.name.lower()}={to_signed(byte, config.data_bits)}"
            if ctx.get(dut.result_valid):
                value = join_bytes(ctx.get(dut.result_lo), ctx.get(dut.result_hi))
                drained.append(value)
                note = f"PE{ctx.get(dut.pe_index)} -> {value}"

            if verbose:
                acc_text = " ".join(f"{a:7d}" for a in accs)
                print(f"   {cycle:3d}  {state.name:8s} {acc_text}   {note}")
            await ctx.tick()

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(testbench)
    sim.run()
    return drained


def run_demo(use_random=False, seed=0, verbose=True):
    config = MacArrayConfig()

    # =========================================================================
    # 1. Problem Setup
    # =========================================================================
    if use_random:
        rng = np.random.default_rng(seed)
        weights = rng.integers(-128, 128, config.num_lanes).tolist()
        biases = rng.integers(-128, 128, config.num_lanes).tolist()
        activations = rng.integers(-128, 128, config.compute_cycles).tolist()
    else:
        weights = [1, 2, 3, 4]
        biases = [10, 20, 30, 40]
        activations = [10, 20, 30, 40, 0, 0, 0]

    print("=" * 70)
    print("Systolic MAC Array - Single Job")
    print("=" * 70)
    print(f"   Weights:     {weights}")
    print(f"   Biases:      {biases}")
    print(f"   Activations: {activations}")

    expected = expected_results(weights, biases, activations, config).tolist()
    print(f"   Expected:    {expected}")

    # =========================================================================
    # 2. Execution
    # =========================================================================
    if verbose:
        print("\n   cycle  state    " + " ".join(f"{'acc' + str(i):>7s}" for i in range(4)))
        print("   " + "-" * 60)
    drained = simulate_job(config, weights, biases, activations, verbose=verbose)

    # =========================================================================
    # 3. Verification
    # =========================================================================
    model = SystolicMacModel(config)
    model.step(0)
    modelled = model.run_job(weights, biases, activations)

    print("\n" + "-" * 40)
    print(f"   RTL drained:   {drained}")
    print(f"   Model drained: {modelled}")
    ok = drained == expected == modelled
    print(f"   Result: {'PASS' if ok else 'FAIL'}")
    return ok


def main():
    parser = argparse.ArgumentParser(description="Run one job through the systolic MAC RTL")
    parser.add_argument("--random", action="store_true", help="Use random INT8 operands")
    parser.add_argument("--seed", type=int, default=0, help="Seed for --random")
    parser.add_argument("--quiet", action="store_true", help="Only print the summary")
    args = parser.parse_args()

    ok = run_demo(use_random=args.random, seed=args.seed, verbose=not args.quiet)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
