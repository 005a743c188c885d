"""
Cycle-accurate reference model of the systolic MAC array.

The model mirrors the RTL register by register so it can be stepped in
lockstep with an Amaranth simulation and compared cycle by cycle:

    model = SystolicMacModel()
    seen = model.step(data_in=0x05)     # outputs during this cycle, then edge

Every register update on an edge is computed from the values before that
edge, exactly like edge-triggered flip-flops. The four lanes never read each
other's registers except through the delay slots, so they are updated in a
single pass.

`expected_results()` is a closed-form NumPy reference for a whole job, used
to check both the model and the RTL.
"""

from collections.abc import Sequence
from dataclasses import dataclass, replace

import numpy as np

from .config import DEFAULT_CONFIG, MacArrayConfig
from .controller.fsm import BusDestination, ControllerState, bus_destination
from .util.bits import split_word, to_signed, wrap_signed
from .util.stimulus import job_stimulus, normalize_vector


@dataclass(frozen=True)
class LaneRegisters:
    """Register file of one PE."""

    weight: int = 0
    bias: int = 0
    accumulator: int = 0
    delay_slot: int = 0
    valid: bool = False


@dataclass(frozen=True)
class BusOutputs:
    """What the core presents on its outputs during one cycle."""

    state: ControllerState
    pe_index: int
    phase_counter: int
    destination: BusDestination
    result: int
    valid: bool
    bus_bits: int = 8

    @property
    def result_lo(self) -> int:
        return split_word(self.result, self.bus_bits)[0]

    @property
    def result_hi(self) -> int:
        return split_word(self.result, self.bus_bits)[1]


class SystolicMacModel:
    """
    Behavioral model of SystolicMac.

    Attributes:
        config: MacArrayConfig shared with the RTL
        state: Current ControllerState
        pe_index: Lane addressed by load/drain cycles
        phase_counter: COMPUTE cycle number
        lanes: Tuple of LaneRegisters, one per PE
        cycle: Number of edges stepped since construction
    """

    def __init__(self, config: MacArrayConfig = DEFAULT_CONFIG):
        self.config = config
        self.cycle = 0
        self.reset()

    def reset(self):
        """Return every register to its initial value (rst_n asserted)."""
        self.state = ControllerState.IDLE
        self.pe_index = 0
        self.phase_counter = 0
        self.lanes = tuple(LaneRegisters() for _ in range(self.config.num_lanes))

    # =========================================================================
    # Combinational outputs
    # =========================================================================

    @property
    def destination(self) -> BusDestination:
        return bus_destination(self.state)

    @property
    def outputs(self) -> BusOutputs:
        """Outputs visible during the current cycle (before the next edge)."""
        draining = self.state == ControllerState.DRAIN
        result = 0
        if draining:
            acc = self.lanes[self.pe_index].accumulator
            result = wrap_signed(acc, 2 * self.config.bus_bits)
        return BusOutputs(
            state=self.state,
            pe_index=self.pe_index,
            phase_counter=self.phase_counter,
            destination=self.destination,
            result=result,
            valid=draining,
            bus_bits=self.config.bus_bits,
        )

    # =========================================================================
    # Clock edge
    # =========================================================================

    def step(self, data_in: int = 0, *, rst_n: bool = True, ena: bool = True) -> BusOutputs:
        """
        Advance one clock edge.

        Args:
            data_in: Input bus byte presented during this cycle
            rst_n: Active-low synchronous reset
            ena: Clock enable; when low nothing changes

        Returns:
            The outputs that were visible during the cycle, before the edge.
        """
        seen = self.outputs
        self.cycle += 1

        if not rst_n:
            self.reset()
            return seen
        if not ena:
            return seen

        cfg = self.config
        operand = to_signed(data_in, cfg.data_bits)

        self.lanes = self._next_lanes(operand)
        self._next_state()
        return seen

    def _next_lanes(self, operand: int) -> tuple:
        cfg = self.config
        dest = self.destination
        computing = dest == BusDestination.ACTIVATION

        lanes = []
        for i, lane in enumerate(self.lanes):
            if i == 0:
                act, valid = operand, computing
            else:
                prev = self.lanes[i - 1]
                act, valid = prev.delay_slot, prev.valid

            addressed = i == self.pe_index
            if dest == BusDestination.WEIGHT and addressed:
                lane = replace(lane, weight=operand)
            elif dest == BusDestination.BIAS and addressed:
                lane = replace(lane, bias=operand, accumulator=operand)
            elif computing and valid:
                acc = wrap_signed(lane.accumulator + act * lane.weight, cfg.acc_bits)
                lane = replace(lane, accumulator=acc)

            lanes.append(replace(lane, delay_slot=act if valid else 0, valid=valid))
        return tuple(lanes)

    def _next_state(self):
        cfg = self.config
        last_lane = cfg.num_lanes - 1
        state = self.state

        if state == ControllerState.IDLE:
            self.pe_index = 0
            self.state = ControllerState.LOAD_W
        elif state in (ControllerState.LOAD_W, ControllerState.LOAD_B, ControllerState.DRAIN):
            if self.pe_index == last_lane:
                self.pe_index = 0
                if state == ControllerState.LOAD_W:
                    self.state = ControllerState.LOAD_B
                elif state == ControllerState.LOAD_B:
                    self.phase_counter = 0
                    self.state = ControllerState.COMPUTE
                else:
                    self.state = ControllerState.LOAD_W
            else:
                self.pe_index += 1
        elif state == ControllerState.COMPUTE:
            if self.phase_counter == cfg.compute_cycles - 1:
                self.phase_counter = 0
                self.pe_index = 0
                self.state = ControllerState.DRAIN
            else:
                self.phase_counter += 1

    # =========================================================================
    # Job helpers
    # =========================================================================

    def run_job(
        self,
        weights: Sequence[int],
        biases: Sequence[int],
        activations: Sequence[int],
    ) -> list[int]:
        """
        Drive one complete job and return the drained accumulators.

        Must be called at the start of LOAD_W (one step after reset, or right
        after a previous job's DRAIN).

        Raises:
            ValueError: if the model is not at the first LOAD_W cycle, or if any
                vector has the wrong length or out-of-range values.
        """
        if self.state != ControllerState.LOAD_W or self.pe_index != 0:
            raise ValueError("run_job must start at the first LOAD_W cycle")
        drained = []
        for byte in job_stimulus(weights, biases, activations, self.config):
            seen = self.step(byte)
            if seen.valid:
                drained.append(seen.result)
        return drained


def expected_results(
    weights: Sequence[int],
    biases: Sequence[int],
    activations: Sequence[int],
    config: MacArrayConfig = DEFAULT_CONFIG,
) -> np.ndarray:
    """
    Closed-form drained results of one job.

    Lane i starts accumulating i cycles after lane 0 and stops with the
    compute window, so it sums the first compute_cycles - i activations:

        result[i] = wrap(bias[i] + weight[i] * sum(x[0 : C - i]))

    Raises:
        ValueError: if any vector has the wrong length or out-of-range values.
    """
    cfg = config
    w = np.array(normalize_vector("weights", weights, cfg.num_lanes, cfg.data_bits), dtype=np.int64)
    b = np.array(normalize_vector("biases", biases, cfg.num_lanes, cfg.data_bits), dtype=np.int64)
    x = np.array(
        normalize_vector("activations", activations, cfg.compute_cycles, cfg.data_bits),
        dtype=np.int64,
    )

    prefix = np.cumsum(x)
    windows = prefix[cfg.compute_cycles - 1 - np.arange(cfg.num_lanes)]
    raw = b + w * windows

    # Two's-complement wrap to the accumulator width
    span = 1 << cfg.acc_bits
    half = 1 << (cfg.acc_bits - 1)
    return (raw + half) % span - half
