"""
MacController - Phase sequencer for the systolic MAC array.

The controller drives the array through a fixed, data-independent cycle of
phases and decides, from its state alone, where the shared input bus goes:

State Machine:
    reset -> IDLE -> LOAD_W -> LOAD_B -> COMPUTE -> DRAIN -> LOAD_W -> ...

    Phase     Cycles  Bus destination       Per-cycle action
    IDLE      1       none                  wait one cycle after reset
    LOAD_W    L       weight register       PE[pe_index].weight <= bus
    LOAD_B    L       bias register         PE[pe_index].bias, acc <= bus
    COMPUTE   2L-1    activation chain      every active lane accumulates
    DRAIN     L       none                  expose PE[pe_index].acc

with L = num_lanes. There is no terminal state: DRAIN's last cycle is
followed directly by a fresh LOAD_W.

Reset and enable are not handled here; the enclosing design wraps the
controller with ResetInserter / EnableInserter so that every register,
including the FSM state, is cleared or held together.
"""

from enum import IntEnum

from amaranth import Module, Signal
from amaranth.lib.wiring import Component, Out

from ..config import MacArrayConfig


class ControllerState(IntEnum):
    """Controller phases, as reported on the `state` debug port."""

    IDLE = 0
    LOAD_W = 1
    LOAD_B = 2
    COMPUTE = 3
    DRAIN = 4


class BusDestination(IntEnum):
    """Consumer of the input bus during a cycle."""

    NONE = 0
    WEIGHT = 1
    BIAS = 2
    ACTIVATION = 3


_ROUTES = {
    ControllerState.IDLE: BusDestination.NONE,
    ControllerState.LOAD_W: BusDestination.WEIGHT,
    ControllerState.LOAD_B: BusDestination.BIAS,
    ControllerState.COMPUTE: BusDestination.ACTIVATION,
    ControllerState.DRAIN: BusDestination.NONE,
}


def bus_destination(state: ControllerState) -> BusDestination:
    """Return where the input bus is routed while the controller is in `state`."""
    return _ROUTES[ControllerState(state)]


class MacController(Component):
    """
    Fixed-schedule FSM for load / compute / drain sequencing.

    Ports:
        Status:
            state: Current ControllerState
            pe_index: Lane addressed by the current load or drain cycle
            phase_counter: COMPUTE cycle number (0 .. compute_cycles - 1)
            destination: BusDestination of the current cycle

        Array control:
            load_weight: Bus byte goes to PE[pe_index].weight
            load_bias: Bus byte goes to PE[pe_index].bias (and seeds acc)
            compute: Bus byte enters the activation chain
            drain: PE[pe_index].acc is on the result bus

    Parameters:
        config: MacArrayConfig with lane count
    """

    def __init__(self, config: MacArrayConfig):
        self.config = config

        super().__init__(
            {
                # Status
                "state": Out(3),
                "pe_index": Out(config.lane_bits),
                "phase_counter": Out(config.phase_bits),
                "destination": Out(2),
                # Array control
                "load_weight": Out(1),
                "load_bias": Out(1),
                "compute": Out(1),
                "drain": Out(1),
            }
        )

    def _route(self, m, state):
        """Drive the status and strobe outputs for one FSM state."""
        dest = bus_destination(state)
        m.d.comb += [
            self.state.eq(int(state)),
            self.destination.eq(int(dest)),
            self.load_weight.eq(dest == BusDestination.WEIGHT),
            self.load_bias.eq(dest == BusDestination.BIAS),
            self.compute.eq(dest == BusDestination.ACTIVATION),
            self.drain.eq(state == ControllerState.DRAIN),
        ]

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        last_lane = cfg.num_lanes - 1
        last_phase = cfg.compute_cycles - 1

        # =================================================================
        # Internal Registers
        # =================================================================
        pe_index = Signal(cfg.lane_bits, name="pe_index")
        phase_counter = Signal(cfg.phase_bits, name="phase_counter")

        m.d.comb += [
            self.pe_index.eq(pe_index),
            self.phase_counter.eq(phase_counter),
        ]

        # =================================================================
        # State Machine
        # =================================================================

        with m.FSM(init="IDLE"):
            # ---------------------------------------------------------
            # IDLE: held for exactly one cycle after reset
            # ---------------------------------------------------------
            with m.State("IDLE"):
                self._route(m, ControllerState.IDLE)
                m.d.sync += pe_index.eq(0)
                m.next = "LOAD_W"

            # ---------------------------------------------------------
            # LOAD_W: one weight per cycle, lane 0 first
            # ---------------------------------------------------------
            with m.State("LOAD_W"):
                self._route(m, ControllerState.LOAD_W)
                with m.If(pe_index == last_lane):
                    m.d.sync += pe_index.eq(0)
                    m.next = "LOAD_B"
                with m.Else():
                    m.d.sync += pe_index.eq(pe_index + 1)

            # ---------------------------------------------------------
            # LOAD_B: one bias per cycle; each PE's accumulator is
            # seeded with its bias on the same edge
            # ---------------------------------------------------------
            with m.State("LOAD_B"):
                self._route(m, ControllerState.LOAD_B)
                with m.If(pe_index == last_lane):
                    m.d.sync += [
                        pe_index.eq(0),
                        phase_counter.eq(0),
                    ]
                    m.next = "COMPUTE"
                with m.Else():
                    m.d.sync += pe_index.eq(pe_index + 1)

            # ---------------------------------------------------------
            # COMPUTE: stream activations for compute_cycles cycles
            # ---------------------------------------------------------
            with m.State("COMPUTE"):
                self._route(m, ControllerState.COMPUTE)
                with m.If(phase_counter == last_phase):
                    m.d.sync += [
                        phase_counter.eq(0),
                        pe_index.eq(0),
                    ]
                    m.next = "DRAIN"
                with m.Else():
                    m.d.sync += phase_counter.eq(phase_counter + 1)

            # ---------------------------------------------------------
            # DRAIN: one accumulator per cycle, then the next job
            # ---------------------------------------------------------
            with m.State("DRAIN"):
                self._route(m, ControllerState.DRAIN)
                with m.If(pe_index == last_lane):
                    m.d.sync += pe_index.eq(0)
                    m.next = "LOAD_W"
                with m.Else():
                    m.d.sync += pe_index.eq(pe_index + 1)

        return m
