"""
SystolicMac - Top-level integration of the systolic MAC array.

This module wires together the three subsystems:
- MacController: Phase sequencing and input bus routing
- PEChain: Four MAC lanes joined by the activation delay chain
- OutputMux: Drain-phase result selector

External Interface (synchronous, one clock domain):
    rst_n      in   1   synchronous active-low reset to IDLE, zeroes all state
    ena        in   1   1 = run, 0 = hold every register
    data_in    in   8   weight (LOAD_W), bias (LOAD_B) or activation (COMPUTE)
    aux_in     in   8   reserved, unused by the core
    result_lo  out  8   low byte of the drained accumulator
    result_hi  out  8   high byte of the drained accumulator

Data Flow:
    data_in --> Controller routing --> {weight | bias | delay chain}
            --> PE accumulate --> OutputMux --> result_lo / result_hi

TinyTapeoutTop maps the core onto the standard Tiny Tapeout user-module pins.
"""

from amaranth import ClockDomain, EnableInserter, Module, ResetInserter, Signal, signed
from amaranth.lib.wiring import Component, In, Out

from .config import DEFAULT_CONFIG, MacArrayConfig
from .controller.fsm import MacController
from .core.output_mux import OutputMux
from .core.pe_chain import PEChain


class SystolicMac(Component):
    """
    Systolic MAC array core.

    Reset has priority over enable: while rst_n is low the controller and
    every PE register return to their initial values even if ena is low.

    Ports:
        Control:
            rst_n: Active-low synchronous reset
            ena: Clock enable

        Data:
            data_in: Time-multiplexed input bus (two's complement)
            aux_in: Reserved input, ignored

        Result:
            result: Drained accumulator, signed
            result_lo: Low result byte
            result_hi: High result byte
            result_valid: High during DRAIN

        Status:
            state: ControllerState
            pe_index: Lane addressed this cycle
            phase_counter: COMPUTE cycle number
            destination: BusDestination of data_in this cycle

    Parameters:
        config: MacArrayConfig (defaults to the 4-lane INT8 array)
    """

    def __init__(self, config: MacArrayConfig = DEFAULT_CONFIG):
        self.config = config
        byte = config.bus_bits

        super().__init__(
            {
                # Control
                "rst_n": In(1, init=1),
                "ena": In(1, init=1),
                # Data
                "data_in": In(byte),
                "aux_in": In(byte),
                # Result
                "result": Out(signed(2 * byte)),
                "result_lo": Out(byte),
                "result_hi": Out(byte),
                "result_valid": Out(1),
                # Status
                "state": Out(3),
                "pe_index": Out(config.lane_bits),
                "phase_counter": Out(config.phase_bits),
                "destination": Out(2),
            }
        )

        self.controller = MacController(config)
        self.chain = PEChain(config)
        self.mux = OutputMux(config)

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        ctrl = self.controller
        chain = self.chain
        mux = self.mux

        # =================================================================
        # Reset / Enable
        # =================================================================

        rst = Signal(name="rst")
        m.d.comb += rst.eq(~self.rst_n)

        # ResetInserter outermost so reset still applies while ena is low
        m.submodules.controller = ResetInserter(rst)(EnableInserter(self.ena)(ctrl))
        m.submodules.chain = ResetInserter(rst)(EnableInserter(self.ena)(chain))
        m.submodules.mux = mux

        # =================================================================
        # Controller -> PE Chain
        # =================================================================

        m.d.comb += [
            chain.in_data.eq(self.data_in[: cfg.data_bits].as_signed()),
            chain.in_load_weight.eq(ctrl.load_weight),
            chain.in_load_bias.eq(ctrl.load_bias),
            chain.in_lane.eq(ctrl.pe_index),
            chain.in_compute.eq(ctrl.compute),
        ]

        # =================================================================
        # PE Chain -> Output Mux
        # =================================================================

        m.d.comb += [
            mux.in_sel.eq(ctrl.pe_index),
            mux.in_enable.eq(ctrl.drain),
        ]
        for i in range(cfg.num_lanes):
            m.d.comb += getattr(mux, f"in_acc_{i}").eq(getattr(chain, f"out_acc_{i}"))

        # =================================================================
        # Outputs
        # =================================================================

        m.d.comb += [
            self.result.eq(mux.out_result),
            self.result_lo.eq(mux.out_lo),
            self.result_hi.eq(mux.out_hi),
            self.result_valid.eq(mux.out_valid),
            self.state.eq(ctrl.state),
            self.pe_index.eq(ctrl.pe_index),
            self.phase_counter.eq(ctrl.phase_counter),
            self.destination.eq(ctrl.destination),
        ]

        return m


class TinyTapeoutTop(Component):
    """
    Tiny Tapeout user-module wrapper around SystolicMac.

    Pin mapping:
        ui_in[7:0]   -> data_in
        uio_in[7:0]  -> aux_in (reserved)
        uo_out[7:0]  <- result_lo
        uio_out[7:0] <- result_hi
        uio_oe[7:0]  =  0xFF (bidirectional pins always driven)
        ena, rst_n   -> core control
        clk          -> reset-less sync domain clock

    Parameters:
        config: MacArrayConfig; bus_bits must be 8 to match the pin groups
    """

    def __init__(self, config: MacArrayConfig = DEFAULT_CONFIG):
        assert config.bus_bits == 8, "Tiny Tapeout pin groups are 8 bits wide"
        self.config = config

        super().__init__(
            {
                "ui_in": In(8),
                "uo_out": Out(8),
                "uio_in": In(8),
                "uio_out": Out(8),
                "uio_oe": Out(8),
                "ena": In(1, init=1),
                "rst_n": In(1, init=1),
            }
        )

        self.core = SystolicMac(config)

    def elaborate(self, _platform):
        m = Module()

        # The harness provides only clk; reset is handled by rst_n in the core
        m.domains.sync = ClockDomain("sync", reset_less=True)

        m.submodules.core = core = self.core

        m.d.comb += [
            core.rst_n.eq(self.rst_n),
            core.ena.eq(self.ena),
            core.data_in.eq(self.ui_in),
            core.aux_in.eq(self.uio_in),
            self.uo_out.eq(core.result_lo),
            self.uio_out.eq(core.result_hi),
            self.uio_oe.eq(0xFF),
        ]

        return m
