"""
OutputMux - Drain-phase result selector.

Selects one lane's accumulator per cycle and splits it across the two
result bytes:

    out_lo = result[7:0]
    out_hi = result[15:8]   (sign-extended if the accumulator is narrower)

Purely combinational. Reading an accumulator never modifies it; the value
stays in the PE until the next LOAD_B overwrites it.
"""

from amaranth import Module, Signal, signed
from amaranth.lib.wiring import Component, In, Out

from ..config import MacArrayConfig


class OutputMux(Component):
    """
    Read-only lane selector for the result bus.

    Ports:
        in_acc_0..N: Lane accumulators
        in_sel: Lane to expose (controller's pe_index)
        in_enable: Drain strobe; outputs are zero while low

        out_result: Selected accumulator, sign-extended to two bytes
        out_lo: Low result byte
        out_hi: High result byte
        out_valid: out_result carries a drained accumulator

    Parameters:
        config: MacArrayConfig with lane count and bit widths
    """

    def __init__(self, config: MacArrayConfig):
        self.config = config
        word_width = 2 * config.bus_bits

        ports = {
            "in_sel": In(config.lane_bits),
            "in_enable": In(1),
            "out_result": Out(signed(word_width)),
            "out_lo": Out(config.bus_bits),
            "out_hi": Out(config.bus_bits),
            "out_valid": Out(1),
        }
        for i in range(config.num_lanes):
            ports[f"in_acc_{i}"] = In(signed(config.acc_bits))

        super().__init__(ports)

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config
        byte = cfg.bus_bits

        selected = Signal(signed(2 * byte), name="selected")

        with m.If(self.in_enable):
            with m.Switch(self.in_sel):
                for i in range(cfg.num_lanes):
                    with m.Case(i):
                        m.d.comb += selected.eq(getattr(self, f"in_acc_{i}"))

        m.d.comb += [
            self.out_result.eq(selected),
            self.out_lo.eq(selected[:byte]),
            self.out_hi.eq(selected[byte : 2 * byte]),
            self.out_valid.eq(self.in_enable),
        ]

        return m
