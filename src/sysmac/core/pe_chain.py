"""
PEChain - The systolic delay chain across the MAC lanes.

The chain stages the activation stream through the lanes with a one-cycle
stagger per lane, so lane i sees the activation that entered the array i
cycles earlier:

                       in_data (load bus, broadcast)
                  ┌──────────┬──────────┬──────────┐
                  v          v          v          v
    in_data ──> [PE 0] ──> [PE 1] ──> [PE 2] ──> [PE 3]
    in_compute   slot       slot       slot       slot
                  │          │          │          │
               out_acc_0  out_acc_1  out_acc_2  out_acc_3

Lane 0 takes the bus byte directly and starts accumulating on the first
compute cycle; lane i starts on compute cycle i. Within a C-cycle compute
window lane i therefore accumulates C - i terms: activations x[0..C-1-i].

Weights and biases are loaded over the same bus, one lane per cycle. Only
the lane addressed by `in_lane` sees the load strobe.
"""

from amaranth import Module, signed
from amaranth.lib.wiring import Component, In, Out

from ..config import MacArrayConfig
from .pe import PE


class PEChain(Component):
    """
    Fixed-size row of PEs connected by their delay slots.

    Ports:
        in_data: Shared input bus value (signed)
        in_load_weight: Weight load strobe for the addressed lane
        in_load_bias: Bias load strobe for the addressed lane
        in_lane: Index of the lane targeted by a load strobe
        in_compute: COMPUTE phase; also marks in_data as a valid activation

        out_acc_0..N: Per-lane accumulators
        out_act_0..N: Per-lane delay slots
        out_valid_0..N: Per-lane delay slot valid flags

    Parameters:
        config: MacArrayConfig with lane count and bit widths
    """

    def __init__(self, config: MacArrayConfig):
        self.config = config

        ports = {
            "in_data": In(signed(config.data_bits)),
            "in_load_weight": In(1),
            "in_load_bias": In(1),
            "in_lane": In(config.lane_bits),
            "in_compute": In(1),
        }
        for i in range(config.num_lanes):
            ports[f"out_acc_{i}"] = Out(signed(config.acc_bits))
            ports[f"out_act_{i}"] = Out(signed(config.data_bits))
            ports[f"out_valid_{i}"] = Out(1)

        super().__init__(ports)

        # Built here rather than in elaborate() so testbenches can peek at
        # each lane's register file.
        self.pes = [PE(config) for _ in range(config.num_lanes)]

    def elaborate(self, _platform):
        m = Module()
        n = self.config.num_lanes
        pes = self.pes

        for i, pe in enumerate(pes):
            m.submodules[f"pe_{i}"] = pe

        # =================================================================
        # Load Bus - broadcast, addressed by lane index
        # =================================================================
        for i, pe in enumerate(pes):
            selected = self.in_lane == i
            m.d.comb += [
                pe.in_data.eq(self.in_data),
                pe.in_load_weight.eq(self.in_load_weight & selected),
                pe.in_load_bias.eq(self.in_load_bias & selected),
                pe.in_compute.eq(self.in_compute),
            ]

        # =================================================================
        # Activation Chain - flows lane 0 -> lane N-1
        # =================================================================

        # Lane 0 gets the bus directly; valid only while computing
        m.d.comb += [
            pes[0].in_act.eq(self.in_data),
            pes[0].in_valid.eq(self.in_compute),
        ]

        for i in range(1, n):
            m.d.comb += [
                pes[i].in_act.eq(pes[i - 1].out_act),
                pes[i].in_valid.eq(pes[i - 1].out_valid),
            ]

        # =================================================================
        # Outputs
        # =================================================================
        for i, pe in enumerate(pes):
            m.d.comb += [
                getattr(self, f"out_acc_{i}").eq(pe.out_acc),
                getattr(self, f"out_act_{i}").eq(pe.out_act),
                getattr(self, f"out_valid_{i}").eq(pe.out_valid),
            ]

        return m
