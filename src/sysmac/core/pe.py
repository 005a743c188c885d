"""
Processing Element (PE) - One MAC lane of the weight-stationary array.

Each PE holds a small register file and performs a multiply-accumulate:

    accumulator <= accumulator + in_act * weight

Register file:
- weight:      signed weight, loaded once per job (LOAD_W)
- bias:        signed bias, loaded once per job (LOAD_B)
- accumulator: signed running sum, seeded with the bias during LOAD_B
- delay_slot:  staging register forwarding the activation to the next lane

Data flows:
- in_data: shared load bus (weight or bias, selected by the load strobes)
- in_act:  activation from the previous lane (or the bus for lane 0)
- out_act: registered copy of in_act, one cycle later (to the next lane)
"""

from amaranth import Module, Signal, signed
from amaranth.lib.wiring import Component, In, Out

from ..config import MacArrayConfig


class PE(Component):
    """
    Processing Element - weight-stationary MAC with a one-slot delay register.

    At most one register-file writer is active per cycle. The strobes are
    resolved in priority order (weight load, bias load, accumulate); the
    controller never asserts more than one of them.

    Ports:
        in_data: Load bus value (weight or bias)
        in_load_weight: Write in_data into the weight register
        in_load_bias: Write in_data into the bias register and seed the accumulator
        in_act: Activation operand for this cycle
        in_valid: in_act carries a genuine activation sample
        in_compute: Array is in the COMPUTE phase (accumulation enable)

        out_act: Delay slot (in_act registered, zero when not valid)
        out_valid: Valid flag travelling with the delay slot
        out_weight: Weight register read-back
        out_bias: Bias register read-back
        out_acc: Accumulator read-back

    Parameters:
        config: MacArrayConfig with bit widths
    """

    def __init__(self, config: MacArrayConfig):
        self.config = config

        data_width = config.data_bits
        acc_width = config.acc_bits

        super().__init__(
            {
                # Inputs
                "in_data": In(signed(data_width)),
                "in_load_weight": In(1),
                "in_load_bias": In(1),
                "in_act": In(signed(data_width)),
                "in_valid": In(1),
                "in_compute": In(1),
                # Outputs
                "out_act": Out(signed(data_width)),
                "out_valid": Out(1),
                "out_weight": Out(signed(data_width)),
                "out_bias": Out(signed(data_width)),
                "out_acc": Out(signed(acc_width)),
            }
        )

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        # Register file
        weight = Signal(signed(cfg.data_bits), name="weight")
        bias = Signal(signed(cfg.data_bits), name="bias")
        acc = Signal(signed(cfg.acc_bits), name="acc")

        # =================================================================
        # Multiply-Accumulate Computation
        # =================================================================

        # Full-precision product: data_bits x data_bits -> 2 * data_bits
        product = Signal(signed(cfg.product_bits), name="product")
        m.d.comb += product.eq(self.in_act * weight)

        # The sum is one bit wider than acc; assigning it back truncates,
        # which is two's-complement wraparound.
        accumulated = Signal(signed(cfg.acc_bits), name="accumulated")
        m.d.comb += accumulated.eq(acc + product)

        # =================================================================
        # Register File Update
        # =================================================================

        with m.If(self.in_load_weight):
            m.d.sync += weight.eq(self.in_data)
        with m.Elif(self.in_load_bias):
            m.d.sync += [
                bias.eq(self.in_data),
                acc.eq(self.in_data),  # sign-extended seed
            ]
        with m.Elif(self.in_compute & self.in_valid):
            m.d.sync += acc.eq(accumulated)

        # =================================================================
        # Delay Slot (registered pass-through to the next lane)
        # =================================================================

        with m.If(self.in_valid):
            m.d.sync += self.out_act.eq(self.in_act)
        with m.Else():
            m.d.sync += self.out_act.eq(0)
        m.d.sync += self.out_valid.eq(self.in_valid)

        # =================================================================
        # Read-back
        # =================================================================

        m.d.comb += [
            self.out_weight.eq(weight),
            self.out_bias.eq(bias),
            self.out_acc.eq(acc),
        ]

        return m
