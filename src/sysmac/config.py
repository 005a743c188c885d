"""
Sysmac Configuration Module

This module defines the configuration dataclass for the systolic MAC array
generator. All hardware parameters are specified here and propagate through
the design.

The array computes, per lane:

    out = weight * activation + bias

with the weight and bias held stationary in each PE while the activation
stream is staged through a delay chain. Parameters are fixed at elaboration
time; nothing here can be changed while the hardware is running.
"""

from dataclasses import dataclass


@dataclass
class MacArrayConfig:
    """
    Configuration for the systolic MAC array.

    Example:
        >>> config = MacArrayConfig()
        >>> config.compute_cycles
        7
        >>> config.job_cycles
        19
    """

    # =========================================================================
    # Array Dimensions
    # =========================================================================
    num_lanes: int = 4
    """Number of processing elements (MAC lanes) in the array."""

    # =========================================================================
    # Data Types (bit widths)
    # =========================================================================
    data_bits: int = 8
    """Bit width of weights, biases and activations (signed, INT8)."""

    acc_bits: int = 16
    """Bit width of the per-lane accumulator (signed, wraps on overflow)."""

    bus_bits: int = 8
    """Width of the external input bus and of each result byte."""

    # =========================================================================
    # Computed Properties
    # =========================================================================
    @property
    def lane_bits(self) -> int:
        """Bits needed to address a single lane."""
        return max(1, (self.num_lanes - 1).bit_length())

    @property
    def product_bits(self) -> int:
        """Width of a full-precision weight * activation product."""
        return 2 * self.data_bits

    @property
    def load_cycles(self) -> int:
        """Cycles spent in each of LOAD_W and LOAD_B (one per lane)."""
        return self.num_lanes

    @property
    def drain_cycles(self) -> int:
        """Cycles spent in DRAIN (one accumulator per cycle)."""
        return self.num_lanes

    @property
    def compute_cycles(self) -> int:
        """
        Cycles spent in COMPUTE.

        num_lanes data beats plus num_lanes - 1 cycles of pipeline fill, so the
        last lane still sees num_lanes genuine activation samples.
        """
        return 2 * self.num_lanes - 1

    @property
    def phase_bits(self) -> int:
        """Width of the COMPUTE phase counter."""
        return max(1, (self.compute_cycles - 1).bit_length())

    @property
    def job_cycles(self) -> int:
        """Cycles in one LOAD_W -> LOAD_B -> COMPUTE -> DRAIN job."""
        return 2 * self.load_cycles + self.compute_cycles + self.drain_cycles

    def __post_init__(self):
        """Validate configuration parameters."""
        assert self.num_lanes > 0, "num_lanes must be positive"
        assert self.data_bits > 0, "data_bits must be positive"
        assert self.data_bits <= self.bus_bits, "data_bits must fit on the input bus"
        assert self.acc_bits >= self.product_bits, (
            "acc_bits should be >= 2 * data_bits so a single product never overflows"
        )
        assert self.acc_bits <= 2 * self.bus_bits, (
            "acc_bits must fit in the two-byte result output"
        )


# Pre-defined configurations
DEFAULT_CONFIG = MacArrayConfig()
"""4-lane INT8 x INT8 -> INT16 array."""

TINY_CONFIG = MacArrayConfig(num_lanes=2, data_bits=4, acc_bits=8)
"""Two-lane, narrow configuration for fast simulation of wraparound corners."""
