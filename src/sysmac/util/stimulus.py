"""
Bus stimulus for one accelerator job.

A job is the fixed sequence LOAD_W -> LOAD_B -> COMPUTE -> DRAIN. The input
bus is time-multiplexed by the controller, so a job is fully described by
the byte presented on `data_in` during each of its cycles:

    cycle:   0 .. L-1     L .. 2L-1    2L .. 2L+C-1        2L+C .. 2L+C+L-1
    bus:     weights      biases       activations         don't care (0)

where L = num_lanes and C = compute_cycles.
"""

from collections.abc import Sequence

from ..config import DEFAULT_CONFIG, MacArrayConfig
from .bits import to_signed, to_unsigned


def normalize_vector(
    name: str, values: Sequence[int], length: int, bits: int
) -> list[int]:
    """
    Validate a job operand vector and return it as signed integers.

    Values may be given either signed (-128..127) or as raw bus patterns
    (0..255 for 8-bit data); 0xFF and -1 are the same operand.

    Raises:
        ValueError: wrong length or a value that does not fit in `bits` bits.
    """
    values = [int(v) for v in values]
    if len(values) != length:
        raise ValueError(f"{name} must have {length} entries, got {len(values)}")
    low = -(1 << (bits - 1))
    high = (1 << bits) - 1
    for i, v in enumerate(values):
        if not low <= v <= high:
            raise ValueError(f"{name}[{i}] = {v} does not fit in {bits} bits")
    return [to_signed(v, bits) for v in values]


def job_stimulus(
    weights: Sequence[int],
    biases: Sequence[int],
    activations: Sequence[int],
    config: MacArrayConfig = DEFAULT_CONFIG,
) -> list[int]:
    """
    Build the per-cycle `data_in` bytes for one job, starting at LOAD_W.

    Returns:
        List of job_cycles unsigned bus values.
    """
    cfg = config
    w = normalize_vector("weights", weights, cfg.num_lanes, cfg.data_bits)
    b = normalize_vector("biases", biases, cfg.num_lanes, cfg.data_bits)
    x = normalize_vector("activations", activations, cfg.compute_cycles, cfg.data_bits)

    stream = [to_unsigned(v, cfg.data_bits) for v in w + b + x]
    stream += [0] * cfg.drain_cycles
    return stream
