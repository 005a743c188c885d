"""
Two's-complement helpers shared by the reference model, tests and scripts.

The hardware stores every value in fixed-width two's-complement registers.
These helpers convert between Python integers and those bit patterns and
split/join the two-byte result bus.
"""


def to_unsigned(value: int, bits: int) -> int:
    """Return the `bits`-wide two's-complement bit pattern of `value`."""
    return value & ((1 << bits) - 1)


def to_signed(value: int, bits: int) -> int:
    """Interpret the low `bits` bits of `value` as a signed integer."""
    value = to_unsigned(value, bits)
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


def wrap_signed(value: int, bits: int) -> int:
    """Wrap an arbitrary integer into the signed `bits`-wide range (no saturation)."""
    return to_signed(value, bits)


def split_word(value: int, byte_bits: int = 8) -> tuple[int, int]:
    """Split a signed result into its (low, high) output bytes."""
    raw = to_unsigned(value, 2 * byte_bits)
    return raw & ((1 << byte_bits) - 1), raw >> byte_bits


def join_bytes(lo: int, hi: int, byte_bits: int = 8) -> int:
    """Combine low/high output bytes into a signed result."""
    raw = to_unsigned(lo, byte_bits) | (to_unsigned(hi, byte_bits) << byte_bits)
    return to_signed(raw, 2 * byte_bits)
