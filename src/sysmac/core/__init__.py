"""
Core datapath components of the systolic MAC array.

This module contains the fundamental building blocks:
- PE: Processing Element (register file + MAC + delay slot)
- PEChain: Row of PEs joined by the systolic delay chain
- OutputMux: Drain-phase selector exposing one accumulator as two bytes
"""

from .output_mux import OutputMux
from .pe import PE
from .pe_chain import PEChain

__all__ = ["PE", "PEChain", "OutputMux"]
