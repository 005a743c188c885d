"""
Sysmac - A four-lane weight-stationary systolic MAC array in Amaranth HDL.

Each lane computes `out = weight * activation + bias` over a fixed
LOAD_W / LOAD_B / COMPUTE / DRAIN schedule driven by an 8-bit input bus,
and results are read back as two bytes per lane.
"""

from .config import DEFAULT_CONFIG, MacArrayConfig
from .controller.fsm import BusDestination, ControllerState, bus_destination
from .model import SystolicMacModel, expected_results
from .top import SystolicMac, TinyTapeoutTop

__version__ = "0.1.0"
__all__ = [
    "MacArrayConfig",
    "DEFAULT_CONFIG",
    "ControllerState",
    "BusDestination",
    "bus_destination",
    "SystolicMac",
    "TinyTapeoutTop",
    "SystolicMacModel",
    "expected_results",
    "__version__",
]
