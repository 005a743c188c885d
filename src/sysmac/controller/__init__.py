"""
Controller for the systolic MAC array.

- MacController: Fixed-schedule IDLE/LOAD_W/LOAD_B/COMPUTE/DRAIN FSM
- ControllerState: FSM phase encoding
- BusDestination / bus_destination: Input bus routing, a pure function of state
"""

from .fsm import BusDestination, ControllerState, MacController, bus_destination

__all__ = ["MacController", "ControllerState", "BusDestination", "bus_destination"]
