"""
Simulator Module
================
Synthetic ride recordings for demos and tests.
"""

from fitmerge.simulator.activity_simulator import (
    ActivitySimulator,
    RideConfiguration,
    simulate_pair
)

__all__ = [
    'ActivitySimulator',
    'RideConfiguration',
    'simulate_pair',
]
