"""
Plant Buddy
===========
Device-state synchronization for the Plant Buddy smart plant controller:
polls the shared device record, reconciles it into local UI state, guards
actuator commands and maps slider gestures to intensity values.
"""

__version__ = "1.0.0"
