"""
StackRx - Deterministic Supplement Prescription Engine

Rule-based pipeline that turns a patient profile, a goal and a budget tier
into a dosed, time-scheduled, safety-validated supplement stack.

Same input -> same output. No ML, no randomness.
"""

__version__ = "1.0.0"
