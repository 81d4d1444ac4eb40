"""
Flash-crash grid strategy.

Keeps a geometric ladder of deep limit bids resting on the exchange and a
local book of those bids reconciled against exchange order events.
"""

__version__ = "0.1.0"
