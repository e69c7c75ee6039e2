"""
slotengine - compute bookable meeting slots for event types.
"""

__version__ = "0.1.0"
