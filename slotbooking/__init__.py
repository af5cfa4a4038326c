"""
slotbooking - appointment slot availability and booking.
"""

__version__ = "0.1.0"
