"""
bookingslots - cross-timezone appointment availability for professional bookings.
"""

__version__ = "0.1.0"
