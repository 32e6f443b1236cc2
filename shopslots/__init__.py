"""
shopslots - appointment slot availability for a booking marketplace.
"""

__version__ = "0.1.0"
