"""
PawCare scheduling engine

Appointment booking, status lifecycle and emergency reassignment between
pet owners (clients) and doctors (providers).
"""

__version__ = "0.1.0"
