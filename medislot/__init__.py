"""
MediSlot

A FastAPI service for doctor availability, conflict-free slot booking,
appointment lifecycle management and prescriptions.
"""

__version__ = "1.0.0"
