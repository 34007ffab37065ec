"""
Test suite for MediSlot.

Covers slot generation, schedule validation, booking conflicts, the
appointment lifecycle and prescriptions, plus the HTTP surface.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
