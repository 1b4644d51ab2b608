"""
Test suite for the Healthbook services.

Integration tests run the five services in-process; unit tests cover the
slot computation and message building.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
