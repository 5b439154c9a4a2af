"""
Rate limiting package for the CRPT client.

Holds the fixed-window gate that caps document submissions per window and
serializes them.
"""

from .gate import RateLimitedGate
