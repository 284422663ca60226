"""
LuxRent Core Primitives
========================
Engine-agnostic value helpers shared by the booking engines.

Primitives:
    money   — integer-cent amounts, half-up rate application
"""
