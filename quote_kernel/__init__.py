"""
Quote Kernel

Quote lifecycle and revenue-conversion engine for a multi-tenant
construction management platform:
- Money-accurate quote figures (flat tax rate and discount)
- Explicit status transition table with optimistic preconditions
- Atomic quote acceptance and project conversion
- Read-only conversion analytics
"""

__version__ = "0.1.0"
