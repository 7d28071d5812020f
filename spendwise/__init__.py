"""
Spend Wise - Source Package

A personal finance tracker backend: a small REST API over a flat JSON
store, with token sessions and AI-assisted receipt reading.

DESIGN PRINCIPLES:
1. One JSON document is the whole database
2. AI providers fail over; an upload is never lost
3. Every step is auditable
"""

__version__ = "6.0.0"
__author__ = "Spend Wise Team"
