"""
SpendWise - Source Package

The server half of a student budgeting app: token-gated endpoints that
turn transaction snapshots into spending insights and PDF reports.

DESIGN PRINCIPLES:
1. The managed backend owns all data; the server owns none
2. Every number is computed locally before any LLM sees it
3. Provider failures degrade to an offline summary, never to an error
4. Every step is auditable
5. External clients are injected, never global
"""

__version__ = "1.0.0"
__author__ = "SpendWise Team"
