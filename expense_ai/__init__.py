"""
ExpenseTracker AI - Insight Orchestrator

Turns a user's expense records into spending insights, free-text
financial answers and category suggestions using interchangeable
LLM providers.

DESIGN PRINCIPLES:
1. The caller always gets insights - AI first, rules as the floor
2. Providers are swappable - orchestration never names a provider
3. Failures are typed, never matched by string
4. Every provider attempt is auditable
5. No state survives a request
"""

__version__ = "1.0.0"
__author__ = "ExpenseTracker AI Team"
