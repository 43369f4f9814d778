"""
Request analytics.

Responsibilities:
- Record one event per date-suggestion request (hits, misses and failures).
- Summarise cache efficiency, degraded sources and failures for operators.
"""
