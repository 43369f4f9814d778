"""
Date-suggestion engine.

Responsibilities:
- Validate the request and short-circuit repeated requests through the cache.
- Merge venue and event candidates into one deterministic ranking.
- Propose future time slots that avoid the partner's shareable busy blocks.
- Build cheap / mid-range / splurge packages with itemized cost estimates.
"""
