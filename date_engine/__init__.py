"""
Date-suggestion service.

Responsibilities:
- Aggregate nearby venues and public events from upstream providers.
- Rank candidates and assemble priced date packages across budget tiers.
- Propose conflict-free time slots from a partner's shareable calendar.
"""
