"""QBO API adapters.

Keep these modules small and testable:
- No web framework request/response objects
- Criteria/query building stays pure (no IO)
- IO lives in `qbo_client` only
"""
