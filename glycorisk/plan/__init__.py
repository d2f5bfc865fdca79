"""
Recommendation planning boundary for glycorisk.

Design intent:
- Derive ordered guidance and the next screening date from level and profile.
- Keep outputs deterministic for a fixed input.
"""
