"""
Scoring boundary for glycorisk.

Design intent:
- Apply a declarative, ordered rule catalogue to a profile.
- Keep every point traceable to exactly one fired rule.
- Map clamped scores to level, percentage and urgency with inclusive bands.
"""
