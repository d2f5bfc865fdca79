"""
Risk factor projection boundary for glycorisk.

Design intent:
- Normalize heterogeneous raw records into one immutable profile.
- Classify free text through an explicit keyword dictionary.
- Treat missing optional input as "not evaluated", never as zero risk.
"""
