"""
Assessment composition boundary for glycorisk.

Design intent:
- Compose the leaf-first pipeline into single and bulk assessments.
- Surface unknown patients as the only fatal error.
"""
