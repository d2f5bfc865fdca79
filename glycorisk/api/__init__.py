"""
API orchestration boundary for glycorisk.

Design intent:
- Expose thin, typed endpoints for single, bulk and cohort assessments.
- Keep request validation explicit and failure modes predictable.
- Orchestrate modules without embedding scoring logic in routers.
"""
