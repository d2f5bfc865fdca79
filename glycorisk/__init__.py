"""
glycorisk package.

Design intent:
- Turn a patient's raw clinical record into an explainable diabetes risk assessment.
- Keep domain modules (profile/scoring/plan/assessment) independent from transport.
"""
