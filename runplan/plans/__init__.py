"""Plans module - normalization of generated training plans.

This module provides:
- Plan, week, session and block models
- Coercion of loosely shaped backend output
- Periodization, variation and race-week rules
- Training context built from an activity history
"""
