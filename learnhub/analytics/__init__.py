"""Student analytics and calendar.

Provides:
- Live unit progress
- Study streak and activity histogram
- Daily and monthly lesson calendar
"""
