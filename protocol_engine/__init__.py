"""
Protocol Engine - Trigger/action combat engine

Fighters are driven by prioritized trigger-action pairs ("protocols")
evaluated every tick. The engine provides:
- Trigger and action catalogs
- First-match-wins protocol resolution per core
- Damage-type resolution against shields, armor and HP
- Stacking status effects
- Mastery tracking and run rewards
"""

__version__ = "0.1.0"
