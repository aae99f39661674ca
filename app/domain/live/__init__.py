"""
Live streaming domain logic.

Includes:
- session: Live session registry keyed by channel name.
"""
