"""
Domain layer containing core business logic and domain services.

Submodules:
- live: In-memory live session registry (viewers, likes, comments).
- rtc: RTC privilege token encoding, signing and verification.
"""
