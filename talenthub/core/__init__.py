"""
Core business logic modules for TalentHub.

Submodules:
- identity: Candidate anonymization and consent-gated disclosure
- negotiation: Interview negotiation state machine
- pipeline: Submission stage pipeline
- urgency: Action queue urgency and health scoring
- exceptions: Domain error types
"""
