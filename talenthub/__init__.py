"""
TalentHub - interview negotiation and disclosure core.

Consent-gated interview scheduling between clients and anonymized
candidates, the submission pipeline it feeds, and the urgency-ranked
action queue built on top of both.
"""

__version__ = "0.1.0"
__app_name__ = "TalentHub"
