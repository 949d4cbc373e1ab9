"""
Identity veil for candidate disclosure.

Clients see a candidate through an anonymized stand-in (label, skills,
experience range, salary band, broad region) until the candidate opts
in to an interview. ``reveal`` is the only code path that copies
contact data into client-visible state.
"""

import hashlib
from datetime import datetime
from typing import Callable, Optional

from talenthub.core.exceptions import ConsentRequired, NotFound
from talenthub.data.models import (
    AnonymizedIdentity,
    CandidateContact,
    InterviewNegotiation,
    Submission,
)
from talenthub.data.repositories import (
    CandidateDirectory,
    SubmissionRepository,
    get_candidate_directory,
    get_submission_repository,
)
from talenthub.utils.clock import utcnow
from talenthub.utils.constants import (
    DEFAULT_REGION,
    EXPERIENCE_BANDS,
    REGION_KEYWORDS,
    SALARY_BAND_WIDTH,
)
from talenthub.utils.logger import LoggerMixin, audit_log


# =============================================================================
# Banding Helpers
# =============================================================================


def anonymous_label(submission: Submission) -> str:
    """
    Build a stable pseudonym such as ``"BA-3F9C01AE"``.

    The prefix comes from the job title, the suffix from a digest of the
    submission ID, so the label is deterministic but carries no
    candidate data.
    """
    prefix = (submission.job_title or "")[:2].upper() or "XX"
    digest = hashlib.sha1(str(submission.id).encode("utf-8")).hexdigest()[:8].upper()
    return f"{prefix}-{digest}"


def experience_range(years: Optional[float]) -> str:
    """Map years of experience to a coarse range."""
    if years is None or years < 0:
        return "Not specified"
    for upper, label in EXPERIENCE_BANDS:
        if years <= upper:
            return label
    return "15+ years"


def salary_band(expected_salary: Optional[int]) -> str:
    """Round an expected salary to a band like ``"70-80k"``."""
    if not expected_salary or expected_salary <= 0:
        return "Not disclosed"
    lower = (expected_salary // SALARY_BAND_WIDTH) * SALARY_BAND_WIDTH
    upper = lower + SALARY_BAND_WIDTH
    return f"{lower // 1000}-{upper // 1000}k"


def broad_region(city: Optional[str]) -> str:
    """Reduce a city to a broad region."""
    if not city:
        return DEFAULT_REGION
    lowered = city.lower()
    for region, keywords in REGION_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return region
    return DEFAULT_REGION


# =============================================================================
# Identity Veil
# =============================================================================


class IdentityVeil(LoggerMixin):
    """
    Anonymizes candidates and gates disclosure on consent.

    Usage:
        veil = IdentityVeil()
        anon = veil.anonymize(submission)
        contact = veil.reveal(negotiation)  # after opt-in
    """

    def __init__(
        self,
        submissions: Optional[SubmissionRepository] = None,
        directory: Optional[CandidateDirectory] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._submissions = submissions or get_submission_repository()
        self._directory = directory or get_candidate_directory()
        self._clock = clock

    def anonymize(self, submission: Submission) -> AnonymizedIdentity:
        """
        Project a submission to its client-facing anonymous form.

        Pure: reads only non-identifying profile fields and never the
        candidate contact record.
        """
        profile = submission.profile
        return AnonymizedIdentity(
            label=anonymous_label(submission),
            submission_id=str(submission.id),
            job_title=submission.job_title,
            match_score=submission.match_score,
            skills=list(profile.skills),
            experience_range=experience_range(profile.experience_years),
            salary_band=salary_band(profile.expected_salary),
            region=broad_region(profile.city),
            availability=profile.availability,
        )

    def reveal(self, negotiation: InterviewNegotiation) -> CandidateContact:
        """
        Disclose the candidate's contact details to the client.

        Args:
            negotiation: Negotiation carrying the candidate's consent

        Returns:
            The disclosed contact. Repeated calls return the stored
            contact and leave ``revealed_at`` untouched.

        Raises:
            ConsentRequired: If consent or the selected slot is missing
            NotFound: If the submission or candidate record is missing
        """
        if not negotiation.candidate_consent or negotiation.selected_slot is None:
            raise ConsentRequired(negotiation.id)

        submission = self._submissions.get_by_id(negotiation.submission_id)
        if submission is None:
            raise NotFound("Submission", negotiation.submission_id)

        if submission.identity_revealed and submission.revealed_contact is not None:
            return submission.revealed_contact

        contact = self._directory.get_contact(submission.candidate_id)
        if contact is None:
            raise NotFound("Candidate", submission.candidate_id)

        revealed_at = self._clock()
        updated = self._submissions.reveal_identity(submission.id, contact, revealed_at)
        if updated is None:
            # Another worker revealed first; return what it stored
            current = self._submissions.get_by_id(submission.id)
            if current is not None and current.revealed_contact is not None:
                return current.revealed_contact
            return contact

        audit_log(
            "identity_revealed",
            {
                "submission_id": str(submission.id),
                "negotiation_id": str(negotiation.id),
                "client_id": submission.client_id,
                "revealed_at": revealed_at.isoformat(),
            },
            audit_type="CONSENT",
        )
        self.logger.info(f"Identity revealed for submission {submission.id}")
        return contact


# Singleton instance
_identity_veil: Optional[IdentityVeil] = None


def get_identity_veil() -> IdentityVeil:
    """Get the identity veil singleton instance."""
    global _identity_veil
    if _identity_veil is None:
        _identity_veil = IdentityVeil()
    return _identity_veil
