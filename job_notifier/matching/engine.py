"""Match engine: decides which candidates a job posting should notify.

Rules:
1. A candidate with no saved filters is not subscribed and never matches.
2. Otherwise the candidate matches if ANY saved filter matches (OR).
3. A filter matches if ALL of its present criteria pass (AND); an absent or
   empty criterion list passes trivially.
4. Company and role compare case-insensitively for exact equality against
   any listed value; keywords match when any listed keyword is a
   case-insensitive substring of the job description. Blank entries are not
   skipped: a blank company or role never equals a real one, and a blank
   keyword is a substring of every description.

Everything here is pure: no I/O and no logging. The publisher is responsible
for whitespace normalization of company and role; this module only lower-cases.
"""

from typing import Iterable, List, Optional

from job_notifier.domain.models import Candidate, JobPostingEvent, NotificationSettingInput

from .models import MatchResult


def _present_terms(terms: Optional[List[str]]) -> List[str]:
    """Lower-cased criterion values; blank entries are kept and compared like any other."""
    return [term.lower() for term in terms or []]


def setting_matches(setting: NotificationSettingInput, job: JobPostingEvent) -> bool:
    """Check a single notification filter against a job.

    Args:
        setting: Filter criteria (a NotificationSetting or bare input)
        job: Job posting to test

    Returns:
        True if every present criterion passes
    """
    companies = _present_terms(setting.company_names)
    if companies and job.company_name.lower() not in companies:
        return False

    roles = _present_terms(setting.job_roles)
    if roles and job.role.lower() not in roles:
        return False

    keywords = _present_terms(setting.keywords)
    if keywords:
        description = job.description.lower()
        if not any(keyword in description for keyword in keywords):
            return False

    return True


def evaluate(candidate: Candidate, job: JobPostingEvent) -> MatchResult:
    """Evaluate every saved filter of a candidate against a job."""
    matched_ids = [
        setting.id
        for setting in candidate.notification_settings
        if setting_matches(setting, job)
    ]
    return MatchResult(
        candidate_id=candidate.id,
        is_match=bool(matched_ids),
        matched_setting_ids=matched_ids,
    )


def matches(candidate: Candidate, job: JobPostingEvent) -> bool:
    """Return True if the job should be delivered to the candidate's mailbox."""
    if not candidate.notification_settings:
        return False
    return any(setting_matches(setting, job) for setting in candidate.notification_settings)


def find_matches(candidates: Iterable[Candidate], job: JobPostingEvent) -> List[MatchResult]:
    """Evaluate many candidates and keep only the matches, in input order."""
    results = []
    for candidate in candidates:
        result = evaluate(candidate, job)
        if result.is_match:
            results.append(result)
    return results
