"""
ProgramMatcher class encapsulates the filter -> score -> rank pipeline that
matches funding programs against an applicant organization.

Scoring breakdown (0-100):
- Industry/keyword alignment: 30
- TRL compatibility: 20
- Organization type: 20
- R&D experience / collaboration: 15
- Deadline proximity: 15
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import pandas as pd

from ..config import MatchingSettings, get_settings
from .data_models import (
    EligibilityLevel,
    EligibilityResult,
    FundingProgram,
    MatchScore,
    Organization,
    OrganizationType,
    ProgramStatus,
    ScoreBreakdown,
)
from .dates import days_until, is_past, resolve_now
from .eligibility import check_eligibility
from .keywords import score_industry_keywords
from .normalizer import normalize_title_for_dedup
from .taxonomy import relevance, resolve_sector
from .trl import score_trl

logger = logging.getLogger(__name__)

# Titles reserved for tertiary hospitals / physician-scientists.
MEDICAL_INSTITUTION_MARKERS = ("의사과학자", "상급종합병원", "M.D.-Ph.D.", "의료법")

MATCH_RECORD_COLUMNS = [
    "program_id", "program_title", "score",
    "industry_score", "trl_score", "type_score", "rd_score", "deadline_score",
    "reasons", "eligibility_level", "needs_manual_review",
]


@dataclass(frozen=True)
class MatchOptions:
    """Per-call options for program matching.

    include_expired switches to historical mode: expired programs are kept as
    reference material and the live-only filters are relaxed.
    """
    include_expired: bool = False
    minimum_score: Optional[int] = None
    deduplicate: bool = False
    now: Optional[datetime] = None


def deduplicate_programs(programs: Iterable[FundingProgram]) -> List[FundingProgram]:
    """
    Collapse re-posted announcements into one program per (agency, normalized title).

    Within a group the program with a deadline wins, then one with a budget,
    then the earliest scraped.
    """
    groups: Dict[str, List[FundingProgram]] = {}
    for program in programs:
        key = f"{program.agency_id}|{normalize_title_for_dedup(program.title)}"
        groups.setdefault(key, []).append(program)

    def preference(program: FundingProgram):
        scraped = program.scraped_at
        return (
            program.deadline is None,
            not program.budget_amount,
            scraped is None,
            scraped.timestamp() if scraped else 0.0,
        )

    return [min(group, key=preference) for group in groups.values()]


def results_to_frame(results: Iterable) -> pd.DataFrame:
    """Flatten match (or partner match) results into a DataFrame, one row per result."""
    records = [result.to_record() for result in results]
    if not records:
        return pd.DataFrame(columns=MATCH_RECORD_COLUMNS)
    return pd.DataFrame.from_records(records)


class ProgramMatcher:
    """Handles program filtering, scoring and ranking for one organization at a time."""

    def __init__(self, settings: Optional[MatchingSettings] = None):
        """Initialize matcher; settings default to the environment configuration."""
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def check_filters(self, organization: Organization, program: FundingProgram,
                      options: MatchOptions, now: datetime) -> Optional[str]:
        """Return the code of the first hard filter the program fails, or None."""
        historical = options.include_expired

        if not historical:
            if program.status != ProgramStatus.ACTIVE:
                return "FILTER_INACTIVE_PROGRAM"
            if program.deadline and is_past(program.deadline, now):
                return "FILTER_DEADLINE_PASSED"

        if program.is_consolidated_announcement:
            return "FILTER_CONSOLIDATED_ANNOUNCEMENT"

        if not historical and program.target_type and organization.type not in program.target_type:
            return "FILTER_TARGET_TYPE"

        if program.allowed_business_structures:
            if organization.business_structure not in program.allowed_business_structures:
                return "FILTER_BUSINESS_STRUCTURE"

        org_trl = organization.matching_trl
        if program.has_trl_range and org_trl:
            low, high = program.min_trl, program.max_trl
            if historical:
                margin = self.settings.historical_trl_margin
                low, high = max(1, low - margin), min(9, high + margin)
            if org_trl < low or org_trl > high:
                return "FILTER_TRL_RANGE"

        if any(marker in program.title for marker in MEDICAL_INSTITUTION_MARKERS):
            if organization.type != OrganizationType.RESEARCH_INSTITUTE:
                return "FILTER_MEDICAL_INSTITUTION_ONLY"

        if not historical and organization.industry_sector and program.category:
            org_sector = resolve_sector(organization.industry_sector)
            program_sector = resolve_sector(program.category)
            if not org_sector or not program_sector:
                return "FILTER_INDUSTRY_UNRESOLVED"
            score = relevance(org_sector, program_sector, self.settings.default_relevance)
            if score < self.settings.industry_relevance_threshold:
                return "FILTER_INDUSTRY_MISMATCH"

        return None

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def score_organization_type(self, organization: Organization, program: FundingProgram,
                                reasons: List[str]) -> int:
        if not program.target_type:
            return 10
        if organization.type in program.target_type:
            reasons.append("TYPE_MATCH")
            return 20
        return 0

    def score_rd_experience(self, organization: Organization, reasons: List[str]) -> int:
        score = 0
        if organization.rd_experience:
            score += 10
            reasons.append("RD_EXPERIENCE")

        count = organization.collaboration_count or 0
        if count == 1:
            score += 2
            reasons.append("COLLABORATION_LIMITED")
        elif 2 <= count <= 3:
            score += 4
            reasons.append("COLLABORATION_MODERATE")
        elif count >= 4:
            score += 5
            reasons.append("COLLABORATION_EXTENSIVE")
        return min(15, score)

    def score_deadline(self, program: FundingProgram, reasons: List[str],
                       now: Optional[datetime] = None) -> int:
        days = days_until(program.deadline, now)
        if days is None:
            return 5
        if days < 0:
            return 0
        if days <= 7:
            reasons.append("DEADLINE_URGENT")
            return 15
        if days <= 30:
            reasons.append("DEADLINE_SOON")
            return 12
        if days <= 60:
            reasons.append("DEADLINE_MODERATE")
            return 8
        reasons.append("DEADLINE_FAR")
        return 5

    def calculate_match_score(self, organization: Optional[Organization],
                              program: Optional[FundingProgram],
                              now: Optional[datetime] = None) -> MatchScore:
        """Score a single program for an organization; no filtering is applied."""
        if organization is None or program is None:
            return MatchScore(
                program_id=program.id if program else "",
                program=program,
                score=0,
                breakdown=ScoreBreakdown(),
            )

        reasons: List[str] = []

        industry = score_industry_keywords(organization, program, self.settings.default_relevance)
        reasons.extend(industry.reasons)

        trl = score_trl(organization, program)
        reasons.extend(trl.reasons)

        type_score = self.score_organization_type(organization, program, reasons)
        rd_score = self.score_rd_experience(organization, reasons)
        deadline_score = self.score_deadline(program, reasons, now)

        breakdown = ScoreBreakdown(
            industry_score=industry.score,
            trl_score=trl.score,
            type_score=type_score,
            rd_score=rd_score,
            deadline_score=deadline_score,
        )
        return MatchScore(
            program_id=program.id,
            program=program,
            score=max(0, breakdown.total),
            breakdown=breakdown,
            reasons=reasons,
            keyword_details=industry.details(),
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def generate_matches(self, organization: Optional[Organization],
                         programs: Optional[Iterable[FundingProgram]],
                         limit: Optional[int] = None,
                         options: Optional[MatchOptions] = None) -> List[MatchScore]:
        """
        Filter, score and rank programs for an organization.

        Args:
            organization: Applicant profile
            programs: Candidate programs
            limit: Maximum number of matches returned (default from settings)
            options: Mode and threshold options

        Returns:
            Matches sorted fully-eligible first, then by score descending
        """
        options = options or MatchOptions()
        programs = list(programs or [])
        if organization is None or not programs:
            return []

        limit = self.settings.default_limit if limit is None else limit
        minimum_score = (self.settings.minimum_score if options.minimum_score is None
                         else options.minimum_score)
        now = resolve_now(options.now)

        if options.deduplicate:
            before = len(programs)
            programs = deduplicate_programs(programs)
            if len(programs) < before:
                logger.debug("Deduplicated %d programs into %d", before, len(programs))

        matches: List[MatchScore] = []
        rejected = 0
        for program in programs:
            rejection = self.check_filters(organization, program, options, now)
            if rejection is None:
                eligibility = check_eligibility(program, organization, now)
                if eligibility.level == EligibilityLevel.INELIGIBLE:
                    rejection = "FILTER_INELIGIBLE"
            if rejection is not None:
                rejected += 1
                logger.debug("Program %s rejected for organization %s: %s",
                             program.id, organization.id, rejection)
                continue

            match = self.calculate_match_score(organization, program, now)
            self._attach_eligibility(match, eligibility)
            matches.append(match)

        qualified = [m for m in matches if m.score >= minimum_score]
        qualified.sort(key=lambda m: (m.eligibility_level != EligibilityLevel.FULLY_ELIGIBLE, -m.score))

        logger.info(
            "Matched organization %s: %d candidates, %d filtered, %d scored, %d above %d points",
            organization.id, len(programs), rejected, len(matches), len(qualified), minimum_score,
        )
        return qualified[:max(0, limit)]

    @staticmethod
    def _attach_eligibility(match: MatchScore, eligibility: EligibilityResult) -> None:
        match.eligibility_level = eligibility.level
        match.eligibility_details = eligibility


def generate_matches(organization: Optional[Organization],
                     programs: Optional[Iterable[FundingProgram]],
                     limit: Optional[int] = None,
                     options: Optional[MatchOptions] = None) -> List[MatchScore]:
    """Run the matching pipeline with a matcher built from the environment settings."""
    return ProgramMatcher().generate_matches(organization, programs, limit, options)


def calculate_match_score(organization: Optional[Organization],
                          program: Optional[FundingProgram],
                          now: Optional[datetime] = None) -> MatchScore:
    return ProgramMatcher().calculate_match_score(organization, program, now)
