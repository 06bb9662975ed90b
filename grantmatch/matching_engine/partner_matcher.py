"""
PartnerMatcher class contains the complementary organization-to-organization
scoring used for consortium formation.

Unlike program matching, TRL gaps are rewarded: an early-stage research
institute pairs well with a commercialization-ready company.

Scoring breakdown (0-100):
- Complementary TRL fit: 40
- Industry/technology alignment: 30
- Organization scale compatibility: 15
- Candidate R&D experience: 15
"""

import logging
from typing import Iterable, List, Optional

from ..config import MatchingSettings, get_settings
from .data_models import (
    EmployeeCountRange,
    Organization,
    OrganizationStatus,
    OrganizationType,
    PartnerMatchResult,
    PartnerScoreBreakdown,
    RevenueRange,
)
from .normalizer import keywords_overlap, normalize_keyword, normalize_keywords
from .taxonomy import relevance, resolve_sector

logger = logging.getLogger(__name__)

_EMPLOYEE_ORDER = list(EmployeeCountRange)
_REVENUE_ORDER = [r for r in RevenueRange if r != RevenueRange.NONE]

_EXPLANATION_PHRASES = [
    (("PERFECT_TRL_COMPLEMENT_EARLY", "PERFECT_TRL_COMPLEMENT_COMMERCIAL",
      "PERFECT_TRL_COMPLEMENT_COMMERCIALIZATION"), "완벽한 TRL 상호보완 관계"),
    (("TECHNOLOGY_MATCH",), "기술 역량 일치"),
    (("INDUSTRY_SECTOR_MATCH",), "산업 분야 일치"),
    (("EXTENSIVE_COLLABORATION_HISTORY",), "풍부한 협력 경험"),
]
DEFAULT_PARTNER_EXPLANATION = "컨소시엄 파트너로서 적합한 조직입니다."


def is_adjacent_scale(a: EmployeeCountRange, b: EmployeeCountRange) -> bool:
    return abs(_EMPLOYEE_ORDER.index(a) - _EMPLOYEE_ORDER.index(b)) == 1


def is_adjacent_revenue(a: RevenueRange, b: RevenueRange) -> bool:
    if a == RevenueRange.NONE or b == RevenueRange.NONE:
        return False
    return abs(_REVENUE_ORDER.index(a) - _REVENUE_ORDER.index(b)) == 1


def _normalize_each(texts: Iterable[str]) -> List[str]:
    """Normalize every desired entry; repeated entries each count towards the match total."""
    return [k for k in (normalize_keyword(t) for t in texts) if k]


def _count_overlaps(wanted: List[str], offered: List[str]) -> int:
    """Number of wanted keywords that overlap at least one offered keyword."""
    return sum(1 for w in wanted if any(keywords_overlap(w, o) for o in offered))


class PartnerMatcher:
    """Handles partner-candidate scoring and ranking."""

    def __init__(self, settings: Optional[MatchingSettings] = None):
        self.settings = settings or get_settings()

    def score_complementary_trl(self, seeker: Organization, candidate: Organization,
                                reasons: List[str]) -> int:
        """Complementary TRL fit (0-40); gaps between partners are rewarded."""
        score = 0

        if seeker.type == OrganizationType.COMPANY and candidate.type == OrganizationType.RESEARCH_INSTITUTE:
            target = seeker.target_partner_trl
            company_now = seeker.technology_readiness_level
            institute_now = candidate.technology_readiness_level
            institute_expected = candidate.expected_trl_level

            if target and target <= 4 and institute_now and institute_now <= 4:
                score = self._graded_complement(abs(target - institute_now), "EARLY", reasons)
            elif target and target >= 7 and institute_expected and institute_expected >= 7:
                score = self._graded_complement(abs(target - institute_expected), "COMMERCIAL", reasons)
            elif company_now and 4 <= company_now <= 6 and institute_now and institute_now <= 3:
                score = 32
                reasons.append("TRL_GAP_INNOVATION_OPPORTUNITY")
            elif company_now and institute_now:
                gap = abs(company_now - institute_now)
                if 3 <= gap <= 5:
                    score = 20
                    reasons.append("TRL_GAP_MODERATE")
                elif gap <= 2:
                    score = 15
                    reasons.append("TRL_SIMILAR")

        elif seeker.type == OrganizationType.RESEARCH_INSTITUTE and candidate.type == OrganizationType.COMPANY:
            institute_now = seeker.technology_readiness_level
            institute_expected = seeker.expected_trl_level
            company_now = candidate.technology_readiness_level
            company_target = candidate.target_partner_trl

            if institute_now and institute_now <= 4 and company_now and company_now >= 7:
                gap = company_now - institute_now
                if 4 <= gap <= 6:
                    score = 40
                    reasons.append("PERFECT_TRL_COMPLEMENT_COMMERCIALIZATION")
                elif gap >= 3:
                    score = 32
                    reasons.append("STRONG_TRL_COMPLEMENT_COMMERCIALIZATION")
            elif institute_expected and institute_expected >= 7 and company_target and company_target >= 7:
                diff = abs(institute_expected - company_target)
                if diff == 0:
                    score = 38
                    reasons.append("PERFECT_TRL_TARGET_MATCH")
                elif diff <= 1:
                    score = 30
                    reasons.append("STRONG_TRL_TARGET_MATCH")
            elif institute_now and company_now:
                gap = abs(institute_now - company_now)
                if 3 <= gap <= 5:
                    score = 22
                    reasons.append("TRL_GAP_MODERATE")
                elif gap <= 2:
                    score = 12
                    reasons.append("TRL_SIMILAR")

        if score == 0:
            score = 10
            reasons.append("TRL_DATA_MISSING")
        return min(40, score)

    @staticmethod
    def _graded_complement(diff: int, stage: str, reasons: List[str]) -> int:
        if diff == 0:
            reasons.append(f"PERFECT_TRL_COMPLEMENT_{stage}")
            return 40
        if diff <= 1:
            reasons.append(f"STRONG_TRL_COMPLEMENT_{stage}")
            return 35
        if diff <= 2:
            reasons.append(f"GOOD_TRL_COMPLEMENT_{stage}")
            return 28
        return 0

    def score_industry_alignment(self, seeker: Organization, candidate: Organization,
                                 reasons: List[str]) -> int:
        """Desired fields/technologies vs. what the candidate offers (0-30)."""
        score = 0

        fields = _normalize_each(seeker.desired_consortium_fields)
        if fields:
            if candidate.industry_sector:
                matches = _count_overlaps(fields, [normalize_keyword(candidate.industry_sector)])
                if matches:
                    score += min(10, matches * 5)
                    reasons.append("INDUSTRY_SECTOR_MATCH")
            focus = normalize_keywords(candidate.research_focus_areas)
            if focus:
                matches = _count_overlaps(fields, focus)
                if matches:
                    score += min(10, matches * 4)
                    reasons.append("RESEARCH_FOCUS_MATCH")

        technologies = _normalize_each(seeker.desired_technologies)
        if technologies:
            offered = normalize_keywords(candidate.key_technologies)
            if offered:
                matches = _count_overlaps(technologies, offered)
                if matches:
                    score += min(15, matches * 5)
                    reasons.append("TECHNOLOGY_MATCH")
            capabilities = normalize_keywords(candidate.commercialization_capabilities)
            if capabilities:
                matches = _count_overlaps(technologies, capabilities)
                if matches:
                    score += min(12, matches * 4)
                    reasons.append("CAPABILITY_MATCH")

        if score == 0 and seeker.industry_sector and candidate.industry_sector:
            if normalize_keyword(seeker.industry_sector) == normalize_keyword(candidate.industry_sector):
                score = 15
                reasons.append("SAME_INDUSTRY")
            else:
                a = resolve_sector(seeker.industry_sector)
                b = resolve_sector(candidate.industry_sector)
                if a and b and relevance(a, b, self.settings.default_relevance) >= 0.5:
                    score = 10
                    reasons.append("CROSS_INDUSTRY_RELEVANT")

        return min(30, score)

    def score_scale(self, seeker: Organization, candidate: Organization,
                    reasons: List[str]) -> int:
        """Organization scale compatibility (0-15)."""
        score = 0

        if seeker.type == OrganizationType.RESEARCH_INSTITUTE:
            if seeker.target_org_scale and candidate.employee_count:
                if seeker.target_org_scale == candidate.employee_count:
                    score += 8
                    reasons.append("PERFECT_SCALE_MATCH")
                elif is_adjacent_scale(seeker.target_org_scale, candidate.employee_count):
                    score += 5
                    reasons.append("GOOD_SCALE_MATCH")
            if seeker.target_org_revenue and candidate.revenue_range:
                if seeker.target_org_revenue == candidate.revenue_range:
                    score += 7
                    reasons.append("PERFECT_REVENUE_MATCH")
                elif is_adjacent_revenue(seeker.target_org_revenue, candidate.revenue_range):
                    score += 4
                    reasons.append("GOOD_REVENUE_MATCH")

        if (seeker.type == OrganizationType.COMPANY
                and candidate.type == OrganizationType.RESEARCH_INSTITUTE
                and candidate.researcher_count):
            if candidate.researcher_count >= 50:
                score += 10
                reasons.append("LARGE_RESEARCH_CAPACITY")
            elif candidate.researcher_count >= 20:
                score += 7
                reasons.append("MODERATE_RESEARCH_CAPACITY")
            elif candidate.researcher_count >= 10:
                score += 5
                reasons.append("SMALL_RESEARCH_CAPACITY")

        if score == 0 and seeker.employee_count and candidate.employee_count:
            if seeker.employee_count == candidate.employee_count:
                score = 8
                reasons.append("SIMILAR_SIZE")
            elif is_adjacent_scale(seeker.employee_count, candidate.employee_count):
                score = 5
                reasons.append("COMPATIBLE_SIZE")

        if score == 0:
            score = 5
            reasons.append("SCALE_DATA_LIMITED")
        return min(15, score)

    def score_experience(self, candidate: Organization, reasons: List[str]) -> int:
        """Candidate's own R&D and collaboration track record (0-15)."""
        score = 0
        if candidate.rd_experience:
            score += 7
            reasons.append("CANDIDATE_HAS_RD_EXPERIENCE")

        count = candidate.collaboration_count or 0
        if count >= 5:
            score += 8
            reasons.append("EXTENSIVE_COLLABORATION_HISTORY")
        elif count >= 3:
            score += 6
            reasons.append("MODERATE_COLLABORATION_HISTORY")
        elif count >= 1:
            score += 4
            reasons.append("LIMITED_COLLABORATION_HISTORY")

        if score == 0:
            score = 5
            reasons.append("EXPERIENCE_DATA_LIMITED")
        return min(15, score)

    @staticmethod
    def explain(reasons: List[str]) -> str:
        """One-line summary built from the highest-priority reason codes."""
        phrases = [phrase for codes, phrase in _EXPLANATION_PHRASES
                   if any(code in reasons for code in codes)]
        return ", ".join(phrases) if phrases else DEFAULT_PARTNER_EXPLANATION

    @staticmethod
    def should_consider(seeker: Organization, candidate: Organization) -> bool:
        if candidate.id == seeker.id:
            return False
        return candidate.status == OrganizationStatus.ACTIVE and candidate.profile_completed

    def calculate_partner_compatibility(self, seeker: Organization,
                                        candidate: Organization) -> PartnerMatchResult:
        reasons: List[str] = []
        breakdown = PartnerScoreBreakdown(
            trl_fit_score=self.score_complementary_trl(seeker, candidate, reasons),
            industry_score=self.score_industry_alignment(seeker, candidate, reasons),
            scale_score=self.score_scale(seeker, candidate, reasons),
            experience_score=self.score_experience(candidate, reasons),
        )
        return PartnerMatchResult(
            partner_id=candidate.id,
            partner=candidate,
            score=breakdown.total,
            breakdown=breakdown,
            reasons=reasons,
            explanation=self.explain(reasons),
        )

    def generate_partner_matches(self, seeker: Optional[Organization],
                                 candidates: Optional[Iterable[Organization]],
                                 limit: Optional[int] = None) -> List[PartnerMatchResult]:
        """Score eligible candidates and return the best `limit`, highest score first."""
        candidates = list(candidates or [])
        if seeker is None or not candidates:
            return []
        limit = self.settings.partner_limit if limit is None else limit

        results = [self.calculate_partner_compatibility(seeker, candidate)
                   for candidate in candidates if self.should_consider(seeker, candidate)]
        results.sort(key=lambda r: -r.score)

        logger.info("Partner search for %s: %d candidates, %d considered",
                    seeker.id, len(candidates), len(results))
        return results[:max(0, limit)]


def calculate_partner_compatibility(seeker: Organization, candidate: Organization) -> PartnerMatchResult:
    return PartnerMatcher().calculate_partner_compatibility(seeker, candidate)


def generate_partner_matches(seeker: Optional[Organization],
                             candidates: Optional[Iterable[Organization]],
                             limit: Optional[int] = None) -> List[PartnerMatchResult]:
    return PartnerMatcher().generate_partner_matches(seeker, candidates, limit)
