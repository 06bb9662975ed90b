"""
Data models for the funding-program matching system.
Centralizes all record and result definitions for type safety and clean code organization.

Input records (Organization, FundingProgram) are immutable: list-valued fields are
stored as tuples and enum-valued fields are coerced from their string names.
"""

from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class OrganizationType(str, Enum):
    COMPANY = "COMPANY"
    RESEARCH_INSTITUTE = "RESEARCH_INSTITUTE"
    UNIVERSITY = "UNIVERSITY"
    PUBLIC_INSTITUTION = "PUBLIC_INSTITUTION"


class OrganizationStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    SUSPENDED = "SUSPENDED"


class ProgramStatus(str, Enum):
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    ARCHIVED = "ARCHIVED"


class BusinessStructure(str, Enum):
    CORPORATION = "CORPORATION"
    SOLE_PROPRIETOR = "SOLE_PROPRIETOR"


class EmployeeCountRange(str, Enum):
    """Employee-count buckets, declared in ascending order."""
    UNDER_10 = "UNDER_10"
    FROM_10_TO_50 = "FROM_10_TO_50"
    FROM_50_TO_100 = "FROM_50_TO_100"
    FROM_100_TO_300 = "FROM_100_TO_300"
    OVER_300 = "OVER_300"


class RevenueRange(str, Enum):
    """Revenue buckets (KRW), declared in ascending order. NONE means no revenue."""
    NONE = "NONE"
    UNDER_1B = "UNDER_1B"
    FROM_1B_TO_10B = "FROM_1B_TO_10B"
    FROM_10B_TO_50B = "FROM_10B_TO_50B"
    FROM_50B_TO_100B = "FROM_50B_TO_100B"
    OVER_100B = "OVER_100B"


class TrlConfidence(str, Enum):
    EXPLICIT = "explicit"
    INFERRED = "inferred"
    MISSING = "missing"


class EligibilityLevel(str, Enum):
    FULLY_ELIGIBLE = "FULLY_ELIGIBLE"
    CONDITIONALLY_ELIGIBLE = "CONDITIONALLY_ELIGIBLE"
    INELIGIBLE = "INELIGIBLE"


EMPLOYEE_COUNT_MIDPOINTS: Dict[EmployeeCountRange, int] = {
    EmployeeCountRange.UNDER_10: 5,
    EmployeeCountRange.FROM_10_TO_50: 30,
    EmployeeCountRange.FROM_50_TO_100: 75,
    EmployeeCountRange.FROM_100_TO_300: 200,
    EmployeeCountRange.OVER_300: 500,
}

REVENUE_MIDPOINTS: Dict[RevenueRange, int] = {
    RevenueRange.UNDER_1B: 500_000_000,
    RevenueRange.FROM_1B_TO_10B: 5_000_000_000,
    RevenueRange.FROM_10B_TO_50B: 30_000_000_000,
    RevenueRange.FROM_50B_TO_100B: 75_000_000_000,
    RevenueRange.OVER_100B: 150_000_000_000,
}


def _coerce_enum(enum_cls, value):
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value)
        except ValueError:
            # TrlConfidence values are lower-case; accept either spelling
            for member in enum_cls:
                if member.name == value.upper():
                    return member
            raise
    raise TypeError(f"Cannot interpret {value!r} as {enum_cls.__name__}")


def _coerce_tuple(value, enum_cls=None) -> Optional[tuple]:
    if value is None:
        return None
    if isinstance(value, (str, bytes)):
        value = [value]
    if enum_cls is not None:
        return tuple(_coerce_enum(enum_cls, v) for v in value)
    return tuple(value)


@dataclass(frozen=True)
class InvestmentEvent:
    """A single recorded investment round."""
    amount: int
    verified: bool = False
    source: Optional[str] = None
    invested_on: Optional[date] = None


@dataclass(frozen=True)
class Organization:
    """Applicant (or partner-candidate) organization profile."""
    id: str
    type: OrganizationType
    name: str = ""
    status: OrganizationStatus = OrganizationStatus.ACTIVE
    profile_completed: bool = True

    industry_sector: Optional[str] = None
    technology_readiness_level: Optional[int] = None
    target_research_trl: Optional[int] = None
    business_structure: Optional[BusinessStructure] = None

    rd_experience: bool = False
    collaboration_count: int = 0

    research_focus_areas: Tuple[str, ...] = ()
    key_technologies: Tuple[str, ...] = ()
    desired_consortium_fields: Tuple[str, ...] = ()
    desired_technologies: Tuple[str, ...] = ()
    commercialization_capabilities: Tuple[str, ...] = ()

    # Partner-seeking preferences
    target_partner_trl: Optional[int] = None
    expected_trl_level: Optional[int] = None
    target_org_scale: Optional[EmployeeCountRange] = None
    target_org_revenue: Optional[RevenueRange] = None
    researcher_count: Optional[int] = None

    employee_count: Optional[EmployeeCountRange] = None
    revenue_range: Optional[RevenueRange] = None
    certifications: Tuple[str, ...] = ()
    government_certifications: Tuple[str, ...] = ()
    industry_awards: Tuple[str, ...] = ()
    prior_grant_wins: int = 0
    investment_history: Optional[Tuple[InvestmentEvent, ...]] = None
    business_established_date: Optional[date] = None

    def __post_init__(self):
        object.__setattr__(self, "type", _coerce_enum(OrganizationType, self.type))
        object.__setattr__(self, "status", _coerce_enum(OrganizationStatus, self.status))
        object.__setattr__(self, "business_structure",
                           _coerce_enum(BusinessStructure, self.business_structure))
        object.__setattr__(self, "target_org_scale",
                           _coerce_enum(EmployeeCountRange, self.target_org_scale))
        object.__setattr__(self, "target_org_revenue",
                           _coerce_enum(RevenueRange, self.target_org_revenue))
        object.__setattr__(self, "employee_count",
                           _coerce_enum(EmployeeCountRange, self.employee_count))
        object.__setattr__(self, "revenue_range", _coerce_enum(RevenueRange, self.revenue_range))
        for name in ("research_focus_areas", "key_technologies", "desired_consortium_fields",
                     "desired_technologies", "commercialization_capabilities",
                     "certifications", "government_certifications", "industry_awards"):
            object.__setattr__(self, name, _coerce_tuple(getattr(self, name)) or ())
        if self.investment_history is not None:
            object.__setattr__(self, "investment_history", tuple(self.investment_history))

    @property
    def matching_trl(self) -> Optional[int]:
        """TRL used for program matching: desired research TRL wins over current TRL."""
        return self.target_research_trl or self.technology_readiness_level


@dataclass(frozen=True)
class FundingProgram:
    """Funding program announcement being scored against an organization."""
    id: str
    title: str
    status: ProgramStatus = ProgramStatus.ACTIVE
    deadline: Optional[datetime] = None
    application_start: Optional[datetime] = None
    budget_amount: Optional[int] = None

    target_type: Optional[Tuple[OrganizationType, ...]] = None
    min_trl: Optional[int] = None
    max_trl: Optional[int] = None
    category: Optional[str] = None
    keywords: Tuple[str, ...] = ()
    description: Optional[str] = None
    allowed_business_structures: Optional[Tuple[BusinessStructure, ...]] = None

    # Eligibility requirements
    required_certifications: Tuple[str, ...] = ()
    preferred_certifications: Tuple[str, ...] = ()
    required_min_employees: Optional[int] = None
    required_max_employees: Optional[int] = None
    required_min_revenue: Optional[int] = None
    required_max_revenue: Optional[int] = None
    required_investment_amount: Optional[int] = None
    required_operating_years: Optional[int] = None
    max_operating_years: Optional[int] = None

    # TRL provenance
    trl_inferred: bool = False
    trl_confidence: Optional[TrlConfidence] = None

    agency_id: Optional[str] = None
    scraped_at: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "status", _coerce_enum(ProgramStatus, self.status))
        object.__setattr__(self, "target_type", _coerce_tuple(self.target_type, OrganizationType))
        object.__setattr__(self, "allowed_business_structures",
                           _coerce_tuple(self.allowed_business_structures, BusinessStructure))
        object.__setattr__(self, "trl_confidence", _coerce_enum(TrlConfidence, self.trl_confidence))
        for name in ("keywords", "required_certifications", "preferred_certifications"):
            object.__setattr__(self, name, _coerce_tuple(getattr(self, name)) or ())

    @property
    def is_consolidated_announcement(self) -> bool:
        """True when deadline, application start and budget are all missing."""
        return not self.deadline and not self.application_start and not self.budget_amount

    @property
    def has_trl_range(self) -> bool:
        return self.min_trl is not None and self.max_trl is not None


@dataclass(frozen=True)
class ScoreBreakdown:
    """Five capped sub-scores of a program match."""
    industry_score: int = 0    # 0-30
    trl_score: int = 0         # 0-20
    type_score: int = 0        # 0-20
    rd_score: int = 0          # 0-15
    deadline_score: int = 0    # 0-15

    @property
    def total(self) -> int:
        return (self.industry_score + self.trl_score + self.type_score
                + self.rd_score + self.deadline_score)


@dataclass(frozen=True)
class EligibilityResult:
    """Three-tier eligibility decision with the requirements behind it."""
    level: EligibilityLevel
    hard_requirements_met: bool
    soft_requirements_met: bool
    failed_requirements: Tuple[str, ...] = ()
    met_requirements: Tuple[str, ...] = ()
    needs_manual_review: bool = False
    manual_review_reason: Optional[str] = None


@dataclass(frozen=True)
class KeywordMatchDetails:
    """Counters collected while scoring industry/keyword alignment."""
    exact_matches: int = 0
    sector_matches: int = 0
    sub_sector_matches: int = 0
    cross_industry_matches: int = 0
    technology_matches: int = 0


@dataclass
class MatchScore:
    """Represents a single program match with scoring details."""
    program_id: str
    program: Optional[FundingProgram]
    score: int
    breakdown: ScoreBreakdown
    reasons: List[str] = field(default_factory=list)
    eligibility_level: Optional[EligibilityLevel] = None
    eligibility_details: Optional[EligibilityResult] = None
    keyword_details: Optional[KeywordMatchDetails] = None

    def to_record(self) -> Dict[str, Any]:
        """Flatten into a single-level record for persistence or tabular display."""
        record: Dict[str, Any] = {
            "program_id": self.program_id,
            "program_title": self.program.title if self.program else None,
            "score": self.score,
        }
        for f in fields(ScoreBreakdown):
            record[f.name] = getattr(self.breakdown, f.name)
        record["reasons"] = list(self.reasons)
        record["eligibility_level"] = self.eligibility_level.value if self.eligibility_level else None
        record["needs_manual_review"] = (
            self.eligibility_details.needs_manual_review if self.eligibility_details else False
        )
        return record


@dataclass(frozen=True)
class PartnerScoreBreakdown:
    """Four capped sub-scores of a partner match."""
    trl_fit_score: int = 0       # 0-40
    industry_score: int = 0      # 0-30
    scale_score: int = 0         # 0-15
    experience_score: int = 0    # 0-15

    @property
    def total(self) -> int:
        return self.trl_fit_score + self.industry_score + self.scale_score + self.experience_score


@dataclass
class PartnerMatchResult:
    """Represents a single partner-candidate match with scoring details."""
    partner_id: str
    partner: Organization
    score: int
    breakdown: PartnerScoreBreakdown
    reasons: List[str] = field(default_factory=list)
    explanation: str = ""

    def to_record(self) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "partner_id": self.partner_id,
            "partner_name": self.partner.name,
            "score": self.score,
        }
        for f in fields(PartnerScoreBreakdown):
            record[f.name] = getattr(self.breakdown, f.name)
        record["reasons"] = list(self.reasons)
        record["explanation"] = self.explanation
        return record


@dataclass
class MatchExplanation:
    """Human-readable explanation of a match."""
    summary: str
    reasons: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchExplanation':
        """Create MatchExplanation from dictionary data."""
        return cls(
            summary=data.get('summary', ''),
            reasons=list(data.get('reasons') or []),
            warnings=list(data.get('warnings') or []),
            recommendations=list(data.get('recommendations') or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary,
            'reasons': list(self.reasons),
            'warnings': list(self.warnings),
            'recommendations': list(self.recommendations),
        }
