"""
Matching Engine Package
========================
Deterministic scoring of funding programs and consortium partners.

This package provides:
- Industry taxonomy and keyword normalization
- Eligibility checks with manual-review flags
- Program and partner matching and scoring
- Rule-based explanation generation
- Data loading and data models
"""

from .data_models import (
    BusinessStructure,
    EligibilityLevel,
    EligibilityResult,
    EmployeeCountRange,
    FundingProgram,
    InvestmentEvent,
    MatchExplanation,
    MatchScore,
    Organization,
    OrganizationStatus,
    OrganizationType,
    PartnerMatchResult,
    PartnerScoreBreakdown,
    ProgramStatus,
    RevenueRange,
    ScoreBreakdown,
    TrlConfidence,
)
from .data_loader import DataLoader, RecordValidationError
from .eligibility import check_eligibility
from .explainer import ExplanationGenerator, generate_explanation
from .matcher import (
    MatchOptions,
    ProgramMatcher,
    calculate_match_score,
    deduplicate_programs,
    generate_matches,
    results_to_frame,
)
from .partner_matcher import PartnerMatcher, calculate_partner_compatibility, generate_partner_matches
from .taxonomy import INDUSTRY_RELEVANCE, INDUSTRY_TAXONOMY, relevance, resolve_sector

__all__ = [
    'BusinessStructure',
    'EligibilityLevel',
    'EligibilityResult',
    'EmployeeCountRange',
    'FundingProgram',
    'InvestmentEvent',
    'MatchExplanation',
    'MatchScore',
    'Organization',
    'OrganizationStatus',
    'OrganizationType',
    'PartnerMatchResult',
    'PartnerScoreBreakdown',
    'ProgramStatus',
    'RevenueRange',
    'ScoreBreakdown',
    'TrlConfidence',
    'DataLoader',
    'RecordValidationError',
    'check_eligibility',
    'ExplanationGenerator',
    'generate_explanation',
    'MatchOptions',
    'ProgramMatcher',
    'calculate_match_score',
    'deduplicate_programs',
    'generate_matches',
    'results_to_frame',
    'PartnerMatcher',
    'calculate_partner_compatibility',
    'generate_partner_matches',
    'INDUSTRY_RELEVANCE',
    'INDUSTRY_TAXONOMY',
    'relevance',
    'resolve_sector'
]
