"""
GrantMatch Package
==================
Rule-based matching of organizations to government R&D funding programs
and to consortium partners, with human-readable explanations.
"""

from .config import MatchingSettings, get_settings
from .logging_config import setup_logging
from .matching_engine import (
    DataLoader,
    ExplanationGenerator,
    FundingProgram,
    MatchOptions,
    MatchScore,
    Organization,
    PartnerMatcher,
    PartnerMatchResult,
    ProgramMatcher,
    results_to_frame,
)
from .reporter import ReportGenerator

__all__ = [
    'MatchingSettings',
    'get_settings',
    'setup_logging',
    'DataLoader',
    'ExplanationGenerator',
    'FundingProgram',
    'MatchOptions',
    'MatchScore',
    'Organization',
    'PartnerMatcher',
    'PartnerMatchResult',
    'ProgramMatcher',
    'results_to_frame',
    'ReportGenerator'
]
