"""
Pytest configuration and shared fixtures.
"""

from datetime import date, datetime, timedelta

import pytest

from grantmatch.config import MatchingSettings
from grantmatch.matching_engine.data_models import (
    FundingProgram,
    Organization,
    OrganizationType,
    ProgramStatus,
)

NOW = datetime(2025, 3, 1, 9, 0, 0)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time used by every date-dependent test."""
    return NOW


@pytest.fixture
def settings() -> MatchingSettings:
    """Default settings, independent of the environment."""
    return MatchingSettings()


@pytest.fixture
def manufacturing_company() -> Organization:
    """Manufacturing company at TRL 5 with government R&D experience."""
    return Organization(
        id="org-mfg",
        type=OrganizationType.COMPANY,
        name="한빛정밀",
        industry_sector="제조업",
        technology_readiness_level=5,
        rd_experience=True,
        collaboration_count=0,
        business_established_date=date(2018, 6, 1),
    )


@pytest.fixture
def smart_factory_program() -> FundingProgram:
    """Manufacturing program (TRL 4-6, companies only) closing in ten days."""
    return FundingProgram(
        id="prog-smart-factory",
        title="제조업 스마트공장 고도화 지원사업",
        status=ProgramStatus.ACTIVE,
        deadline=NOW + timedelta(days=10),
        budget_amount=500_000_000,
        target_type=[OrganizationType.COMPANY],
        min_trl=4,
        max_trl=6,
        category="제조업",
        keywords=["제조", "스마트공장"],
        agency_id="KEIT",
    )


@pytest.fixture
def defense_program() -> FundingProgram:
    """Defense program otherwise compatible with the manufacturing company."""
    return FundingProgram(
        id="prog-defense",
        title="국방 무기체계 고도화 사업",
        status=ProgramStatus.ACTIVE,
        deadline=NOW + timedelta(days=10),
        budget_amount=300_000_000,
        target_type=[OrganizationType.COMPANY],
        min_trl=4,
        max_trl=6,
        category="DEFENSE",
        agency_id="KRIT",
    )


@pytest.fixture
def research_institute() -> Organization:
    """Early-stage research institute with AI technologies."""
    return Organization(
        id="org-institute",
        type=OrganizationType.RESEARCH_INSTITUTE,
        name="미래기술연구원",
        industry_sector="ICT",
        technology_readiness_level=3,
        rd_experience=True,
        collaboration_count=6,
        research_focus_areas=["인공지능", "스마트제조"],
        key_technologies=["머신러닝", "컴퓨터비전"],
        researcher_count=60,
    )
