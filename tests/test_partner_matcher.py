"""
Tests for consortium partner compatibility scoring.
"""

from dataclasses import replace

import pytest

from grantmatch.matching_engine.data_models import (
    EmployeeCountRange,
    Organization,
    OrganizationStatus,
    OrganizationType,
    RevenueRange,
)
from grantmatch.matching_engine.partner_matcher import (
    DEFAULT_PARTNER_EXPLANATION,
    PartnerMatcher,
    is_adjacent_revenue,
    is_adjacent_scale,
)


@pytest.fixture
def partner_matcher(settings):
    return PartnerMatcher(settings)


def _company(**kwargs) -> Organization:
    return Organization(id=kwargs.pop("id", "company"), type=OrganizationType.COMPANY, **kwargs)


def _institute(**kwargs) -> Organization:
    return Organization(id=kwargs.pop("id", "institute"), type=OrganizationType.RESEARCH_INSTITUTE, **kwargs)


class TestComplementaryTrl:
    """Test TRL complementarity between partners."""

    def test_company_seeking_early_stage_research(self, partner_matcher):
        """An exact early-stage target match earns full marks."""
        reasons = []
        score = partner_matcher.score_complementary_trl(
            _company(target_partner_trl=3, technology_readiness_level=6),
            _institute(technology_readiness_level=3), reasons)
        assert score == 40
        assert reasons == ["PERFECT_TRL_COMPLEMENT_EARLY"]

    def test_company_seeking_commercial_research(self, partner_matcher):
        """A near commercial-stage target match scores 35."""
        reasons = []
        score = partner_matcher.score_complementary_trl(
            _company(target_partner_trl=8), _institute(expected_trl_level=7), reasons)
        assert score == 35
        assert reasons == ["STRONG_TRL_COMPLEMENT_COMMERCIAL"]

    def test_innovation_gap(self, partner_matcher):
        """An applied-stage company with a basic-research institute scores 32."""
        reasons = []
        score = partner_matcher.score_complementary_trl(
            _company(technology_readiness_level=5), _institute(technology_readiness_level=2), reasons)
        assert score == 32
        assert reasons == ["TRL_GAP_INNOVATION_OPPORTUNITY"]

    @pytest.mark.parametrize("company_trl, score, code", [
        (8, 40, "PERFECT_TRL_COMPLEMENT_COMMERCIALIZATION"),
        (7, 32, "STRONG_TRL_COMPLEMENT_COMMERCIALIZATION"),
    ])
    def test_institute_seeking_commercialization(self, partner_matcher, company_trl, score, code):
        """Institutes benefit from commercialization-ready companies."""
        reasons = []
        result = partner_matcher.score_complementary_trl(
            _institute(technology_readiness_level=4 if company_trl == 7 else 3),
            _company(technology_readiness_level=company_trl), reasons)
        assert result == score
        assert reasons == [code]

    def test_missing_data(self, partner_matcher):
        """Without TRL data the default of 10 applies."""
        reasons = []
        assert partner_matcher.score_complementary_trl(_company(), _institute(), reasons) == 10
        assert reasons == ["TRL_DATA_MISSING"]
        assert partner_matcher.score_complementary_trl(
            _company(technology_readiness_level=5), _company(id="c2", technology_readiness_level=5), []) == 10


class TestIndustryAlignment:
    """Test desired-field and technology alignment."""

    def test_desired_fields_and_technologies(self, partner_matcher, research_institute):
        """Sector, research-focus and technology overlaps add up."""
        seeker = _company(desired_consortium_fields=["인공지능"],
                          desired_technologies=["머신러닝", "컴퓨터비전", "로봇"])
        candidate = replace(research_institute, industry_sector="인공지능 소프트웨어")
        reasons = []
        assert partner_matcher.score_industry_alignment(seeker, candidate, reasons) == 19
        assert reasons == ["INDUSTRY_SECTOR_MATCH", "RESEARCH_FOCUS_MATCH", "TECHNOLOGY_MATCH"]

    def test_commercialization_capabilities(self, partner_matcher):
        """Desired technologies may be met by commercialization capabilities."""
        seeker = _institute(desired_technologies=["양산"])
        candidate = _company(commercialization_capabilities=["양산 설비", "품질인증"])
        reasons = []
        assert partner_matcher.score_industry_alignment(seeker, candidate, reasons) == 4
        assert reasons == ["CAPABILITY_MATCH"]

    def test_repeated_entries_each_count(self, partner_matcher):
        """A desired technology listed twice counts as two matches."""
        seeker = _institute(desired_technologies=["양산", "양산 "])
        candidate = _company(commercialization_capabilities=["양산 설비"])
        assert partner_matcher.score_industry_alignment(seeker, candidate, []) == 8

    def test_same_industry_fallback(self, partner_matcher):
        """With no declared preferences, identical sectors score 15."""
        reasons = []
        score = partner_matcher.score_industry_alignment(
            _company(industry_sector="제조업"), _institute(industry_sector="제조 업"), reasons)
        assert score == 15
        assert reasons == ["SAME_INDUSTRY"]

    def test_related_industry_fallback(self, partner_matcher):
        """Related sectors score 10, unrelated ones nothing."""
        assert partner_matcher.score_industry_alignment(
            _company(industry_sector="제조업"), _institute(industry_sector="ICT"), []) == 10
        assert partner_matcher.score_industry_alignment(
            _company(industry_sector="제조업"), _institute(industry_sector="DEFENSE"), []) == 0


class TestScale:
    """Test organization scale compatibility."""

    def test_adjacency(self):
        """Neighbouring buckets are adjacent; NONE revenue never is."""
        assert is_adjacent_scale(EmployeeCountRange.FROM_10_TO_50, EmployeeCountRange.FROM_50_TO_100)
        assert not is_adjacent_scale(EmployeeCountRange.UNDER_10, EmployeeCountRange.FROM_50_TO_100)
        assert is_adjacent_revenue(RevenueRange.UNDER_1B, RevenueRange.FROM_1B_TO_10B)
        assert not is_adjacent_revenue(RevenueRange.NONE, RevenueRange.UNDER_1B)

    def test_institute_target_scale(self, partner_matcher):
        """Institutes score candidates against their target scale and revenue."""
        seeker = _institute(target_org_scale=EmployeeCountRange.FROM_10_TO_50,
                            target_org_revenue=RevenueRange.FROM_1B_TO_10B)
        candidate = _company(employee_count=EmployeeCountRange.FROM_50_TO_100,
                             revenue_range=RevenueRange.FROM_1B_TO_10B)
        reasons = []
        assert partner_matcher.score_scale(seeker, candidate, reasons) == 12
        assert reasons == ["GOOD_SCALE_MATCH", "PERFECT_REVENUE_MATCH"]

    def test_research_capacity(self, partner_matcher, research_institute):
        """Companies value large research teams."""
        reasons = []
        assert partner_matcher.score_scale(_company(), research_institute, reasons) == 10
        assert reasons == ["LARGE_RESEARCH_CAPACITY"]

    def test_size_fallback_and_default(self, partner_matcher):
        """Similar sizes score 8; no data scores 5."""
        a = _company(employee_count=EmployeeCountRange.UNDER_10)
        b = _company(id="b", employee_count=EmployeeCountRange.UNDER_10)
        assert partner_matcher.score_scale(a, b, []) == 8
        reasons = []
        assert partner_matcher.score_scale(_company(), _company(id="b"), reasons) == 5
        assert reasons == ["SCALE_DATA_LIMITED"]


class TestExperience:
    """Test candidate track-record scoring."""

    def test_extensive(self, partner_matcher, research_institute):
        """R&D experience plus five or more collaborations scores 15."""
        reasons = []
        assert partner_matcher.score_experience(research_institute, reasons) == 15
        assert reasons == ["CANDIDATE_HAS_RD_EXPERIENCE", "EXTENSIVE_COLLABORATION_HISTORY"]

    def test_limited_and_default(self, partner_matcher):
        """One collaboration scores 4; nothing scores the default 5."""
        assert partner_matcher.score_experience(_company(collaboration_count=1), []) == 4
        assert partner_matcher.score_experience(_company(), []) == 5


class TestPartnerPipeline:
    """Test compatibility and ranking."""

    def test_compatibility(self, partner_matcher, manufacturing_company, research_institute):
        """A company looking for early-stage AI research partners matches the institute."""
        seeker = replace(manufacturing_company, target_partner_trl=3, desired_technologies=("머신러닝",))
        result = partner_matcher.calculate_partner_compatibility(seeker, research_institute)
        assert result.breakdown.trl_fit_score == 40
        assert result.breakdown.industry_score == 5
        assert result.breakdown.scale_score == 10
        assert result.breakdown.experience_score == 15
        assert result.score == 70 == result.breakdown.total
        assert result.explanation == "완벽한 TRL 상호보완 관계, 기술 역량 일치, 풍부한 협력 경험"

    def test_default_explanation(self, partner_matcher):
        """Without notable reasons a generic explanation is used."""
        assert partner_matcher.explain(["TRL_DATA_MISSING"]) == DEFAULT_PARTNER_EXPLANATION

    def test_excluded_candidates(self, partner_matcher, manufacturing_company, research_institute):
        """The seeker itself, inactive and incomplete profiles are skipped."""
        candidates = [
            manufacturing_company,
            replace(research_institute, id="inactive", status=OrganizationStatus.INACTIVE),
            replace(research_institute, id="incomplete", profile_completed=False),
            research_institute,
        ]
        results = partner_matcher.generate_partner_matches(manufacturing_company, candidates)
        assert [r.partner_id for r in results] == [research_institute.id]

    def test_sorted_and_limited(self, partner_matcher, manufacturing_company, research_institute):
        """Results are sorted by score descending and cut to the limit."""
        weak = _institute(id="weak")
        results = partner_matcher.generate_partner_matches(
            manufacturing_company, [weak, research_institute])
        assert [r.partner_id for r in results] == [research_institute.id, "weak"]
        assert results[0].score >= results[1].score
        limited = partner_matcher.generate_partner_matches(
            manufacturing_company, [weak, research_institute], limit=1)
        assert len(limited) == 1
        assert partner_matcher.generate_partner_matches(
            manufacturing_company, [weak, research_institute], limit=-1) == []

    def test_empty_inputs(self, partner_matcher, manufacturing_company):
        """No seeker or no candidates yields no results."""
        assert partner_matcher.generate_partner_matches(None, [manufacturing_company]) == []
        assert partner_matcher.generate_partner_matches(manufacturing_company, []) == []
