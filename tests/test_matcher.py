"""
Tests for the program filter -> score -> rank pipeline.
"""

from dataclasses import replace
from datetime import timedelta

import pandas as pd
import pytest

from grantmatch.matching_engine.data_models import (
    BusinessStructure,
    EligibilityLevel,
    FundingProgram,
    OrganizationType,
    ProgramStatus,
)
from grantmatch.matching_engine.matcher import (
    MATCH_RECORD_COLUMNS,
    MatchOptions,
    ProgramMatcher,
    deduplicate_programs,
    generate_matches,
    results_to_frame,
)
from tests.conftest import NOW

LIVE = MatchOptions(now=NOW)
HISTORICAL = MatchOptions(include_expired=True, now=NOW)


@pytest.fixture
def matcher(settings):
    return ProgramMatcher(settings)


class TestFilters:
    """Test the hard filters applied before scoring."""

    def test_compatible_program_passes(self, matcher, manufacturing_company, smart_factory_program):
        """A compatible program passes every filter."""
        assert matcher.check_filters(manufacturing_company, smart_factory_program, LIVE, NOW) is None

    def test_inactive_program(self, matcher, manufacturing_company, smart_factory_program):
        """Non-ACTIVE programs are rejected in live mode only."""
        expired = replace(smart_factory_program, status=ProgramStatus.EXPIRED)
        assert matcher.check_filters(manufacturing_company, expired, LIVE, NOW) == "FILTER_INACTIVE_PROGRAM"
        assert matcher.check_filters(manufacturing_company, expired, HISTORICAL, NOW) is None

    def test_deadline_passed(self, matcher, manufacturing_company, smart_factory_program):
        """Past deadlines are rejected in live mode only."""
        closed = replace(smart_factory_program, deadline=NOW - timedelta(days=1))
        assert matcher.check_filters(manufacturing_company, closed, LIVE, NOW) == "FILTER_DEADLINE_PASSED"
        assert matcher.check_filters(manufacturing_company, closed, HISTORICAL, NOW) is None

    def test_consolidated_announcement_in_both_modes(self, matcher, manufacturing_company,
                                                     smart_factory_program):
        """Announcements without deadline, start date or budget are always rejected."""
        umbrella = replace(smart_factory_program, deadline=None, budget_amount=None)
        for options in (LIVE, HISTORICAL):
            assert (matcher.check_filters(manufacturing_company, umbrella, options, NOW)
                    == "FILTER_CONSOLIDATED_ANNOUNCEMENT")

    def test_target_type(self, matcher, manufacturing_company, smart_factory_program):
        """Organization type must be targeted in live mode."""
        universities = replace(smart_factory_program, target_type=[OrganizationType.UNIVERSITY])
        assert matcher.check_filters(manufacturing_company, universities, LIVE, NOW) == "FILTER_TARGET_TYPE"
        assert matcher.check_filters(manufacturing_company, universities, HISTORICAL, NOW) is None

    def test_business_structure_in_both_modes(self, matcher, manufacturing_company, smart_factory_program):
        """A business-structure restriction applies even in historical mode."""
        corporations = replace(smart_factory_program,
                               allowed_business_structures=[BusinessStructure.CORPORATION])
        for options in (LIVE, HISTORICAL):
            assert (matcher.check_filters(manufacturing_company, corporations, options, NOW)
                    == "FILTER_BUSINESS_STRUCTURE")
        corporation = replace(manufacturing_company, business_structure=BusinessStructure.CORPORATION)
        assert matcher.check_filters(corporation, corporations, LIVE, NOW) is None

    def test_trl_range_widened_in_historical_mode(self, matcher, manufacturing_company,
                                                  smart_factory_program):
        """Historical mode widens the TRL range by three levels."""
        advanced = replace(smart_factory_program, min_trl=7, max_trl=9)
        assert matcher.check_filters(manufacturing_company, advanced, LIVE, NOW) == "FILTER_TRL_RANGE"
        assert matcher.check_filters(manufacturing_company, advanced, HISTORICAL, NOW) is None

        commercial = replace(smart_factory_program, min_trl=9, max_trl=9)
        assert matcher.check_filters(manufacturing_company, commercial, HISTORICAL, NOW) == "FILTER_TRL_RANGE"

    def test_medical_institution_only(self, matcher, manufacturing_company, research_institute,
                                      smart_factory_program):
        """Physician-scientist programs are reserved for research institutes."""
        medical = replace(smart_factory_program, title="의사과학자 양성 사업",
                          target_type=None, min_trl=None, max_trl=None)
        assert (matcher.check_filters(manufacturing_company, medical, LIVE, NOW)
                == "FILTER_MEDICAL_INSTITUTION_ONLY")
        assert matcher.check_filters(research_institute, medical, LIVE, NOW) is None

    def test_industry_unresolved(self, matcher, manufacturing_company, smart_factory_program):
        """An unresolvable program category is rejected in live mode."""
        unknown = replace(smart_factory_program, category="ㅁㅁㅁ")
        assert matcher.check_filters(manufacturing_company, unknown, LIVE, NOW) == "FILTER_INDUSTRY_UNRESOLVED"
        assert matcher.check_filters(manufacturing_company, unknown, HISTORICAL, NOW) is None

    def test_industry_mismatch(self, matcher, manufacturing_company, defense_program):
        """Low cross-industry relevance is rejected in live mode."""
        assert (matcher.check_filters(manufacturing_company, defense_program, LIVE, NOW)
                == "FILTER_INDUSTRY_MISMATCH")

    def test_industry_filter_needs_both_sides(self, matcher, manufacturing_company, defense_program):
        """Without an organization sector the industry filter is skipped."""
        no_sector = replace(manufacturing_company, industry_sector=None)
        assert matcher.check_filters(no_sector, defense_program, LIVE, NOW) is None


class TestSubScores:
    """Test the individual sub-scores."""

    @pytest.mark.parametrize("days, score, code", [
        (3, 15, "DEADLINE_URGENT"),
        (7, 15, "DEADLINE_URGENT"),
        (30, 12, "DEADLINE_SOON"),
        (60, 8, "DEADLINE_MODERATE"),
        (61, 5, "DEADLINE_FAR"),
    ])
    def test_deadline(self, matcher, days, score, code):
        """Closer deadlines score higher."""
        program = FundingProgram(id="p", title="과제", deadline=NOW + timedelta(days=days))
        reasons = []
        assert matcher.score_deadline(program, reasons, NOW) == score
        assert reasons == [code]

    def test_deadline_missing_or_past(self, matcher):
        """Unknown deadlines score 5 and past deadlines 0, without reasons."""
        reasons = []
        assert matcher.score_deadline(FundingProgram(id="p", title="과제"), reasons, NOW) == 5
        past = FundingProgram(id="p", title="과제", deadline=NOW - timedelta(days=2))
        assert matcher.score_deadline(past, reasons, NOW) == 0
        assert reasons == []

    @pytest.mark.parametrize("rd, count, score, code", [
        (False, 1, 2, "COLLABORATION_LIMITED"),
        (False, 3, 4, "COLLABORATION_MODERATE"),
        (False, 4, 5, "COLLABORATION_EXTENSIVE"),
        (True, 9, 15, "COLLABORATION_EXTENSIVE"),
    ])
    def test_rd_experience(self, matcher, manufacturing_company, rd, count, score, code):
        """R&D experience and collaboration history add up to 15."""
        org = replace(manufacturing_company, rd_experience=rd, collaboration_count=count)
        reasons = []
        assert matcher.score_rd_experience(org, reasons) == score
        assert reasons[-1] == code

    def test_organization_type(self, matcher, manufacturing_company, smart_factory_program):
        """Targeted types score 20, untargeted programs 10, excluded types 0."""
        reasons = []
        assert matcher.score_organization_type(manufacturing_company, smart_factory_program, reasons) == 20
        assert reasons == ["TYPE_MATCH"]
        open_call = replace(smart_factory_program, target_type=None)
        assert matcher.score_organization_type(manufacturing_company, open_call, []) == 10
        universities = replace(smart_factory_program, target_type=[OrganizationType.UNIVERSITY])
        assert matcher.score_organization_type(manufacturing_company, universities, []) == 0


class TestCalculateMatchScore:
    """Test single-program scoring."""

    def test_high_scoring_example(self, matcher, manufacturing_company, smart_factory_program):
        """A well-aligned manufacturing program scores at least 90."""
        match = matcher.calculate_match_score(manufacturing_company, smart_factory_program, NOW)
        assert match.score == 91
        assert match.score >= 90
        assert "EXACT_CATEGORY_MATCH" in match.reasons
        assert match.breakdown.industry_score == 29
        assert match.breakdown.trl_score == 20
        assert match.breakdown.type_score == 20
        assert match.breakdown.rd_score == 10
        assert match.breakdown.deadline_score == 12

    def test_breakdown_sums_to_score(self, matcher, manufacturing_company, research_institute,
                                     smart_factory_program, defense_program):
        """The score equals the breakdown total and every sub-score respects its cap."""
        for org in (manufacturing_company, research_institute):
            for program in (smart_factory_program, defense_program):
                match = matcher.calculate_match_score(org, program, NOW)
                b = match.breakdown
                assert match.score == b.total
                assert 0 <= b.industry_score <= 30
                assert 0 <= b.trl_score <= 20
                assert 0 <= b.type_score <= 20
                assert 0 <= b.rd_score <= 15
                assert 0 <= b.deadline_score <= 15

    def test_missing_inputs(self, matcher, smart_factory_program):
        """A missing organization or program scores zero."""
        match = matcher.calculate_match_score(None, smart_factory_program, NOW)
        assert match.score == 0
        assert match.program_id == smart_factory_program.id
        assert matcher.calculate_match_score(None, None, NOW).program_id == ""


class TestGenerateMatches:
    """Test the full pipeline."""

    def test_high_scoring_example_returned(self, matcher, manufacturing_company, smart_factory_program):
        """The manufacturing example is returned with its eligibility tier."""
        matches = matcher.generate_matches(manufacturing_company, [smart_factory_program], options=LIVE)
        assert [m.program_id for m in matches] == [smart_factory_program.id]
        assert matches[0].score >= 90
        assert matches[0].eligibility_level == EligibilityLevel.CONDITIONALLY_ELIGIBLE
        assert matches[0].eligibility_details is not None

    def test_defense_program_live_vs_historical(self, matcher, manufacturing_company, defense_program):
        """A defense program is excluded live but kept as historical reference."""
        assert matcher.generate_matches(manufacturing_company, [defense_program], options=LIVE) == []
        historical = matcher.generate_matches(manufacturing_company, [defense_program], options=HISTORICAL)
        assert [m.program_id for m in historical] == [defense_program.id]
        assert historical[0].score == 62

    def test_expired_only_in_historical_mode(self, matcher, manufacturing_company, smart_factory_program):
        """Expired programs never appear in live mode."""
        expired = replace(smart_factory_program, status=ProgramStatus.EXPIRED,
                          deadline=NOW - timedelta(days=30))
        assert matcher.generate_matches(manufacturing_company, [expired], options=LIVE) == []
        historical = matcher.generate_matches(manufacturing_company, [expired], options=HISTORICAL)
        assert len(historical) == 1
        assert historical[0].breakdown.deadline_score == 0

    def test_consolidated_excluded_in_both_modes(self, matcher, manufacturing_company,
                                                 smart_factory_program):
        """Umbrella announcements are never matched."""
        umbrella = replace(smart_factory_program, deadline=None, budget_amount=None)
        for options in (LIVE, HISTORICAL):
            assert matcher.generate_matches(manufacturing_company, [umbrella], options=options) == []

    def test_ineligible_excluded(self, matcher, manufacturing_company, smart_factory_program):
        """Programs with unmet hard requirements are dropped."""
        certified = replace(smart_factory_program, required_certifications=["이노비즈"])
        assert matcher.generate_matches(manufacturing_company, [certified], options=LIVE) == []

    def test_minimum_score(self, matcher, manufacturing_company, smart_factory_program):
        """Matches below the minimum score are dropped; the threshold can be overridden."""
        weak = replace(smart_factory_program, id="weak", target_type=[OrganizationType.COMPANY],
                       min_trl=None, max_trl=None, category=None, keywords=[], title="일반 과제",
                       deadline=NOW + timedelta(days=90))
        weak_org = replace(manufacturing_company, rd_experience=False, industry_sector=None,
                           technology_readiness_level=None)
        # 0 industry + 5 TRL + 20 type + 0 R&D + 5 deadline
        assert matcher.calculate_match_score(weak_org, weak, NOW).score == 30
        assert matcher.generate_matches(weak_org, [weak], options=LIVE) == []
        relaxed = MatchOptions(minimum_score=0, now=NOW)
        assert len(matcher.generate_matches(weak_org, [weak], options=relaxed)) == 1

    def test_fully_eligible_ranked_first(self, matcher, manufacturing_company, smart_factory_program):
        """Fully eligible matches outrank higher-scoring conditional ones."""
        org = replace(manufacturing_company, certifications=("ISO9001",))
        preferred = replace(smart_factory_program, id="preferred",
                            preferred_certifications=["ISO9001"],
                            deadline=NOW + timedelta(days=45))
        matches = matcher.generate_matches(org, [smart_factory_program, preferred], options=LIVE)
        assert [m.program_id for m in matches] == ["preferred", smart_factory_program.id]
        assert matches[0].score < matches[1].score
        assert matches[0].eligibility_level == EligibilityLevel.FULLY_ELIGIBLE

    def test_sorted_and_limited(self, matcher, manufacturing_company, smart_factory_program):
        """Results are sorted by score and cut to the default limit of three."""
        programs = [
            replace(smart_factory_program, id=f"p{days}", deadline=NOW + timedelta(days=days))
            for days in (90, 5, 45, 20)
        ]
        matches = matcher.generate_matches(manufacturing_company, programs, options=LIVE)
        assert [m.program_id for m in matches] == ["p5", "p20", "p45"]
        assert matcher.generate_matches(manufacturing_company, programs, limit=1, options=LIVE)[0].program_id == "p5"

    def test_negative_limit_returns_nothing(self, matcher, manufacturing_company, smart_factory_program):
        """A negative limit is treated as zero rather than slicing from the end."""
        assert matcher.generate_matches(manufacturing_company, [smart_factory_program], limit=-1,
                                        options=LIVE) == []

    def test_widening_trl_range_never_removes_match(self, matcher, manufacturing_company,
                                                    smart_factory_program):
        """Every program matched with a narrow TRL range still matches when widened."""
        relaxed = MatchOptions(minimum_score=0, now=NOW)
        for low, high in ((5, 5), (4, 6), (6, 8), (2, 4), (1, 9)):
            narrow = replace(smart_factory_program, min_trl=low, max_trl=high)
            wide = replace(smart_factory_program, min_trl=max(1, low - 1), max_trl=min(9, high + 1))
            if matcher.generate_matches(manufacturing_company, [narrow], options=relaxed):
                assert matcher.generate_matches(manufacturing_company, [wide], options=relaxed)

    def test_deduplication_opt_in(self, matcher, manufacturing_company, smart_factory_program):
        """Re-posted announcements collapse only when deduplication is requested."""
        first = replace(smart_factory_program, id="a", title="2025년도 제조업 스마트공장 고도화 지원사업")
        repost = replace(smart_factory_program, id="b", title="제조업 스마트공장 고도화 지원사업 (2차)",
                         budget_amount=None)
        assert len(matcher.generate_matches(manufacturing_company, [first, repost], options=LIVE)) == 2
        dedup = MatchOptions(deduplicate=True, now=NOW)
        matches = matcher.generate_matches(manufacturing_company, [first, repost], options=dedup)
        assert [m.program_id for m in matches] == ["a"]

    def test_empty_inputs(self, matcher, manufacturing_company, smart_factory_program):
        """No organization or no programs yields no matches."""
        assert matcher.generate_matches(None, [smart_factory_program], options=LIVE) == []
        assert matcher.generate_matches(manufacturing_company, [], options=LIVE) == []
        assert matcher.generate_matches(manufacturing_company, None, options=LIVE) == []

    def test_module_function_reads_environment(self, monkeypatch, manufacturing_company,
                                               smart_factory_program):
        """The module-level helper builds its settings from the environment."""
        monkeypatch.setenv("GRANTMATCH_DEFAULT_LIMIT", "1")
        programs = [replace(smart_factory_program, id=f"p{i}") for i in range(3)]
        assert len(generate_matches(manufacturing_company, programs, options=LIVE)) == 1


class TestDeduplicatePrograms:
    """Test announcement deduplication."""

    def test_prefers_earliest_scrape(self, smart_factory_program):
        """Among otherwise equal programs the earliest scraped wins."""
        early = replace(smart_factory_program, id="early", scraped_at=NOW - timedelta(days=5))
        late = replace(smart_factory_program, id="late", scraped_at=NOW)
        assert [p.id for p in deduplicate_programs([late, early])] == ["early"]

    def test_different_agencies_kept(self, smart_factory_program):
        """The same title from two agencies is two programs."""
        other = replace(smart_factory_program, id="other", agency_id="NIPA")
        assert len(deduplicate_programs([smart_factory_program, other])) == 2


class TestResultsToFrame:
    """Test DataFrame flattening."""

    def test_columns(self, matcher, manufacturing_company, smart_factory_program):
        """One row per match with flattened breakdown columns."""
        matches = matcher.generate_matches(manufacturing_company, [smart_factory_program], options=LIVE)
        frame = results_to_frame(matches)
        assert list(frame.columns) == MATCH_RECORD_COLUMNS
        assert frame.loc[0, "score"] == 91
        assert frame.loc[0, "eligibility_level"] == "CONDITIONALLY_ELIGIBLE"

    def test_empty(self):
        """No results gives an empty frame with the match columns."""
        frame = results_to_frame([])
        assert isinstance(frame, pd.DataFrame)
        assert frame.empty
        assert list(frame.columns) == MATCH_RECORD_COLUMNS
