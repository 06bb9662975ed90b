"""
Industry / keyword alignment scoring (0-30).

Organization keywords are kept separate by source (sector vocabulary,
declared technologies, research focus areas) so that the emitted reason code
reflects what actually matched: a generic sector term never produces a
"technology match" claim.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from .data_models import FundingProgram, KeywordMatchDetails, Organization, OrganizationType
from .normalizer import normalize_keyword, split_words
from .taxonomy import (
    DEFAULT_RELEVANCE,
    display_sector_name,
    find_sub_sector,
    match_technology_domains,
    relevance,
    resolve_sector,
    sector_keywords,
)

MAX_INDUSTRY_SCORE = 30
EXACT_CATEGORY_BONUS = 10
MAX_OVERLAP_SCORE = 15
MAX_SECTOR_SCORE = 10
MAX_TECHNOLOGY_BONUS = 5
_DESCRIPTION_PREFIX = 200


@dataclass
class OrganizationKeywords:
    sector: List[str] = field(default_factory=list)
    technology: List[str] = field(default_factory=list)
    research: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.sector or self.technology or self.research)


@dataclass
class KeywordMatchResult:
    score: int = 0
    reasons: List[str] = field(default_factory=list)
    exact_matches: int = 0
    sector_matches: int = 0
    sub_sector_matches: int = 0
    cross_industry_matches: int = 0
    technology_matches: int = 0

    def details(self) -> KeywordMatchDetails:
        return KeywordMatchDetails(
            exact_matches=self.exact_matches,
            sector_matches=self.sector_matches,
            sub_sector_matches=self.sub_sector_matches,
            cross_industry_matches=self.cross_industry_matches,
            technology_matches=self.technology_matches,
        )


def _add_unique(target: List[str], value: str) -> None:
    if value and value not in target:
        target.append(value)


def extract_organization_keywords(organization: Organization) -> OrganizationKeywords:
    """Normalized organization keywords, grouped by where they came from."""
    keywords = OrganizationKeywords()
    if organization.industry_sector:
        _add_unique(keywords.sector, normalize_keyword(organization.industry_sector))
        sector = resolve_sector(organization.industry_sector)
        if sector:
            for word in sector_keywords(sector):
                _add_unique(keywords.sector, normalize_keyword(word))
    for area in organization.research_focus_areas:
        _add_unique(keywords.research, normalize_keyword(area))
    for tech in organization.key_technologies:
        _add_unique(keywords.technology, normalize_keyword(tech))
    return keywords


def extract_program_keywords(program: FundingProgram) -> List[str]:
    """Normalized program keywords from title, category, keyword list and description head."""
    keywords: List[str] = []
    for word in split_words(program.title, min_length=2):
        _add_unique(keywords, normalize_keyword(word))
    if program.category:
        _add_unique(keywords, normalize_keyword(program.category))
    for word in program.keywords:
        _add_unique(keywords, normalize_keyword(word))
    if program.description:
        for word in split_words(program.description[:_DESCRIPTION_PREFIX], min_length=3):
            _add_unique(keywords, normalize_keyword(word))
    return keywords


def _count_matches(org_keywords: List[str], program_keywords: List[str]):
    exact = partial = 0
    for org_kw in org_keywords:
        for prog_kw in program_keywords:
            if org_kw == prog_kw:
                exact += 1
            elif len(org_kw) >= 3 and len(prog_kw) >= 3 and (org_kw in prog_kw or prog_kw in org_kw):
                partial += 1
    return exact, partial


def _score_keyword_overlap(org_keywords: OrganizationKeywords, program_keywords: List[str],
                           result: KeywordMatchResult) -> int:
    tech_exact, tech_partial = _count_matches(org_keywords.technology, program_keywords)
    research_exact, research_partial = _count_matches(org_keywords.research, program_keywords)
    sector_exact, sector_partial = _count_matches(org_keywords.sector, program_keywords)

    total = tech_exact + tech_partial + research_exact + research_partial + sector_exact + sector_partial
    if total == 0:
        return 0

    result.exact_matches = tech_exact + research_exact + sector_exact
    if tech_exact:
        result.reasons.append("EXACT_KEYWORD_MATCH")
    elif tech_partial:
        result.reasons.append("PARTIAL_KEYWORD_MATCH")
    if research_exact and not tech_exact:
        result.reasons.append("RESEARCH_KEYWORD_MATCH")
    # Sector-only matches score but add no reason; SECTOR_MATCH covers them.
    return min(MAX_OVERLAP_SCORE, 5 + (total - 1) * 2)


def _score_sector_match(organization: Organization, program: FundingProgram,
                        result: KeywordMatchResult) -> int:
    org_sector = resolve_sector(organization.industry_sector)
    if not org_sector:
        return 0

    if program.category and resolve_sector(program.category) == org_sector:
        result.sector_matches += 1
        result.reasons.append("SECTOR_MATCH")
        return MAX_SECTOR_SCORE

    score = 0
    for keyword in program.keywords:
        if resolve_sector(keyword) == org_sector:
            result.sector_matches += 1
            result.reasons.append("SECTOR_KEYWORD_MATCH")
            return score + 8
        sub = find_sub_sector(keyword)
        if sub and sub[0] == org_sector:
            score += 6
            result.sub_sector_matches += 1
            result.reasons.append("SUB_SECTOR_MATCH")
    return min(MAX_SECTOR_SCORE, score)


def _score_cross_industry(organization: Organization, program: FundingProgram,
                          result: KeywordMatchResult, default_relevance: float) -> int:
    org_sector = resolve_sector(organization.industry_sector)
    if not org_sector:
        return 0

    best = 0.0
    for text in ([program.category] if program.category else []) + list(program.keywords):
        program_sector = resolve_sector(text)
        if program_sector and program_sector != org_sector:
            best = max(best, relevance(org_sector, program_sector, default_relevance))

    if best >= 0.7:
        result.cross_industry_matches += 1
        result.reasons.append("CROSS_INDUSTRY_HIGH_RELEVANCE")
        return 5
    if best >= 0.5:
        result.cross_industry_matches += 1
        result.reasons.append("CROSS_INDUSTRY_MEDIUM_RELEVANCE")
        return 3
    return 0


def _score_technology_domains(technologies, program_keywords: List[str],
                              result: KeywordMatchResult) -> int:
    matches = 0
    for tech in technologies:
        normalized = normalize_keyword(tech)
        if not normalized:
            continue
        matches += sum(1 for kw in program_keywords if normalized in kw or kw in normalized)
        domains = set(match_technology_domains(tech))
        if domains:
            matches += sum(1 for kw in program_keywords
                           if domains.intersection(match_technology_domains(kw)))
    if not matches:
        return 0
    result.technology_matches = matches
    result.reasons.append("TECHNOLOGY_KEYWORD_MATCH")
    return min(MAX_TECHNOLOGY_BONUS, matches * 2)


def score_industry_keywords(organization: Organization, program: FundingProgram,
                            default_relevance: float = DEFAULT_RELEVANCE) -> KeywordMatchResult:
    """Score industry/keyword alignment between an organization and a program (0-30)."""
    result = KeywordMatchResult()

    org_keywords = extract_organization_keywords(organization)
    program_keywords = extract_program_keywords(program)
    if org_keywords.is_empty() or not program_keywords:
        return result

    score = 0
    if organization.industry_sector and program.category:
        if normalize_keyword(organization.industry_sector) == normalize_keyword(program.category):
            score += EXACT_CATEGORY_BONUS
            result.sector_matches += 1
            result.reasons.append("EXACT_CATEGORY_MATCH")

    score += _score_keyword_overlap(org_keywords, program_keywords, result)
    score += _score_sector_match(organization, program, result)

    if "EXACT_CATEGORY_MATCH" not in result.reasons:
        score += _score_cross_industry(organization, program, result, default_relevance)

    if organization.type == OrganizationType.RESEARCH_INSTITUTE and organization.key_technologies:
        score += _score_technology_domains(organization.key_technologies, program_keywords, result)

    result.score = min(MAX_INDUSTRY_SCORE, score)
    return result


def organization_sector_name(organization: Organization) -> Optional[str]:
    return display_sector_name(organization.industry_sector)


def program_sector_name(program: FundingProgram) -> Optional[str]:
    return display_sector_name(program.category)
