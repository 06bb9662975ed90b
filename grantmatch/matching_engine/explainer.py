"""
Korean explanation generator for program matches.

Turns the reason codes collected by the scorer into a summary, positive
reasons, warnings and recommendations. Explanations are presentation only:
a reason code without a template is dropped, never an error.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .data_models import (
    BusinessStructure,
    FundingProgram,
    MatchExplanation,
    MatchScore,
    Organization,
    OrganizationType,
)
from .dates import days_until, is_past, to_datetime
from .trl import trl_description

logger = logging.getLogger(__name__)

FALLBACK_REASON = "이 프로그램에 지원 가능한 조직입니다."
TRL_INFERRED_WARNING = (
    "ℹ️ 기술성숙도(TRL) 추정값 - 공고문에 명시되지 않아 키워드 기반으로 추정한 값입니다. "
    "정확한 TRL 요구사항은 공고문을 확인하세요."
)
_WARNING_MARKERS = ("MISMATCH", "FAR", "TOO_LOW_MODERATE", "TOO_HIGH_MODERATE")
_WARNING_CODES = {"TRL_INFERRED", "TRL_CONFIDENCE_MISSING"}

_STRUCTURE_NAMES = {
    BusinessStructure.CORPORATION: "법인사업자",
    BusinessStructure.SOLE_PROPRIETOR: "개인사업자",
}


@dataclass
class ExplanationContext:
    """Values the reason templates are parameterized with."""
    organization: Organization
    program: FundingProgram
    match: MatchScore
    days_left: Optional[int]

    @property
    def org_trl(self) -> Optional[int]:
        return self.organization.matching_trl

    @property
    def org_kind(self) -> str:
        return "기업" if self.organization.type == OrganizationType.COMPANY else "연구기관"


@dataclass
class DetailedAnalysis:
    score_summary: str
    strengths: List[str] = field(default_factory=list)
    concerns: List[str] = field(default_factory=list)
    action_items: List[str] = field(default_factory=list)


def _trl_perfect(ctx: ExplanationContext) -> str:
    p = ctx.program
    if ctx.org_trl and p.min_trl and p.max_trl:
        return (f"기술성숙도({trl_description(ctx.org_trl)})가 본 프로그램의 요구 범위"
                f"(TRL {p.min_trl}-{p.max_trl})에 완벽히 부합합니다.")
    return "기술성숙도가 프로그램 요구사항에 완벽히 부합합니다."


def _trl_low(detail: str, fallback: str) -> Callable[[ExplanationContext], str]:
    def render(ctx: ExplanationContext) -> str:
        if ctx.org_trl and ctx.program.min_trl:
            return detail.format(org=ctx.org_trl, bound=ctx.program.min_trl)
        return fallback
    return render


def _trl_high(detail: str, fallback: str) -> Callable[[ExplanationContext], str]:
    def render(ctx: ExplanationContext) -> str:
        if ctx.org_trl and ctx.program.max_trl:
            return detail.format(org=ctx.org_trl, bound=ctx.program.max_trl)
        return fallback
    return render


def _deadline_urgent(ctx: ExplanationContext) -> str:
    if ctx.days_left:
        return f"⚠️ 마감일이 {ctx.days_left}일 남아 신속한 지원이 필요합니다."
    return "⚠️ 마감일이 임박하여 신속한 지원이 필요합니다."


def _deadline_soon(ctx: ExplanationContext) -> str:
    if ctx.days_left:
        return f"마감일이 {ctx.days_left}일 남았습니다. 지원 준비를 시작하세요."
    return "마감일이 다가오고 있으니 지원 준비를 시작하세요."


def _fixed(text: str) -> Callable[[ExplanationContext], str]:
    return lambda ctx: text


REASON_TEMPLATES: Dict[str, Callable[[ExplanationContext], str]] = {
    # Industry / keyword
    "EXACT_CATEGORY_MATCH": _fixed(
        "귀사의 산업 분류가 프로그램 대상 분야와 정확히 일치합니다. 매우 적합한 지원 프로그램입니다."),
    "EXACT_KEYWORD_MATCH": _fixed("귀하의 기술 분야와 프로그램 키워드가 정확히 일치합니다."),
    "PARTIAL_KEYWORD_MATCH": _fixed("귀하의 보유 기술이 프로그램 키워드와 부분적으로 일치합니다."),
    "RESEARCH_KEYWORD_MATCH": _fixed("귀 기관의 연구 분야가 프로그램 키워드와 일치합니다."),
    "SECTOR_MATCH": _fixed("산업 분야가 프로그램의 주요 대상 분야와 일치합니다."),
    "SECTOR_KEYWORD_MATCH": _fixed("귀하의 산업 분야가 프로그램 대상 분야에 포함됩니다."),
    "SUB_SECTOR_MATCH": _fixed("귀하의 세부 산업 분야가 프로그램 목표와 부합합니다."),
    "CROSS_INDUSTRY_HIGH_RELEVANCE": _fixed("다른 산업 분야이지만 본 프로그램과 높은 연관성이 있습니다."),
    "CROSS_INDUSTRY_MEDIUM_RELEVANCE": _fixed("융합 기술 분야로 본 프로그램 지원이 가능합니다."),
    "TECHNOLOGY_KEYWORD_MATCH": _fixed("귀 연구소의 핵심 기술이 프로그램 목표와 일치합니다."),
    # TRL
    "TRL_PERFECT_MATCH": _trl_perfect,
    "TRL_TOO_LOW_CLOSE": _trl_low(
        "기술성숙도(TRL {org})가 최소 요구 수준(TRL {bound})에 근접합니다. 일부 지원 가능할 수 있습니다.",
        "기술성숙도가 요구 수준에 근접하여 지원을 고려해볼 수 있습니다."),
    "TRL_TOO_LOW_MODERATE": _trl_low(
        "⚠️ 기술성숙도(TRL {org})가 최소 요구 수준(TRL {bound})보다 다소 낮습니다.",
        "⚠️ 기술성숙도가 요구 수준보다 다소 낮습니다."),
    "TRL_TOO_LOW_FAR": _trl_low(
        "⚠️ 기술성숙도(TRL {org})가 최소 요구 수준(TRL {bound})보다 상당히 낮습니다. "
        "기초연구 단계 프로그램을 먼저 검토하세요.",
        "⚠️ 기술성숙도가 요구 수준보다 많이 낮습니다."),
    "TRL_TOO_HIGH_CLOSE": _trl_high(
        "기술성숙도(TRL {org})가 최대 허용 수준(TRL {bound})보다 약간 높지만, 예외적으로 지원 가능할 수 있습니다.",
        "기술성숙도가 약간 높지만 지원을 검토해볼 수 있습니다."),
    "TRL_TOO_HIGH_MODERATE": _trl_high(
        "⚠️ 기술성숙도(TRL {org})가 최대 허용 수준(TRL {bound})을 초과합니다. 사업화 단계 프로그램을 검토하세요.",
        "⚠️ 기술성숙도가 허용 수준을 초과합니다."),
    "TRL_TOO_HIGH_FAR": _trl_high(
        "⚠️ 이미 상용화 단계로, 본 프로그램보다 시장진입 지원 프로그램이 더 적합합니다.",
        "⚠️ 기술성숙도가 상용화 단계로, 다른 프로그램이 더 적합합니다."),
    "TRL_NOT_PROVIDED": _fixed(
        "기술성숙도 정보가 없어 기본 점수를 부여했습니다. 프로필에 TRL 정보를 추가하면 더 정확한 매칭이 가능합니다."),
    "TRL_NO_REQUIREMENT": _fixed("본 프로그램은 기술성숙도 제한이 없어 모든 단계에서 지원 가능합니다."),
    "TRL_INFERRED": _fixed(TRL_INFERRED_WARNING),
    "TRL_CONFIDENCE_MISSING": _fixed(
        "ℹ️ 기술성숙도(TRL) 정보 불확실 - 공고문에서 TRL 요구사항을 확인하지 못해 점수를 보수적으로 반영했습니다."),
    # Organization type
    "TYPE_MATCH": lambda ctx: f"{ctx.org_kind} 유형으로 본 프로그램의 지원 대상에 포함됩니다.",
    # R&D experience
    "RD_EXPERIENCE": _fixed("정부 R&D 과제 수행 경험이 있어 가점을 받을 수 있습니다."),
    "COLLABORATION_LIMITED": _fixed("산학협력 이력(1건)이 있어 협력과제 지원 시 참고됩니다."),
    "COLLABORATION_MODERATE": lambda ctx: (
        f"산학협력 이력({ctx.organization.collaboration_count}건)이 있어 협력과제 선정 시 유리합니다."),
    "COLLABORATION_EXTENSIVE": lambda ctx: (
        f"풍부한 산학협력 이력({ctx.organization.collaboration_count}건)으로 협력과제 선정 시 매우 유리합니다."),
    # Deadline
    "DEADLINE_URGENT": _deadline_urgent,
    "DEADLINE_SOON": _deadline_soon,
    "DEADLINE_MODERATE": _fixed("신청 마감일까지 시간이 있어 충분히 준비할 수 있습니다."),
    "DEADLINE_FAR": _fixed("신청 마감일까지 여유가 있으니 사전 검토 후 준비하시면 됩니다."),
}


def is_warning_code(code: str) -> bool:
    return code in _WARNING_CODES or any(marker in code for marker in _WARNING_MARKERS)


def _format_date(value) -> str:
    dt = to_datetime(value)
    return f"{dt.year}. {dt.month}. {dt.day}."


def _append_once(target: List[str], text: str) -> None:
    if text not in target:
        target.append(text)


class ExplanationGenerator:
    """Renders MatchScore reason codes into Korean explanations."""

    def __init__(self, templates: Optional[Dict[str, Callable[[ExplanationContext], str]]] = None):
        self.templates = templates or REASON_TEMPLATES

    @staticmethod
    def summary(score: int, organization_type: OrganizationType) -> str:
        subject = "귀사는" if organization_type == OrganizationType.COMPANY else "귀 기관은"
        if score >= 80:
            return f"{subject} 이 프로그램에 매우 적합한 후보입니다."
        if score >= 60:
            return f"{subject} 이 프로그램 지원 자격을 충족합니다."
        if score >= 40:
            return f"{subject} 조건부로 이 프로그램에 지원할 수 있습니다."
        return f"{subject} 이 프로그램에 지원 가능하나, 적합도가 낮습니다."

    def explain_reason(self, code: str, ctx: ExplanationContext) -> Optional[str]:
        template = self.templates.get(code)
        if template is None:
            logger.debug("No explanation template for reason code %s", code)
            return None
        return template(ctx)

    def _data_quality_warnings(self, organization: Organization, program: FundingProgram,
                               reasons: List[str], warnings: List[str],
                               now: Optional[datetime]) -> None:
        if program.budget_amount is None:
            warnings.append("💰 지원규모 미정 - 예산이 아직 확정되지 않았습니다. 공고문에서 확인하세요.")

        if program.deadline is None:
            warnings.append("📅 마감일 추후 공고 - 신청 마감일이 아직 공개되지 않았습니다.")
        elif is_past(program.deadline, now):
            warnings.append(
                f"⏰ 마감 완료 ({_format_date(program.deadline)}) - 내년도 유사 프로그램 준비용 참고자료입니다.")

        allowed = program.allowed_business_structures
        if allowed:
            allowed_names = ", ".join(_STRUCTURE_NAMES[s] for s in allowed)
            structure = organization.business_structure
            if structure is None:
                warnings.append(
                    f"⚠️ 사업자 유형 미기재 - 본 프로그램은 {allowed_names}만 지원 가능합니다. "
                    f"프로필에서 사업자 유형을 입력해주세요.")
            elif structure not in allowed:
                warnings.append(
                    f"⚠️ 사업자 유형 불일치 - 본 프로그램은 {allowed_names}만 지원 가능합니다. "
                    f"귀사는 {_STRUCTURE_NAMES[structure]}입니다.")
            else:
                reasons.append(
                    f"✓ 사업자 유형 적격 - 본 프로그램은 {allowed_names}를 대상으로 하며, 귀사는 해당됩니다.")

        if program.trl_inferred and (program.min_trl is not None or program.max_trl is not None):
            _append_once(warnings, TRL_INFERRED_WARNING)

    @staticmethod
    def _recommendations(score: int, days_left: Optional[int]) -> List[str]:
        recommendations = []
        if score >= 80:
            recommendations.append("이 프로그램은 귀하의 조직과 매우 적합합니다. 빠른 지원을 권장드립니다.")
        elif score >= 60:
            recommendations.append("이 프로그램 지원을 적극 검토해보세요.")
        elif score >= 40:
            recommendations.append("조건을 확인하신 후 지원을 고려해보세요.")

        if days_left is not None and 0 <= days_left <= 30:
            recommendations.append(f"⚠️ 마감일이 {days_left}일 남았습니다. 서류 준비를 서두르세요.")
        return recommendations

    def generate(self, match: MatchScore, organization: Organization, program: FundingProgram,
                 now: Optional[datetime] = None) -> MatchExplanation:
        """
        Build the full explanation for one match.

        Args:
            match: Scored match carrying reason codes
            organization: Applicant profile the match was scored for
            program: Matched program
            now: Reference time for deadline wording (defaults to the current time)
        """
        ctx = ExplanationContext(organization, program, match, days_until(program.deadline, now))
        reasons: List[str] = []
        warnings: List[str] = []

        for code in match.reasons:
            text = self.explain_reason(code, ctx)
            if text is None:
                continue
            if is_warning_code(code):
                _append_once(warnings, text)
            else:
                reasons.append(text)

        self._data_quality_warnings(organization, program, reasons, warnings, now)

        return MatchExplanation(
            summary=self.summary(match.score, organization.type),
            reasons=reasons or [FALLBACK_REASON],
            warnings=warnings,
            recommendations=self._recommendations(match.score, ctx.days_left),
        )

    def generate_detailed_analysis(self, match: MatchScore) -> DetailedAnalysis:
        """Strengths, concerns and action items derived from the score breakdown."""
        b = match.breakdown
        strengths: List[str] = []
        concerns: List[str] = []
        actions: List[str] = []

        if b.industry_score >= 25:
            strengths.append(f"산업 분야 적합성: {b.industry_score}/30점")
        elif b.industry_score > 0:
            concerns.append(f"산업 분야 적합성이 다소 낮습니다 ({b.industry_score}/30점)")
            actions.append("프로그램 세부 요강을 확인하여 지원 가능 여부를 검토하세요.")

        if b.trl_score >= 15:
            strengths.append(f"기술성숙도: {b.trl_score}/20점")
        elif b.trl_score == 0:
            concerns.append("기술성숙도(TRL) 요구사항을 충족하지 못합니다.")
            actions.append("기술 개발 단계를 조정하거나 다른 프로그램을 검토하세요.")

        if b.rd_score > 10:
            strengths.append(f"R&D 경험 보유로 가점 획득 ({b.rd_score}/15점)")

        if b.deadline_score <= 5:
            concerns.append("신청 마감일이 많이 남아있어 우선순위가 낮을 수 있습니다.")

        if match.score >= 70:
            actions.append("공고문을 상세히 검토하고 지원서류를 준비하세요.")
            actions.append("필요시 사업계획서 작성 컨설팅을 받는 것을 권장합니다.")

        return DetailedAnalysis(
            score_summary=f"종합 매칭 점수: {match.score}/100점",
            strengths=strengths or ["기본 지원 자격을 갖추고 있습니다."],
            concerns=concerns,
            action_items=actions or ["공고 세부사항을 확인해주세요."],
        )

    def generate_simple_explanation(self, match: MatchScore, organization: Organization,
                                    program: FundingProgram,
                                    now: Optional[datetime] = None) -> List[str]:
        """Flat bullet list: summary, reasons, warnings, and recommendations for strong matches."""
        explanation = self.generate(match, organization, program, now)
        bullets = [explanation.summary, *explanation.reasons, *explanation.warnings]
        if match.score >= 60:
            bullets.extend(explanation.recommendations)
        return bullets


def generate_explanation(match: MatchScore, organization: Organization, program: FundingProgram,
                         now: Optional[datetime] = None) -> MatchExplanation:
    return ExplanationGenerator().generate(match, organization, program, now)
