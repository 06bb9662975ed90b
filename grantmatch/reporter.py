"""
Report Generator
================
Generates funding-program shortlist reports in Markdown format.

Features:
- Organization profile overview
- Ranked shortlist table with eligibility tier
- Per-program score breakdown with explanations and warnings
- Optional consortium partner table
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .matching_engine.data_models import (
    EligibilityLevel,
    MatchExplanation,
    MatchScore,
    Organization,
    PartnerMatchResult,
)
from .matching_engine.explainer import ExplanationGenerator
from .matching_engine.taxonomy import display_sector_name

logger = logging.getLogger(__name__)

_TIER_LABELS = {
    EligibilityLevel.FULLY_ELIGIBLE: "✅ 적격 (우대조건 충족)",
    EligibilityLevel.CONDITIONALLY_ELIGIBLE: "🟡 조건부 적격",
    EligibilityLevel.INELIGIBLE: "⛔ 부적격",
}

_BREAKDOWN_ROWS = [
    ("산업/키워드 적합성", "industry_score", 30),
    ("기술성숙도(TRL)", "trl_score", 20),
    ("기관 유형", "type_score", 20),
    ("R&D 경험", "rd_score", 15),
    ("마감일", "deadline_score", 15),
]


class ReportGenerator:
    """Generates formatted shortlist reports from match results."""

    def __init__(self, explainer=None, now: Optional[datetime] = None):
        """
        Args:
            explainer: Object with generate(match, org, program, now) or
                explain(match, org, program, now); defaults to the rule-based generator
            now: Reference time for deadline wording and the report timestamp
        """
        self.explainer = explainer or ExplanationGenerator()
        self.now = now
        self.timestamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")

    def _explain(self, match: MatchScore, organization: Organization) -> MatchExplanation:
        if hasattr(self.explainer, "explain"):
            return self.explainer.explain(match, organization, match.program, self.now)
        return self.explainer.generate(match, organization, match.program, self.now)

    def generate_markdown_report(self, organization: Organization, matches: Sequence[MatchScore],
                                 output_path: Optional[str] = None,
                                 partners: Optional[Sequence[PartnerMatchResult]] = None) -> str:
        """
        Generate a markdown shortlist report.

        Args:
            organization: Applicant the matches were generated for
            matches: Output of ProgramMatcher.generate_matches()
            output_path: Optional path to save the report
            partners: Optional output of PartnerMatcher.generate_partner_matches()

        Returns:
            Markdown report as string
        """
        sections = [
            self._generate_header(organization),
            self._generate_profile(organization),
            self._generate_shortlist(matches),
        ]
        for rank, match in enumerate(matches, 1):
            sections.append(self._format_match(rank, match, organization))
        if partners:
            sections.append(self._generate_partner_table(partners))
        sections.append(self._generate_footer())

        report = "\n\n".join(sections)

        if output_path:
            output_file = Path(output_path)
            output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(report)
            logger.info("Report saved to: %s", output_path)

        return report

    def _generate_header(self, organization: Organization) -> str:
        name = organization.name or organization.id
        return f"""# 🎯 지원사업 매칭 리포트: {name}

**생성 시각:** {self.timestamp}

---"""

    def _generate_profile(self, organization: Organization) -> str:
        sector = display_sector_name(organization.industry_sector) or "-"
        trl = organization.matching_trl
        return f"""## 🏢 기관 프로필

| 항목 | 값 |
|------|-----|
| **기관 유형** | {organization.type.value} |
| **산업 분야** | {sector} |
| **기술성숙도(TRL)** | {trl if trl else '-'} |
| **R&D 수행 경험** | {'있음' if organization.rd_experience else '없음'} |
| **협력 이력** | {organization.collaboration_count}건 |"""

    def _generate_shortlist(self, matches: Sequence[MatchScore]) -> str:
        if not matches:
            return "## 📋 추천 지원사업\n\n조건에 맞는 지원사업이 없습니다."

        lines = [
            "## 📋 추천 지원사업",
            "",
            "| 순위 | 지원사업 | 점수 | 자격 |",
            "|------|----------|------|------|",
        ]
        for rank, match in enumerate(matches, 1):
            title = match.program.title if match.program else match.program_id
            tier = _TIER_LABELS.get(match.eligibility_level, "-")
            lines.append(f"| {rank} | {title} | {match.score}/100 | {tier} |")
        return "\n".join(lines)

    def _format_match(self, rank: int, match: MatchScore, organization: Organization) -> str:
        explanation = self._explain(match, organization)
        title = match.program.title if match.program else match.program_id

        section = f"""### {rank}. {title}

**종합 점수:** {match.score}/100 {self._create_score_bar(match.score, 100)}
**요약:** {explanation.summary}

| 항목 | 점수 | |
|------|------|---|
"""
        for label, attr, cap in _BREAKDOWN_ROWS:
            value = getattr(match.breakdown, attr)
            section += f"| {label} | {value}/{cap} | {self._create_score_bar(value, cap)} |\n"

        section += self._bullets("✅ 추천 이유", explanation.reasons)
        section += self._bullets("⚠️ 유의사항", explanation.warnings)
        section += self._bullets("💡 권장 조치", explanation.recommendations)

        details = match.eligibility_details
        if details and details.needs_manual_review:
            section += f"\n**수동 검토 필요:** {details.manual_review_reason}\n"
        return section.rstrip()

    @staticmethod
    def _bullets(heading: str, items: List[str]) -> str:
        if not items:
            return ""
        return f"\n**{heading}**\n\n" + "".join(f"- {item}\n" for item in items)

    def _generate_partner_table(self, partners: Sequence[PartnerMatchResult]) -> str:
        lines = [
            "## 🤝 컨소시엄 파트너 후보",
            "",
            "| 순위 | 기관 | 점수 | TRL | 산업 | 규모 | 경험 | 요약 |",
            "|------|------|------|-----|------|------|------|------|",
        ]
        for rank, result in enumerate(partners, 1):
            b = result.breakdown
            name = result.partner.name or result.partner_id
            lines.append(
                f"| {rank} | {name} | {result.score} | {b.trl_fit_score} | {b.industry_score} "
                f"| {b.scale_score} | {b.experience_score} | {result.explanation} |"
            )
        return "\n".join(lines)

    def _create_score_bar(self, value: int, maximum: int, width: int = 10) -> str:
        """Text progress bar, e.g. ███████░░░."""
        filled = 0 if maximum <= 0 else round(width * max(0, min(value, maximum)) / maximum)
        return "█" * filled + "░" * (width - filled)

    def _generate_footer(self) -> str:
        return """---

*본 리포트는 규칙 기반 매칭 엔진이 생성했습니다. 최종 지원 자격은 반드시 공고문을 확인하세요.*"""
