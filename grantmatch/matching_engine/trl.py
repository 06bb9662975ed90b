"""
TRL (Technology Readiness Level) scoring.

Graduated rather than pass/fail: full credit inside the program's range,
tapering credit up to three levels outside it. Being too advanced is penalized
less than being too early. Scale: 1-3 basic research, 4-6 applied R&D,
7-9 commercialization.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .data_models import FundingProgram, Organization, TrlConfidence
from .dates import round_half_up

PERFECT_SCORE = 20
NO_REQUIREMENT_SCORE = 15
NOT_PROVIDED_SCORE = 5

# distance outside the range -> (score if too low, score if too high)
_DISTANCE_SCORES: Dict[int, tuple] = {1: (12, 15), 2: (6, 10), 3: (3, 5)}
_DISTANCE_SUFFIX: Dict[int, str] = {1: "CLOSE", 2: "MODERATE"}

INFERRED_MULTIPLIER = 0.85
MISSING_MULTIPLIER = 0.7

_TRL_DESCRIPTIONS = {
    1: "TRL 1: 기본 원리 발견",
    2: "TRL 2: 기술 개념 정립",
    3: "TRL 3: 개념 증명 (PoC)",
    4: "TRL 4: 실험실 검증",
    5: "TRL 5: 실제 환경 시험",
    6: "TRL 6: 시제품 제작",
    7: "TRL 7: 파일럿 생산",
    8: "TRL 8: 실증 및 인증",
    9: "TRL 9: 양산 및 상용화",
}


@dataclass(frozen=True)
class TrlMatchResult:
    score: int
    reasons: List[str] = field(default_factory=list)
    difference: int = 0
    within_range: bool = False


def _confidence_multiplier(program: FundingProgram):
    if program.trl_inferred or program.trl_confidence == TrlConfidence.INFERRED:
        return INFERRED_MULTIPLIER, "TRL_INFERRED"
    if program.trl_confidence == TrlConfidence.MISSING:
        return MISSING_MULTIPLIER, "TRL_CONFIDENCE_MISSING"
    return 1.0, None


def score_trl(organization: Organization, program: FundingProgram) -> TrlMatchResult:
    """Score TRL compatibility (0-20) and the reason codes behind it."""
    org_trl = organization.matching_trl
    if not org_trl:
        return TrlMatchResult(NOT_PROVIDED_SCORE, ["TRL_NOT_PROVIDED"])

    low = program.min_trl or 1
    high = program.max_trl or 9

    if not program.min_trl and not program.max_trl:
        base, reasons, distance, within = NO_REQUIREMENT_SCORE, ["TRL_NO_REQUIREMENT"], 0, False
    elif low <= org_trl <= high:
        base, reasons, distance, within = PERFECT_SCORE, ["TRL_PERFECT_MATCH"], 0, True
    else:
        too_low = org_trl < low
        distance = low - org_trl if too_low else org_trl - high
        direction = "TOO_LOW" if too_low else "TOO_HIGH"
        reasons = [f"TRL_{direction}_{_DISTANCE_SUFFIX.get(distance, 'FAR')}"]
        scores = _DISTANCE_SCORES.get(distance)
        base = (scores[0] if too_low else scores[1]) if scores else 0
        within = False

    multiplier, confidence_reason = _confidence_multiplier(program)
    if confidence_reason:
        reasons.append(confidence_reason)
    return TrlMatchResult(round_half_up(base * multiplier), reasons, distance, within)


def trl_stage_name(trl: int) -> str:
    if 1 <= trl <= 3:
        return "기초연구"
    if 4 <= trl <= 6:
        return "응용연구/개발"
    if 7 <= trl <= 9:
        return "상용화/사업화"
    return "미분류"


def trl_description(trl: int) -> str:
    return _TRL_DESCRIPTIONS.get(trl, f"TRL {trl}")


def suggest_trl_progression(current_trl: int) -> Dict[str, str]:
    """Current stage, next stage and a one-line recommendation for an organization's TRL."""
    current_stage = trl_stage_name(current_trl)
    if current_trl <= 3:
        return {
            "current_stage": current_stage,
            "next_stage": "응용연구/개발",
            "recommendation": "기초연구 단계입니다. 응용연구로 진행하기 위한 프로그램을 찾아보세요.",
        }
    if current_trl <= 6:
        return {
            "current_stage": current_stage,
            "next_stage": "상용화/사업화",
            "recommendation": "응용연구 단계입니다. 시제품 제작 및 실증을 위한 프로그램을 찾아보세요.",
        }
    return {
        "current_stage": current_stage,
        "next_stage": "시장 확대",
        "recommendation": "상용화 단계입니다. 시장진입 및 사업화 지원 프로그램을 찾아보세요.",
    }


def is_trl_stage_compatible(org_trl: int, min_trl: Optional[int],
                            max_trl: Optional[int]) -> Dict[str, object]:
    """Coarse compatibility label: perfect, good, moderate or poor."""
    if not min_trl and not max_trl:
        return {"compatible": True, "compatibility": "good"}

    low = min_trl or 1
    high = max_trl or 9
    if low <= org_trl <= high:
        return {"compatible": True, "compatibility": "perfect"}
    nearest = min(abs(org_trl - low), abs(org_trl - high))
    if nearest <= 1:
        return {"compatible": True, "compatibility": "good"}
    if nearest <= 2:
        return {"compatible": True, "compatibility": "moderate"}
    return {"compatible": False, "compatibility": "poor"}
