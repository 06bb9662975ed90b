"""
Eligibility Checker
===================

Three-tier eligibility classification of an organization for a program.

- FULLY_ELIGIBLE: every hard requirement met and at least one soft preference met
- CONDITIONALLY_ELIGIBLE: hard requirements met, no soft preference met
- INELIGIBLE: any hard requirement failed (including missing data)

Missing organization data never raises; it fails the requirement and flags the
result for manual review instead. Requirement descriptions are Korean, as they
are shown to end users.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from .data_models import (
    EMPLOYEE_COUNT_MIDPOINTS,
    REVENUE_MIDPOINTS,
    EligibilityLevel,
    EligibilityResult,
    FundingProgram,
    InvestmentEvent,
    Organization,
)
from .dates import years_since


def format_krw(amount: float) -> str:
    """Format a KRW amount with 조/억 units for large values."""
    if amount >= 1_000_000_000_000:
        return f"{amount / 1_000_000_000_000:.1f}조"
    if amount >= 100_000_000:
        return f"{amount / 100_000_000:.1f}억"
    return f"{int(amount):,}"


def total_verified_investment(history: Optional[Tuple[InvestmentEvent, ...]]) -> Optional[int]:
    """Sum of verified investment amounts; None when no history is recorded."""
    if not history:
        return None
    return sum(event.amount for event in history if event.verified)


def employee_midpoint(organization: Organization) -> Optional[int]:
    if organization.employee_count is None:
        return None
    return EMPLOYEE_COUNT_MIDPOINTS.get(organization.employee_count)


def revenue_midpoint(organization: Organization) -> Optional[int]:
    if organization.revenue_range is None:
        return None
    return REVENUE_MIDPOINTS.get(organization.revenue_range)


def _check_range(value, minimum, maximum, too_low: str, too_high: str, met: str,
                 failed: List[str], met_list: List[str]) -> None:
    if minimum and value < minimum:
        failed.append(too_low)
    if maximum and value > maximum:
        failed.append(too_high)
    if (not minimum or value >= minimum) and (not maximum or value <= maximum):
        met_list.append(met)


def check_eligibility(program: FundingProgram, organization: Organization,
                      now: Optional[datetime] = None) -> EligibilityResult:
    """
    Classify an organization's eligibility for a program.

    Args:
        program: Program carrying the hard and soft requirements
        organization: Applicant profile
        now: Reference time for operating-years checks (defaults to the current time)

    Returns:
        EligibilityResult with tier, met/failed descriptions and manual-review flags
    """
    failed: List[str] = []
    met: List[str] = []
    needs_manual_review = False
    manual_review_reason: Optional[str] = None

    # Hard requirements

    if program.required_certifications:
        owned = set(organization.certifications)
        missing = [cert for cert in program.required_certifications if cert not in owned]
        if missing:
            failed.append(f"필수 인증 미보유: {', '.join(missing)}")
        else:
            met.append(f"필수 인증 보유: {', '.join(program.required_certifications)}")

    if program.required_investment_amount:
        required = program.required_investment_amount
        total = total_verified_investment(organization.investment_history)
        if total is None:
            failed.append(f"투자 유치 실적 미확인 (필요: ₩{required:,})")
            needs_manual_review = True
            manual_review_reason = "투자 유치 실적 정보 없음 - 사용자에게 투자 이력 입력 요청 필요"
        elif total < required:
            failed.append(f"투자 유치 금액 부족 (보유: ₩{total:,}, 필요: ₩{required:,})")
        else:
            met.append(f"투자 유치 금액 충족 (보유: ₩{total:,}, 필요: ₩{required:,})")

    min_employees = program.required_min_employees
    max_employees = program.required_max_employees
    if min_employees or max_employees:
        employees = employee_midpoint(organization)
        if employees is None:
            failed.append("직원 수 정보 없음")
            needs_manual_review = True
            manual_review_reason = manual_review_reason or "직원 수 정보 미입력"
        else:
            _check_range(
                employees, min_employees, max_employees,
                f"최소 직원 수 미충족 (보유: {employees}명, 필요: {min_employees}명 이상)",
                f"최대 직원 수 초과 (보유: {employees}명, 필요: {max_employees}명 이하)",
                f"직원 수 충족 ({employees}명)",
                failed, met,
            )

    min_revenue = program.required_min_revenue
    max_revenue = program.required_max_revenue
    if min_revenue or max_revenue:
        revenue = revenue_midpoint(organization)
        if revenue is None:
            failed.append("매출액 정보 없음")
            needs_manual_review = True
            manual_review_reason = manual_review_reason or "매출액 정보 미입력"
        else:
            _check_range(
                revenue, min_revenue, max_revenue,
                f"최소 매출액 미충족 (보유: ₩{format_krw(revenue)}, 필요: ₩{format_krw(min_revenue or 0)} 이상)",
                f"최대 매출액 초과 (보유: ₩{format_krw(revenue)}, 필요: ₩{format_krw(max_revenue or 0)} 이하)",
                f"매출액 충족 (₩{format_krw(revenue)})",
                failed, met,
            )

    min_years = program.required_operating_years
    max_years = program.max_operating_years
    if min_years or max_years:
        years = years_since(organization.business_established_date, now)
        if years is None:
            failed.append("설립일 정보 없음")
            needs_manual_review = True
            manual_review_reason = manual_review_reason or "사업자 설립일 정보 미입력"
        else:
            _check_range(
                years, min_years, max_years,
                f"최소 업력 미충족 (보유: {years}년, 필요: {min_years}년 이상)",
                f"최대 업력 초과 (보유: {years}년, 필요: {max_years}년 이하)",
                f"업력 충족 ({years}년)",
                failed, met,
            )

    # Soft requirements

    soft_met = False

    if program.preferred_certifications:
        owned = set(organization.certifications) | set(organization.government_certifications)
        matched = [cert for cert in program.preferred_certifications if cert in owned]
        if matched:
            met.append(f"우대 인증 보유: {', '.join(matched)}")
            soft_met = True

    if organization.prior_grant_wins and organization.prior_grant_wins > 0:
        met.append(f"정부지원 수혜 실적: {organization.prior_grant_wins}건")
        soft_met = True

    if organization.industry_awards:
        met.append(f"수상 경력: {len(organization.industry_awards)}건")
        soft_met = True

    hard_met = not failed
    if not hard_met:
        level = EligibilityLevel.INELIGIBLE
    elif soft_met:
        level = EligibilityLevel.FULLY_ELIGIBLE
    else:
        level = EligibilityLevel.CONDITIONALLY_ELIGIBLE

    return EligibilityResult(
        level=level,
        hard_requirements_met=hard_met,
        soft_requirements_met=soft_met,
        failed_requirements=tuple(failed),
        met_requirements=tuple(met),
        needs_manual_review=needs_manual_review,
        manual_review_reason=manual_review_reason,
    )
