"""
Input schemas for raw organization and program records.

Raw records arrive from JSON exports or DataFrames with camelCase keys, string
numbers and empty cells. These pydantic models validate the shape once, at the
boundary, and are then converted into the immutable engine dataclasses.
"""

import json
from datetime import date, datetime
from typing import Any, List, Optional

import pandas as pd
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .data_models import (
    BusinessStructure,
    EmployeeCountRange,
    FundingProgram,
    InvestmentEvent,
    Organization,
    OrganizationStatus,
    OrganizationType,
    ProgramStatus,
    RevenueRange,
    TrlConfidence,
)


def _is_missing(value: Any) -> bool:
    """None, blank strings, NaN and NaT all count as absent."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _trl_field(name: str):
    # Upstream exports spell the acronym both ways: targetResearchTrl / targetResearchTRL
    camel = to_camel(name)
    return Field(None, ge=1, le=9,
                 validation_alias=AliasChoices(name, camel, camel.replace("Trl", "TRL")))


def _as_list(value: Any) -> Any:
    if isinstance(value, str):
        return [value]
    return value


def _as_pydatetime(value: Any) -> Any:
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return value


class RecordSchema(BaseModel):
    """Shared configuration: camelCase or snake_case keys, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def drop_missing_values(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if not _is_missing(value)}
        return data


class InvestmentRecord(RecordSchema):
    amount: int = Field(..., ge=0)
    verified: bool = False
    source: Optional[str] = None
    invested_on: Optional[date] = Field(
        None, validation_alias=AliasChoices("invested_on", "investedOn", "date"))

    @field_validator("invested_on", mode="before")
    @classmethod
    def parse_timestamp(cls, value: Any) -> Any:
        return _as_pydatetime(value)

    def to_model(self) -> InvestmentEvent:
        return InvestmentEvent(**self.model_dump())


class OrganizationRecord(RecordSchema):
    """Raw organization profile."""

    id: str
    type: OrganizationType
    name: str = ""
    status: OrganizationStatus = OrganizationStatus.ACTIVE
    profile_completed: bool = True

    industry_sector: Optional[str] = None
    technology_readiness_level: Optional[int] = _trl_field("technology_readiness_level")
    target_research_trl: Optional[int] = _trl_field("target_research_trl")
    business_structure: Optional[BusinessStructure] = None

    rd_experience: bool = False
    collaboration_count: int = Field(0, ge=0)

    research_focus_areas: List[str] = Field(default_factory=list)
    key_technologies: List[str] = Field(default_factory=list)
    desired_consortium_fields: List[str] = Field(default_factory=list)
    desired_technologies: List[str] = Field(default_factory=list)
    commercialization_capabilities: List[str] = Field(default_factory=list)

    target_partner_trl: Optional[int] = _trl_field("target_partner_trl")
    expected_trl_level: Optional[int] = _trl_field("expected_trl_level")
    target_org_scale: Optional[EmployeeCountRange] = None
    target_org_revenue: Optional[RevenueRange] = None
    researcher_count: Optional[int] = Field(None, ge=0)

    employee_count: Optional[EmployeeCountRange] = None
    revenue_range: Optional[RevenueRange] = None
    certifications: List[str] = Field(default_factory=list)
    government_certifications: List[str] = Field(default_factory=list)
    industry_awards: List[str] = Field(default_factory=list)
    prior_grant_wins: int = Field(0, ge=0)
    investment_history: Optional[List[InvestmentRecord]] = None
    business_established_date: Optional[date] = None

    @field_validator("research_focus_areas", "key_technologies", "desired_consortium_fields",
                     "desired_technologies", "commercialization_capabilities", "certifications",
                     "government_certifications", "industry_awards", mode="before")
    @classmethod
    def wrap_single_value(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("investment_history", mode="before")
    @classmethod
    def parse_investment_json(cls, value: Any) -> Any:
        # Stored as a JSON column in the relational export
        if isinstance(value, str):
            try:
                return json.loads(value)
            except json.JSONDecodeError as e:
                raise ValueError(f"invalid JSON ({e})") from e
        return value

    @field_validator("business_established_date", mode="before")
    @classmethod
    def parse_timestamp(cls, value: Any) -> Any:
        return _as_pydatetime(value)

    def to_model(self) -> Organization:
        data = self.model_dump(exclude_unset=True, exclude={"investment_history"})
        if self.investment_history is not None:
            data["investment_history"] = [event.to_model() for event in self.investment_history]
        return Organization(**data)


class ProgramRecord(RecordSchema):
    """Raw funding-program announcement."""

    id: str
    title: str
    status: ProgramStatus = ProgramStatus.ACTIVE
    deadline: Optional[datetime] = None
    application_start: Optional[datetime] = None
    budget_amount: Optional[int] = Field(None, ge=0)

    target_type: Optional[List[OrganizationType]] = None
    min_trl: Optional[int] = _trl_field("min_trl")
    max_trl: Optional[int] = _trl_field("max_trl")
    category: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    allowed_business_structures: Optional[List[BusinessStructure]] = None

    required_certifications: List[str] = Field(default_factory=list)
    preferred_certifications: List[str] = Field(default_factory=list)
    required_min_employees: Optional[int] = Field(None, ge=0)
    required_max_employees: Optional[int] = Field(None, ge=0)
    required_min_revenue: Optional[int] = Field(None, ge=0)
    required_max_revenue: Optional[int] = Field(None, ge=0)
    required_investment_amount: Optional[int] = Field(None, ge=0)
    required_operating_years: Optional[int] = Field(None, ge=0)
    max_operating_years: Optional[int] = Field(None, ge=0)

    trl_inferred: bool = False
    trl_confidence: Optional[TrlConfidence] = None

    agency_id: Optional[str] = None
    scraped_at: Optional[datetime] = None

    @field_validator("target_type", "keywords", "allowed_business_structures",
                     "required_certifications", "preferred_certifications", mode="before")
    @classmethod
    def wrap_single_value(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("deadline", "application_start", "scraped_at", mode="before")
    @classmethod
    def parse_timestamp(cls, value: Any) -> Any:
        return _as_pydatetime(value)

    @field_validator("trl_confidence", mode="before")
    @classmethod
    def lower_confidence(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def check_trl_range(self) -> "ProgramRecord":
        if self.min_trl is not None and self.max_trl is not None and self.min_trl > self.max_trl:
            raise ValueError(f"min_trl {self.min_trl} > max_trl {self.max_trl}")
        return self

    def to_model(self) -> FundingProgram:
        return FundingProgram(**self.model_dump(exclude_unset=True))
