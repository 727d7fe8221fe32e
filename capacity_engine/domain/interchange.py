"""Validated input/output documents exchanged with callers.

These models are the upstream gate in front of the calculation engine: the
engine itself trusts its inputs, so anything arriving from JSON or a caller
is shaped here first.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from capacity_engine.domain.models import Granularity


class HeatmapQuery(BaseModel):
    """Date range and options for one heatmap computation."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date
    granularity: Granularity = Granularity.WEEKLY
    project_id: Optional[str] = None
    include_unavailability: bool = False
    include_tasks: bool = False

    @model_validator(mode="after")
    def validate_range(self) -> "HeatmapQuery":
        if self.start_date >= self.end_date:
            raise ValueError("end_date must be after start_date")
        return self


class ResourceDocument(BaseModel):
    id: str = Field(min_length=1)
    name: str = ""
    resource_type: Literal["personnel", "equipment"] = "personnel"
    email: Optional[str] = None
    department_id: Optional[str] = None
    department_name: Optional[str] = None
    allocations: list[dict[str, Any]] = Field(default_factory=list)
    availability: list[dict[str, Any]] = Field(default_factory=list)
    unavailability: list[dict[str, Any]] = Field(default_factory=list)
    tasks: list[dict[str, Any]] = Field(default_factory=list)


class HeatmapRequestDocument(BaseModel):
    query: HeatmapQuery
    resources: list[ResourceDocument] = Field(default_factory=list)


class MigrationEnvelope(BaseModel):
    """``{"entities": [...], "_metadata": {...}}`` interchange document.

    ``_metadata`` carries provenance only; no transform reads it.
    """

    model_config = ConfigDict(populate_by_name=True)

    entities: list[dict[str, Any]] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict, alias="_metadata")

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class RuleMatch(BaseModel):
    emails: Optional[list[str]] = None
    roles: Optional[list[str]] = None

    @model_validator(mode="after")
    def validate_has_criteria(self) -> "RuleMatch":
        if not self.emails and not self.roles:
            raise ValueError("match must name at least one email or role")
        return self


class PassthroughPolicy(BaseModel):
    type: Literal["passthrough"] = "passthrough"


class DivideEquallyPolicy(BaseModel):
    type: Literal["divide_equally"] = "divide_equally"
    target_emails: list[str] = Field(min_length=1)


class FixedSharesPolicy(BaseModel):
    type: Literal["fixed_shares"] = "fixed_shares"
    shares: dict[str, float]

    @field_validator("shares")
    @classmethod
    def validate_shares(cls, value: dict[str, float]) -> dict[str, float]:
        if not value:
            raise ValueError("shares must name at least one target email")
        for email, weight in value.items():
            if not email.strip():
                raise ValueError("shares email key must be non-empty")
            if weight <= 0.0:
                raise ValueError("shares weight must be > 0")
        return value


class RelabelRolePolicy(BaseModel):
    type: Literal["relabel_role"] = "relabel_role"
    role: str = Field(min_length=1)


SplitPolicySpec = Annotated[
    Union[PassthroughPolicy, DivideEquallyPolicy, FixedSharesPolicy, RelabelRolePolicy],
    Field(discriminator="type"),
]


class SplitRuleSpec(BaseModel):
    name: str = Field(min_length=1)
    match: RuleMatch
    policy: SplitPolicySpec


class SplitRuleTable(BaseModel):
    rules: list[SplitRuleSpec] = Field(default_factory=list)
