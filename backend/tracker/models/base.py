"""
Shared pydantic bases for the API contract with the dashboard.

- StrictRequest: request bodies. Unknown keys are a 422, so a typo such as
  "leetcode_solve" or an attempt to write the derived total_problems_solved
  is rejected instead of silently dropped.
- StrictResponse: response bodies and internal value objects. Built straight
  from ORM rows (from_attributes), ignoring columns the model does not expose.
"""

from pydantic import BaseModel, ConfigDict


class StrictRequest(BaseModel):
    """Request body base: unknown fields forbidden, strings stripped."""

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
        from_attributes=True,
    )


class StrictResponse(BaseModel):
    """Response base: validated, extra attributes ignored."""

    model_config = ConfigDict(
        extra="ignore",
        validate_default=True,
        from_attributes=True,
    )
