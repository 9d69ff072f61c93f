"""Integration data models.

What an integration exposes to the form builder (lists and their fields)
and what it receives back (a submission). Pydantic, so the host can store
and serialize them as is.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class IntegrationField(BaseModel):
    """A field on a remote list that form fields can be mapped to."""

    handle: str = Field(..., description="Key used in the outbound payload")
    name: str = Field(..., description="Label shown in the mapping UI")
    required: bool = Field(False, description="Remote API rejects records without it")


class EmailMarketingList(BaseModel):
    """An addressable subscriber list and its fields."""

    id: str
    name: str
    fields: List[IntegrationField] = Field(default_factory=list)

    def get_field(self, handle: str) -> Optional[IntegrationField]:
        """Get a field by handle."""
        for list_field in self.fields:
            if list_field.handle == handle:
                return list_field
        return None


class FormSettings(BaseModel):
    """Result of settings discovery. No lists means the remote was unreachable."""

    lists: List[EmailMarketingList] = Field(default_factory=list)

    def get_list(self, list_id: str) -> Optional[EmailMarketingList]:
        """Get a list by ID."""
        for item in self.lists:
            if item.id == list_id:
                return item
        return None


class Submission(BaseModel):
    """A completed form submission."""

    id: str = Field(..., description="Submission identifier in the host")
    form_handle: str = Field("", description="Handle of the submitted form")
    values: Dict[str, Any] = Field(default_factory=dict)

    def get_field_value(self, path: str) -> Any:
        """Get a submitted value by handle; dotted paths reach into sub-fields.

        Returns None when any segment is missing.
        """
        value: Any = self.values
        for segment in path.split("."):
            if not isinstance(value, dict) or segment not in value:
                return None
            value = value[segment]
        return value
