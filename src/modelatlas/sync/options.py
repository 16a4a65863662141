"""
Options for a synchronization run.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from modelatlas.merge.authority import FieldAuthority
from modelatlas.merge.strategies import MergeStrategy


class SyncOptions(BaseModel):
    """
    What to synchronize and how to merge it.
    """

    provider_id: Optional[str] = Field(
        None, description="Only synchronize this provider"
    )
    disable_local_catalog: bool = Field(
        default=False, description="Do not use the local catalog source"
    )
    disable_provider_api: bool = Field(
        default=False, description="Do not query provider APIs"
    )
    merge_strategy: Optional[MergeStrategy] = Field(
        None, description="Catalog merge strategy; defaults to settings"
    )
    custom_field_authorities: List[FieldAuthority] = Field(
        default_factory=list,
        description="Authorities replacing the defaults for the same pattern",
    )
    timeout: Optional[float] = Field(
        None, gt=0, description="Deadline for the whole run in seconds"
    )
    strict: bool = Field(
        default=False, description="Raise instead of returning partial results on cancel"
    )
    seed_from_local: bool = Field(
        default=False,
        description="Start from a copy of the local catalog instead of an empty one",
    )
    fresh: bool = Field(
        default=False,
        description="Report every synchronized model as added instead of diffing",
    )

    @field_validator("provider_id")
    @classmethod
    def blank_provider_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None
