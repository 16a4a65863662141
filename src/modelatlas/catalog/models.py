"""
Pydantic schema for models and providers held in a catalog.

Every optional attribute defaults to ``None`` meaning "unknown"; the merge
engine never treats ``None`` (or an empty string/collection) as a value a
source can be authoritative for.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class Author(BaseModel):
    """
    Organization or person credited with a model.
    """

    id: str
    name: Optional[str] = None
    url: Optional[str] = None


class ModelModalities(BaseModel):
    input: List[str] = Field(default_factory=list)
    output: List[str] = Field(default_factory=list)


class ModelFeatures(BaseModel):
    """
    Capability flags. ``None`` means the source does not know.
    """

    modalities: Optional[ModelModalities] = None
    available: Optional[bool] = None
    deprecated: Optional[bool] = None
    chat: Optional[bool] = None
    completion: Optional[bool] = None
    embedding: Optional[bool] = None
    vision: Optional[bool] = None
    audio: Optional[bool] = None
    reasoning: Optional[bool] = None
    function_calling: Optional[bool] = None
    streaming: Optional[bool] = None
    structured_outputs: Optional[bool] = None


class ModelLimits(BaseModel):
    context_window: Optional[int] = Field(default=None, ge=0)
    max_output: Optional[int] = Field(default=None, ge=0)
    request_timeout: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_output_fits_context(self) -> "ModelLimits":
        if (
            self.context_window is not None
            and self.max_output is not None
            and self.max_output > self.context_window
        ):
            raise ValueError(
                f"max_output {self.max_output} exceeds context_window {self.context_window}"
            )
        return self


class FloatRange(BaseModel):
    min: Optional[float] = None
    max: Optional[float] = None
    default: Optional[float] = None


class ModelGeneration(BaseModel):
    """
    Supported generation parameters and their ranges.
    """

    temperature: Optional[FloatRange] = None
    top_p: Optional[FloatRange] = None
    frequency_penalty: Optional[FloatRange] = None
    presence_penalty: Optional[FloatRange] = None
    max_tokens: Optional[int] = Field(default=None, ge=0)
    seed: Optional[bool] = None
    stop: Optional[bool] = None


class ModelPricing(BaseModel):
    """
    Token pricing per one million tokens.
    """

    currency: Optional[str] = None
    input: Optional[float] = Field(default=None, ge=0)
    output: Optional[float] = Field(default=None, ge=0)
    cache_read: Optional[float] = Field(default=None, ge=0)
    cache_write: Optional[float] = Field(default=None, ge=0)
    batch_input: Optional[float] = Field(default=None, ge=0)
    batch_output: Optional[float] = Field(default=None, ge=0)


class ModelMetadata(BaseModel):
    release_date: Optional[date] = None
    knowledge_cutoff: Optional[date] = None
    open_weights: Optional[bool] = None
    tags: List[str] = Field(default_factory=list)


class Model(BaseModel):
    """
    A single model record, unique by ``id`` within its provider.
    """

    id: str = Field(..., min_length=1, description="Provider-scoped model identifier")
    name: Optional[str] = None
    description: Optional[str] = None
    authors: List[Author] = Field(default_factory=list)
    features: Optional[ModelFeatures] = None
    limits: Optional[ModelLimits] = None
    generation: Optional[ModelGeneration] = None
    pricing: Optional[ModelPricing] = None
    metadata: Optional[ModelMetadata] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("id")
    @classmethod
    def strip_id(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("model id must not be blank")
        return stripped


class ProviderAPIKey(BaseModel):
    """
    Declares where a provider's API key comes from.
    """

    name: str = Field(..., description="Environment variable holding the key")
    pattern: Optional[str] = Field(None, description="Regex the key must match")
    header: Optional[str] = Field(None, description="Header carrying the key")
    scheme: Optional[str] = Field(None, description="Auth scheme, e.g. Bearer")
    required: bool = True


class ProviderEnvVar(BaseModel):
    name: str
    required: bool = True
    description: Optional[str] = None


class Provider(BaseModel):
    """
    A vendor exposing models, plus the credentials needed to query it.

    ``api_key_value`` and ``env_values`` are runtime-only and never dumped.
    """

    id: str = Field(..., min_length=1)
    name: Optional[str] = None
    headquarters: Optional[str] = None
    icon_url: Optional[str] = None
    status_page_url: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[ProviderAPIKey] = None
    env_vars: List[ProviderEnvVar] = Field(default_factory=list)
    authors: List[str] = Field(default_factory=list)

    api_key_value: Optional[str] = Field(default=None, exclude=True, repr=False)
    env_values: Dict[str, str] = Field(default_factory=dict, exclude=True, repr=False)

    def is_api_key_required(self) -> bool:
        return self.api_key is not None and self.api_key.required

    def with_credentials(self, environ: Mapping[str, str]) -> "Provider":
        """
        Return a copy with API key and env var values read from ``environ``.
        """
        loaded = self.model_copy(deep=True)
        if self.api_key is not None:
            loaded.api_key_value = environ.get(self.api_key.name) or None
        loaded.env_values = {
            var.name: environ[var.name]
            for var in self.env_vars
            if environ.get(var.name)
        }
        return loaded

    def has_api_key(self) -> bool:
        """
        True when a key value is loaded and matches the declared pattern.
        """
        if self.api_key is None or not self.api_key_value:
            return False
        pattern = self.api_key.pattern
        if pattern and pattern != ".*":
            return re.fullmatch(pattern, self.api_key_value) is not None
        return True

    def missing_config_keys(self) -> List[str]:
        """
        Names of the credentials/env vars that prevent querying this provider.
        """
        missing = []
        if self.is_api_key_required() and not self.has_api_key():
            missing.append(self.api_key.name)
        for var in self.env_vars:
            if var.required and not self.env_values.get(var.name):
                missing.append(var.name)
        return missing

    def has_required_credentials(self) -> bool:
        return not self.missing_config_keys()
