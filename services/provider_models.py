"""
Typed views of DataForSEO responses.

The API leaves most fields nullable; every model here maps a missing or null
value to an explicit default so the analyzers never have to guess.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TASK_COMPLETE_CODE = 20000


class ProviderModel(BaseModel):
    model_config = ConfigDict(extra='ignore')


def _none_to_zero(value):
    return 0 if value is None else value


class TaskStatus(ProviderModel):
    id: str
    status_code: int = 0
    status_message: Optional[str] = None

    @field_validator('status_code', mode='before')
    @classmethod
    def null_is_zero(cls, value):
        return _none_to_zero(value)

    @property
    def is_complete(self) -> bool:
        return self.status_code == TASK_COMPLETE_CODE


class SummaryChecks(ProviderModel):
    mobile_friendly: bool = False

    @field_validator('mobile_friendly', mode='before')
    @classmethod
    def null_is_false(cls, value):
        return False if value is None else value


class OnPageSummary(ProviderModel):
    checks: SummaryChecks = Field(default_factory=SummaryChecks)

    @field_validator('checks', mode='before')
    @classmethod
    def null_checks(cls, value):
        return {} if value is None else value


class ImageRecord(ProviderModel):
    src: Optional[str] = None
    alt: Optional[str] = None


class PageMeta(ProviderModel):
    title: Optional[str] = None
    description: Optional[str] = None
    h1: List[str] = Field(default_factory=list)
    images: List[ImageRecord] = Field(default_factory=list)

    @field_validator('h1', mode='before')
    @classmethod
    def h1_as_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value else []
        if isinstance(value, list):
            return [h for h in value if h is not None]
        return value

    @field_validator('images', mode='before')
    @classmethod
    def null_images(cls, value):
        if value is None:
            return []
        if isinstance(value, list):
            return [img for img in value if img is not None]
        return value


class PageTiming(ProviderModel):
    time_to_interactive: Optional[float] = None


class PageRecord(ProviderModel):
    url: Optional[str] = None
    status_code: int = 0
    meta: Optional[PageMeta] = None
    page_timing: Optional[PageTiming] = None

    @field_validator('status_code', mode='before')
    @classmethod
    def null_is_zero(cls, value):
        return _none_to_zero(value)


class BacklinkSummary(ProviderModel):
    backlinks: int = 0
    referring_domains: int = 0
    dofollow: int = 0
    nofollow: int = 0

    @field_validator('backlinks', 'referring_domains', 'dofollow', 'nofollow', mode='before')
    @classmethod
    def null_is_zero(cls, value):
        return _none_to_zero(value)


class BacklinkRecord(ProviderModel):
    rank: int = 0
    anchor: Optional[str] = None
    domain_from: Optional[str] = None
    url_from: Optional[str] = None
    dofollow: Optional[bool] = None

    @field_validator('rank', mode='before')
    @classmethod
    def null_is_zero(cls, value):
        return _none_to_zero(value)


class ReferringDomain(ProviderModel):
    domain: Optional[str] = None
    rank: int = 0
    backlinks: int = 0

    @field_validator('rank', 'backlinks', mode='before')
    @classmethod
    def null_is_zero(cls, value):
        return _none_to_zero(value)
