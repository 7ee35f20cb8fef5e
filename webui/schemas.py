"""
BGPsec Filter WebUI Pydantic Schemas
Request/Response validation models
"""

from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class BgpsecFilterRequest(BaseModel):
    """Add filter request body"""
    asn: Optional[Union[int, str]] = None
    ski: Optional[str] = Field(default=None, alias="SKI")
    comment: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class BgpsecFilterEntry(BaseModel):
    """Stored filter with its id"""
    id: int
    asn: Optional[int] = None
    ski: Optional[str] = Field(default=None, alias="SKI")
    comment: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class BgpsecFilterList(BaseModel):
    """Paginated filter listing"""
    filters: List[BgpsecFilterEntry]
    total: int
    page: int
    per_page: int


class FilterCreated(BaseModel):
    id: int
