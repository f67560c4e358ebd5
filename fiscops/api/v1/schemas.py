"""Pydantic schemas for API request/response validation"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class ViewRequest(BaseModel):
    """Body for POST /v1/ui/view"""

    view: Literal["portefeuille", "segments", "plan", "ifu", "rapport"]


class SearchRequest(BaseModel):
    query: str = ""


class FilterRequest(BaseModel):
    """Either filter may be omitted to leave it unchanged"""

    segment: Optional[str] = None
    status: Optional[str] = None


class PageRequest(BaseModel):
    action: Literal["next", "previous", "goto"]
    page: Optional[int] = Field(None, ge=1)


class OpenRequest(BaseModel):
    taxpayer_id: str = Field(..., min_length=1)


class TaxpayerCreate(BaseModel):
    """Body for POST /v1/taxpayers, every field has the 'new case' default"""

    name: str = Field("Nouveau contribuable", min_length=1)
    sector: str = "Commerce"
    company_type: str = "PME"
    revenue: float = Field(0, ge=0)
    debt: float = Field(0, ge=0)
    age_days: int = Field(0, ge=0)


class TaxpayerEdit(BaseModel):
    """Body for PATCH /v1/taxpayers/{id}"""

    notes: str = ""
    segment: str
    status: str


class TaxpayerSchema(BaseModel):
    id: str
    name: str
    sector: str
    company_type: str
    revenue: float
    debt: float
    age_days: int
    status: str
    segment: str
    notes: str
    last_action_at: Optional[str] = None
    index: int


class SyncStatus(BaseModel):
    backend: str
    pending: bool
    in_progress: bool
    failed: bool
    error: Optional[str] = None
    failed_chunks: List[int] = []
    last_written: int = 0


class Credentials(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class SessionResponse(BaseModel):
    storage_mode: str
    authenticated: bool
    email: Optional[str] = None
    message: str = ""


class CenterRequest(BaseModel):
    center_id: str = Field(..., min_length=1)


class CenterResponse(BaseModel):
    center_id: str


class ReportResponse(BaseModel):
    filename: str
    lines: List[str]
