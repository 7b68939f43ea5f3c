from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional

class ComplianceRequest(BaseModel):
    schema_text: str = ""
    query: str = ""

class ClassificationRequest(BaseModel):
    schema_text: str = ""
    sample: str = ""

class FieldSpec(BaseModel):
    name: str
    type: Literal["unknown"] = "unknown"

class SampleExtraction(BaseModel):
    schema_text: str
    sample_text: str
    fields: List[FieldSpec]
    rows: int = Field(0, ge=0)

class TabState(BaseModel):
    selected: bool
    active: bool

class TabsResponse(BaseModel):
    mode: str
    tabs: Dict[str, TabState]

class ErrorResponse(BaseModel):
    error: str
    reason: str
    meta: Optional[dict] = None
