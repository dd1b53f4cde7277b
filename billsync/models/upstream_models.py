"""
Validated shapes of upstream provider responses.

The provider returns loosely-typed JSON. Each operation's response is parsed
into one of these models at the adapter boundary; anything that does not
match is rejected there instead of leaking untyped dicts inward.

Responsibility: Response schemas for the LegiScan-style provider API
"""

from typing import Optional, List, Union
from pydantic import BaseModel, ConfigDict, Field


class ProviderAlert(BaseModel):
    """Error detail returned with status=ERROR"""

    model_config = ConfigDict(extra="ignore")

    message: str = "Unknown error"


class ProviderEnvelope(BaseModel):
    """Fields common to every provider response"""

    model_config = ConfigDict(extra="ignore")

    status: str
    alert: Optional[ProviderAlert] = None

    @property
    def ok(self) -> bool:
        return self.status.upper() == "OK"


class DatasetPayload(BaseModel):
    """getDataset → dataset"""

    model_config = ConfigDict(extra="ignore")

    session_id: int
    session_name: Optional[str] = None
    dataset_hash: Optional[str] = None
    dataset_date: Optional[str] = None
    dataset_size: Optional[int] = None
    mime: Optional[str] = None
    zip: str = Field(min_length=1, description="Base64 encoded archive")


class DatasetResponse(ProviderEnvelope):
    dataset: DatasetPayload


class BillTextPayload(BaseModel):
    """getBillText → text"""

    model_config = ConfigDict(extra="ignore")

    doc_id: int
    bill_id: int
    date: Optional[str] = None
    type: Optional[str] = None
    type_id: Optional[Union[int, str]] = None
    mime: str
    mime_id: Optional[int] = None
    text_size: Optional[int] = None
    text_hash: Optional[str] = None
    doc: str = Field(description="Base64 encoded document")


class BillTextResponse(ProviderEnvelope):
    text: BillTextPayload


class BillTextRef(BaseModel):
    """Entry of getBill → bill.texts"""

    model_config = ConfigDict(extra="ignore")

    doc_id: int
    date: Optional[str] = None
    type: Optional[str] = None
    mime: Optional[str] = None


class BillPayload(BaseModel):
    """getBill → bill (only the fields the engine reads)"""

    model_config = ConfigDict(extra="ignore")

    bill_id: int
    bill_number: Optional[str] = None
    title: Optional[str] = None
    texts: List[BillTextRef] = Field(default_factory=list)


class BillResponse(ProviderEnvelope):
    bill: BillPayload
