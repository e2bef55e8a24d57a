from datetime import datetime

from pydantic import BaseModel


class LeadUploadResponse(BaseModel):
    id: int
    file_name: str
    lead_source: str
    total_leads: int
    uploaded_by: str
    upload_date: datetime
    warnings: list[str] = []
