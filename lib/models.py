"""Value objects for the status page"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Note(BaseModel):
    """A stored note; read-only once inserted"""

    model_config = ConfigDict(frozen=True)

    id: int
    content: str = Field(min_length=1)
    created_at: str


class PageView(BaseModel):
    """Everything the index template needs, built fresh per request"""

    environment: str
    db_host: str
    db_name: str
    db_user: str
    db_version: str = ""
    connected: bool = False
    error: Optional[str] = None
    notes: List[Note] = Field(default_factory=list)
    table_exists: bool = False
