"""
Reporter Profile Model
The locally persisted identity attached to reports filed from the CLI.
"""
from typing import Optional
from pydantic import BaseModel


class ReporterProfile(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
