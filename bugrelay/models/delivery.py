"""
Delivery Models
Outcome of handing one event to one sink, and of one pipeline run.
"""
from typing import List, Optional
from pydantic import BaseModel


class DeliveryResult(BaseModel):
    sink: str                      # linear / github / discord / logward / webhook
    ok: bool
    status_code: Optional[int] = None
    output: str = ""               # raw response text, echoed not parsed
    url: Optional[str] = None      # created issue URL when the sink returns one


class PipelineResult(BaseModel):
    report_id: str = ""
    dropped: bool = False
    reason: str = ""
    deliveries: List[DeliveryResult] = []

    @property
    def ok(self) -> bool:
        return self.dropped or all(d.ok for d in self.deliveries)
