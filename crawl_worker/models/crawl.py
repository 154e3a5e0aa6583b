# models/crawl.py

"""
Data model for crawl engine output.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class CrawlOutcome(BaseModel):
    """What the crawl engine reports back for one resolved config."""

    success: bool
    record_count: Optional[int] = Field(None, ge=0)
    quality_score: Optional[float] = Field(None, ge=0.0, le=1.0)
    output_path: Optional[str] = None
    summary: Dict[str, Any] = Field(default_factory=dict)
    timed_out: bool = False
