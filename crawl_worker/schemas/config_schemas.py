# schemas/config_schemas.py

"""
Pydantic schemas for crawl engine configuration templates.

Template files use camelCase keys; the models expose snake_case attributes
and dump back to camelCase for the crawl engine.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.worker import utc_now


class _TemplateModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")


class CrawlerSettings(_TemplateModel):
    """Network target and request settings"""

    url: str
    wait_time: Optional[int] = Field(None, alias="waitTime")
    timeout: Optional[int] = None
    retries: Optional[int] = None
    headers: Dict[str, str] = Field(default_factory=dict)


class SelectorRule(_TemplateModel):
    """A named extraction rule"""

    selector: str
    transform: Optional[str] = None
    multiple: bool = False
    required: bool = False


class OutputSettings(_TemplateModel):
    format: str
    filename: Optional[str] = None
    field_names: Optional[List[str]] = Field(None, alias="fields")


class ConfigTemplate(_TemplateModel):
    """Generic shape of an execution configuration"""

    crawler_settings: CrawlerSettings = Field(..., alias="crawlerSettings")
    selectors: Dict[str, SelectorRule]
    exclude_selectors: Optional[List[str]] = Field(None, alias="excludeSelectors")
    output_settings: Optional[OutputSettings] = Field(None, alias="outputSettings")
    transforms: Optional[Dict[str, Any]] = None
    validation: Optional[Dict[str, Any]] = None

    def to_engine_payload(self) -> Dict[str, Any]:
        """Serialize with template (camelCase) keys for the crawl engine."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ConfigSource(_TemplateModel):
    """Provenance of a resolved config"""

    template: str
    version: str = "latest"
    resolved_at: datetime = Field(default_factory=utc_now, alias="resolvedAt")


class ResolvedConfig(ConfigTemplate):
    """A template with parameters substituted and overrides applied"""

    resolved_parameters: Dict[str, Any] = Field(
        default_factory=dict, alias="resolvedParameters"
    )
    source: ConfigSource
