import datetime as dt
from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


class DashboardOverview(BaseModel):
    """KPI snapshot from get_dashboard_overview; extra keys from the RPC are kept."""
    model_config = ConfigDict(extra="allow")

    total_users: int = 0
    total_rounds: int = 0
    total_comments: int = 0
    total_reactions: int = 0
    users_today: int = 0
    rounds_today: int = 0
    active_users_today: int = 0
    engagement_rate: Optional[float] = None


class MetricRow(BaseModel):
    """One day of a time-series metric RPC; metric columns vary by RPC."""
    model_config = ConfigDict(extra="allow")

    date: Optional[dt.date] = None

    def metrics(self) -> Dict[str, Any]:
        return dict(self.model_extra or {})


class AdminPage(BaseModel, Generic[T]):
    """A page of a moderation listing plus the unpaged total."""
    rows: List[T] = Field(default_factory=list)
    total_count: int = 0
    limit: int = 50
    offset: int = 0

    @computed_field
    @property
    def has_more(self) -> bool:
        return self.offset + len(self.rows) < self.total_count


class AdminDeleteResult(BaseModel):
    """Outcome of an admin delete/ban RPC with cascaded row counts."""
    model_config = ConfigDict(extra="allow")

    success: bool = False
    deleted_comments: int = 0
    deleted_reactions: int = 0
    message: Optional[str] = None
