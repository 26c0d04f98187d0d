from pydantic import BaseModel, Field, computed_field
from shared.sales import Money
from shared.sales.money import ZERO

class ArchiveResult(BaseModel):
    archive_date: str
    archived_count: int = 0
    total_revenue: Money = ZERO
    failed_order_ids: list[str] = Field(default_factory=list)
    # True when the date already had metadata before (or was repaired by) this run
    already_archived: bool = False

    @computed_field
    @property
    def ok(self) -> bool:
        return not self.failed_order_ids

class SchedulerRun(BaseModel):
    archive_date: str
    started_at: str
    finished_at: str | None = None
    ok: bool = False
    archived_count: int = 0
    failed_order_ids: list[str] = Field(default_factory=list)
    error: str | None = None

class SchedulerStatus(BaseModel):
    state: str
    next_run_at: str | None = None
    last_run: SchedulerRun | None = None
