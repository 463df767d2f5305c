from pydantic import BaseModel, Field


class PublishingRules(BaseModel):
    enabled: bool = True
    live_state_name: str = "Live"
    status_sample_delay_ms: int = Field(default=300, ge=0)
    ignore_unmodified_assets: bool = False


class ClosureRules(BaseModel):
    max_rounds: int = Field(default=10, ge=1)
    batch_size: int = Field(default=1000, ge=1)


class ConnectivityRules(BaseModel):
    timeout_seconds: float = Field(default=5.0, gt=0)


class DevJobsRules(BaseModel):
    poll_interval_seconds: float = Field(default=5.0, gt=0)
    autostart: bool = False


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class Rules(BaseModel):
    project: ProjectRules
    publishing: PublishingRules = Field(default_factory=PublishingRules)
    closure: ClosureRules = Field(default_factory=ClosureRules)
    connectivity: ConnectivityRules = Field(default_factory=ConnectivityRules)
    dev_jobs: DevJobsRules = Field(default_factory=DevJobsRules)
    ops: OpsRules = Field(default_factory=OpsRules)
