"""Configuration for Mission Control."""

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class Config(BaseSettings):
    """Application configuration.

    Values come from init kwargs, then ``MISSION_CONTROL_*`` environment
    variables, then ``mission-control.yaml`` in the working directory.
    """

    model_config = SettingsConfigDict(
        env_prefix="MISSION_CONTROL_",
        yaml_file="mission-control.yaml",
        extra="ignore",
    )

    database_url: str = Field(default="sqlite:///./data/mission-control.db")
    task_queue_path: str = Field(default="./workspace-shared/TASK-QUEUE.md")
    agents_dir: str = Field(default="./workspace-shared/agents")
    agent_file_suffix: str = Field(default=".md")
    allow_dependency_cycles: bool = Field(default=True)
    api_prefix: str = Field(default="/api/v1")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=3001)
    log_level: str = Field(default="info")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls),
        )
