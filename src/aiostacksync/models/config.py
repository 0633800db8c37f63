"""Repository descriptor models.

The settings file uses camelCase keys (``sourceDirectory``, ``autoSync`` ...);
snake_case names are accepted too.
Everything is validated and normalised here so the sync engine can rely on
required fields being present.
"""

from __future__ import annotations

from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

DEFAULT_FILE_PATTERNS: tuple[str, ...] = ("**/*.proto",)
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = ("**/backend/**",)
DEFAULT_AUTO_SYNC_INTERVAL = 300


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PostSyncCommand(_ConfigModel):
    """A shell command run in *directory* after a successful copy."""

    directory: str = "."
    command: str


class AutoSyncConfig(_ConfigModel):
    """Recurring sync settings; *interval* is in seconds."""

    enabled: bool = False
    interval: float = DEFAULT_AUTO_SYNC_INTERVAL


class InternalSyncConfig(_ConfigModel):
    """Read the source tree directly from a local or network path."""

    enabled: bool = False
    path: str = Field(
        default="",
        validation_alias=AliasChoices("path", "networkPath", "network_path"),
    )


class RepositoryConfig(_ConfigModel):
    """One sync target: where the files come from and where they go."""

    name: str = Field(min_length=1)
    url: str = ""
    branch: str = "main"
    source_directory: str = ""
    target_directory: str = ""
    file_patterns: list[str] = Field(default_factory=lambda: list(DEFAULT_FILE_PATTERNS))
    exclude_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_PATTERNS)
    )
    post_sync_commands: list[PostSyncCommand] = Field(default_factory=list)
    auto_sync: AutoSyncConfig | None = None
    internal_sync: InternalSyncConfig | None = None
    selected_files: list[str] | None = None

    @field_validator("file_patterns", mode="before")
    @classmethod
    def _default_file_patterns(cls, value: Any) -> Any:
        return list(DEFAULT_FILE_PATTERNS) if value is None else value

    @field_validator("exclude_patterns", mode="before")
    @classmethod
    def _default_exclude_patterns(cls, value: Any) -> Any:
        return list(DEFAULT_EXCLUDE_PATTERNS) if value is None else value

    @field_validator("post_sync_commands", mode="before")
    @classmethod
    def _default_commands(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("source_directory")
    @classmethod
    def _normalise_source_directory(cls, value: str) -> str:
        return value.replace("\\", "/").strip("/")

    @field_validator("selected_files")
    @classmethod
    def _normalise_selected_files(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [p.replace("\\", "/").lstrip("/") for p in value]

    @model_validator(mode="after")
    def _check_source(self) -> RepositoryConfig:
        if self.uses_internal_source:
            if not self.internal_sync or not self.internal_sync.path:
                raise ValueError(
                    f"Repository {self.name!r}: internalSync is enabled but has no path"
                )
        elif not self.url:
            raise ValueError(f"Repository {self.name!r}: url is required")
        return self

    @property
    def uses_internal_source(self) -> bool:
        return bool(self.internal_sync and self.internal_sync.enabled)

    @property
    def auto_sync_enabled(self) -> bool:
        return bool(self.auto_sync and self.auto_sync.enabled)

    @property
    def identity(self) -> str:
        """Key of this repository's change-detection baseline."""
        if self.uses_internal_source and self.internal_sync is not None:
            return f"internal:{self.internal_sync.path}"
        return self.url

    def to_settings_dict(self) -> dict[str, Any]:
        """Serialise back to the camelCase settings layout."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class SyncSettings(_ConfigModel):
    """The full ``{repositories: [...]}`` settings document."""

    repositories: list[RepositoryConfig] = Field(default_factory=list)

    @field_validator("repositories", mode="before")
    @classmethod
    def _default_repositories(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_unique_names(self) -> SyncSettings:
        seen: set[str] = set()
        for repo in self.repositories:
            if repo.name in seen:
                raise ValueError(f"Duplicate repository name: {repo.name!r}")
            seen.add(repo.name)
        return self

    def get(self, name: str) -> RepositoryConfig | None:
        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None
