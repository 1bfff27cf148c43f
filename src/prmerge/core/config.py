"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from prmerge.core.base import BaseConfig, BaseState
from prmerge.core.log import Logger
from prmerge.core.yaml_settings import YamlWithIncludesSettingsSource
from prmerge.merge.release_trains import ActiveReleaseTrains

# Usage in YAML: {platformdirs.user_state_dir}, {os.getcwd}, {Path.cwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

MergeMethod = Literal["merge", "squash", "rebase"]

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class GithubConfig(BaseConfig):
    """Upstream repository on GitHub."""

    owner: str = Field(description="Repository owner, e.g. 'angular'")
    name: str = Field(description="Repository name, e.g. 'components'")
    token: str | None = Field(
        default=None,
        description=(
            "GitHub access token. Needs the 'repo' (or 'public_repo') "
            "and 'workflow' scopes."
        ),
    )
    private: bool = Field(
        default=False,
        description="Whether the repository is private",
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API",
    )
    git_url: str | None = Field(
        default=None,
        description=(
            "Override for the URL used to fetch and push. Defaults to "
            "the token-authenticated github.com URL."
        ),
    )


class MergeMethodLabel(BaseConfig):
    """Merge method to use when a PR carries a matching label."""

    pattern: str = Field(description="Regular expression matched on labels")
    method: MergeMethod


class ApiMergeConfig(BaseConfig):
    """Merging through the GitHub merge API."""

    default: MergeMethod = Field(
        default="squash",
        description="Merge method used when no label override matches",
    )
    labels: list[MergeMethodLabel] = Field(
        default_factory=list,
        description="Label-based merge method overrides",
    )


class MergeConfig(BaseConfig):
    """Pull request validation and merge behaviour."""

    merge_ready_label: str | None = Field(
        default="action: merge",
        description="Pattern of the label marking a PR merge-ready",
    )
    cla_signed_label: str | None = Field(
        default="cla: yes",
        description="Pattern of the label signalling a signed CLA",
    )
    caretaker_note_label: str | None = Field(
        default="merge: caretaker note",
        description="Pattern of the label asking for caretaker attention",
    )
    breaking_change_label: str = Field(
        default="flag: breaking change",
        description="Label required on PRs with breaking changes",
    )
    required_base_commits: dict[str, str] = Field(
        default_factory=dict,
        description=(
            "Base branch name to commit SHA every PR targeting it must "
            "contain"
        ),
    )
    target_label_exempt_scopes: list[str] = Field(
        default_factory=list,
        description=(
            "Commit scopes excluded from the feature/breaking change "
            "checks against the target label"
        ),
    )
    api_merge: ApiMergeConfig | None = Field(
        default=None,
        description=(
            "Merge through the GitHub API. When unset, commits are "
            "cherry-picked locally and pushed."
        ),
    )
    verbose_git: bool = Field(
        default=False,
        description="Log every git command at info instead of debug",
    )


class LtsConfig(BaseConfig):
    """Long-term support window checks for the "target: lts" label."""

    package_name: str | None = Field(
        default=None,
        description="npm package whose dist-tags track LTS versions",
    )
    registry_url: str = Field(
        default="https://registry.npmjs.org",
        description="npm registry base URL",
    )
    active_support_months: int = Field(
        default=6,
        description="Months of active support after a major release",
    )
    lts_months: int = Field(
        default=12,
        description="Months of LTS after active support ends",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    github: GithubConfig = Field(description="Upstream repository")
    merge: MergeConfig = Field(
        default_factory=MergeConfig,
        description="Validation and merge settings",
    )
    release_trains: ActiveReleaseTrains = Field(
        description="Active release trains (next, latest, RC)"
    )
    lts: LtsConfig = Field(
        default_factory=LtsConfig,
        description="LTS window checks",
    )
    workdir: Path = Field(
        default_factory=Path.cwd,
        description="Local clone of the repository",
    )
    log_level: str = Field(
        default="info",
        alias="log-level",
        description=(
            "Console log level: 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "prmerge"
        ),
        description=(
            "Root directory for all log files "
            "(supports {platformdirs.*} templates)"
        ),
    )

    model_config = ConfigDict(populate_by_name=True)

    def setup_logger(self) -> None:
        """Initialize the global logger singleton from this config.

        Called by State once templates have been substituted, so sink
        paths see the final log_root.
        """
        from prmerge.core.log import setup_logger
        from prmerge.core.yaml_settings import _cleanup_bootstrap_logger

        if self.logger is None:
            self.logger = Logger(level=self.log_level)

        setup_logger(
            log_root=self.log_root,
            run_name=f"{self.github.owner}-{self.github.name}",
            console=self.logger.console,
            file=self.logger.file,
            logfire=self.logger.logfire,
            level=self.logger.level,
        )
        _cleanup_bootstrap_logger()

    def close(self):
        """Close config and the global logger singleton."""
        from prmerge.core.log import logger
        logger.close()
        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================

class MergeState(BaseState):
    """Runtime state of one merge run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    pr_number: int
    force: bool = Field(
        default=False,
        description="Ignore non-fatal validation failures",
    )
    pull_request: Any = Field(
        default=None,
        description="Validated PullRequest",
    )
    strategy: Any = Field(
        default=None,
        description="Active MergeStrategy",
    )
    previous_branch_or_revision: str | None = Field(
        default=None,
        description="Checkout to restore once the run finishes",
    )
    restored: bool = Field(
        default=False,
        description="Whether the previous checkout has been restored",
    )
    cleaned_up: bool = Field(
        default=False,
        description="Whether temporary branches have been deleted",
    )


# ============================================================
# STATE (config + CLI)
# ============================================================

class State(BaseSettings):
    """Complete application state.

    Loaded from, in priority order: init arguments, YAML files (package
    defaults < user config < ./prmerge.yaml < --include), .env, and
    PRMERGE_ prefixed environment variables
    (PRMERGE_CONFIG__GITHUB__TOKEN=...).
    """

    config: Config = Field(description="Application configuration")
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="prmerge.yaml",
        env_file=".env",
        env_prefix="PRMERGE_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
    )

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
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> State:
        """Replace {a.b.c} templates in string and Path fields.

        A template resolves against TEMPLATE_NAMESPACE modules first and
        then against the state itself, e.g. "{config.workdir}/out" or
        "{platformdirs.user_state_dir}/prmerge". Unresolvable templates
        are left unchanged.
        """
        self._substitute_recursive(self)
        self.config.setup_logger()
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            if obj.model_config.get("frozen"):
                return
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i, item in enumerate(obj):
                obj[i] = self._substitute_value(item)

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        if isinstance(value, Path):
            return Path(self._substitute_string(str(value)))
        if isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        def replace_template(match):
            parts = match.group(1).split(".")
            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    obj = obj()
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = [
    "ApiMergeConfig",
    "Config",
    "GithubConfig",
    "LtsConfig",
    "MergeConfig",
    "MergeMethod",
    "MergeMethodLabel",
    "MergeState",
    "State",
]
