"""Per-repository approve options loaded from a YAML plugin config.

Example ``approve.yaml``:

    approve:
      - repos:
          - kubernetes
          - kubernetes-sigs/example
        issue_required: true
        implicit_self_approve: true
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from approvebot.exceptions import ConfigError

logger = logging.getLogger(__name__)


class ApproveOptions(BaseModel):
    """Approve behaviour for a set of orgs and/or ``org/repo`` names."""

    repos: list[str] = Field(default_factory=list)
    issue_required: bool = False
    implicit_self_approve: bool = False


class ApproveConfig(BaseModel):
    """Top-level plugin configuration."""

    approve: list[ApproveOptions] = Field(default_factory=list)

    def options_for_repo(self, org: str, repo: str) -> ApproveOptions:
        """Return the first options entry listing ``org`` or ``org/repo``.

        Defaults to no issue required and no self approval.
        """
        full_name = f"{org}/{repo}"
        for options in self.approve:
            if org in options.repos or full_name in options.repos:
                return options
        return ApproveOptions()


def load_approve_config(path: str | Path) -> ApproveConfig:
    """Load and validate the plugin config.

    Args:
        path: Location of the YAML file

    Returns:
        The parsed config; an empty config when the file does not exist

    Raises:
        ConfigError: If the file is not valid YAML or fails validation
    """
    config_path = Path(path)
    if not config_path.exists():
        logger.info(f"No approve config at {config_path}, using defaults")
        return ApproveConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
        return ApproveConfig.model_validate(data)
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigError(f"Invalid approve config {config_path}: {e}") from e
