import logging
import os
import sys
from pathlib import Path

from sitepublish.rules.models import Rules

logger = logging.getLogger(__name__)


class Settings:
    """Paths resolved from the environment, shared by the API and the CLI."""

    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("SITEPUBLISH_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "sitepublish.db")
        self.rules_path = Path(os.environ.get("SITEPUBLISH_RULES", self.base_dir / "rules.yaml"))
        self.migrations_dir = self.base_dir / "migrations"


def missing_env(rules: Rules) -> list[str]:
    return [name for name in rules.ops.required_env if name not in os.environ]


def validate_ops_rules(rules: Rules, data_dir: Path) -> None:
    """
    Validate operational requirements before startup.
    Exits the process when a requirement is not met.
    """
    missing = missing_env(rules)
    if missing:
        logger.critical("Missing required environment variables: %s", ", ".join(missing))
        sys.exit(1)

    if data_dir.exists() and not os.access(data_dir, os.W_OK):
        logger.critical("Data directory %s is not writable", data_dir)
        sys.exit(1)

    logger.info("Configuration validated for %s", rules.project.slug)
