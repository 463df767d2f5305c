import os
from pathlib import Path

import pytest

from sitepublish.adapters.sqlite.migrator import SQLiteMigrator
from sitepublish.context import ServiceContext
from sitepublish.rules.loader import load_rules
from sitepublish.rules.models import Rules

PROJECT_ROOT = Path(__file__).parent.parent


@pytest.fixture
def test_data_dir(tmp_path):
    return str(tmp_path)


@pytest.fixture
def rules() -> Rules:
    """The real rules file from the project root."""
    return load_rules(PROJECT_ROOT / "rules.yaml")


@pytest.fixture
def db_path(test_data_dir) -> str:
    """A migrated, empty SQLite database."""
    path = os.path.join(test_data_dir, "sitepublish.db")
    SQLiteMigrator(path, str(PROJECT_ROOT / "migrations")).run_migrations()
    return path


@pytest.fixture
def fast_rules(rules) -> Rules:
    """Real rules with the status sample pause disabled so dispatch tests do not sleep."""
    return rules.model_copy(
        update={"publishing": rules.publishing.model_copy(update={"status_sample_delay_ms": 0})}
    )


@pytest.fixture
def test_ctx(db_path, fast_rules) -> ServiceContext:
    """Creates a full ServiceContext backed by a temporary SQLite DB."""
    return ServiceContext.create(db_path=db_path, rules=fast_rules)
