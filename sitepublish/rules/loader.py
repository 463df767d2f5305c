from pathlib import Path

import yaml
from pydantic import ValidationError

from sitepublish.rules.models import Rules

FENCE_OPENERS = ("```yaml", "```yml")


def extract_yaml_block(content: str) -> str:
    """Body of the first ```yaml fence, or the whole text when there is none."""
    body: list[str] | None = None
    for line in content.splitlines():
        marker = line.strip()
        if body is None:
            if marker.startswith(FENCE_OPENERS):
                body = []
        elif marker.startswith("```"):
            break
        else:
            body.append(line)
    return content if body is None else "\n".join(body)


def parse_rules(content: str) -> Rules:
    """
    Validate rules text.
    Accepts plain YAML or a markdown document with a single ```yaml block.
    Raises ValueError on bad YAML or schema violations.
    """
    try:
        data = yaml.safe_load(extract_yaml_block(content))
    except yaml.YAMLError as e:
        raise ValueError(f"Publishing rules are not valid YAML: {e}") from e

    try:
        return Rules.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Publishing rules failed validation:\n{e}") from e


def load_rules(path: Path) -> Rules:
    """
    Load and validate the rules file.
    Raises FileNotFoundError if file missing.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Rules file not found at: {path}")
    return parse_rules(path.read_text())
