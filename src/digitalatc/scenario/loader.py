"""Read scenario documents from disk.

YAML (.yaml/.yml) and JSON (.json) files are supported; both hold the same
document structure.
"""

import json
import logging
from pathlib import Path

import yaml

from digitalatc.scenario.scenario import Scenario, ScenarioError

logger = logging.getLogger(__name__)

SCENARIO_SUFFIXES = (".yaml", ".yml", ".json")


def load_scenario_file(path: str | Path) -> Scenario:
    """Load and parse a scenario file.

    Args:
        path: Path to a .yaml, .yml or .json scenario.

    Returns:
        Parsed Scenario.

    Raises:
        ScenarioError: If the file is missing, unreadable, has an unsupported
            suffix or does not describe a valid scenario.
    """
    path = Path(path)

    if not path.exists():
        raise ScenarioError(f"Scenario file not found: {path}")

    suffix = path.suffix.lower()
    if suffix not in SCENARIO_SUFFIXES:
        raise ScenarioError(f"Unsupported scenario format '{suffix}': {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f) if suffix == ".json" else yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ScenarioError(f"Failed to read scenario {path}: {e}") from e

    scenario = Scenario.from_dict(data)
    logger.info("Loaded scenario '%s' (%d events) from %s", scenario.title, len(scenario.events), path)
    return scenario


def discover_scenarios(directory: str | Path) -> list[Path]:
    """List scenario files in a directory, sorted by name."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.suffix.lower() in SCENARIO_SUFFIXES)
