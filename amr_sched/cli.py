"""
CLI module for the AMR scheduler.

Handles run configuration loading, validation, and dispatching.
"""

from typing import Dict, Any, Optional
from pathlib import Path
import yaml

from .config import ConfigValidationError, GAConfig


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigValidationError("Configuration file is empty")

    if not isinstance(config, dict):
        raise ConfigValidationError("Configuration file must contain a mapping")

    return config


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    for field in ['tasks', 'output']:
        if field not in config:
            raise ConfigValidationError(f"Missing required field: '{field}'")

    if not isinstance(config['output'], dict):
        raise ConfigValidationError("'output' must be a dictionary")

    if 'root' not in config['output']:
        raise ConfigValidationError("Missing required field: 'output.root'")

    _validate_tasks_config(config['tasks'])

    ga_section = config.get('ga', {})
    if not isinstance(ga_section, dict):
        raise ConfigValidationError("'ga' must be a dictionary")
    GAConfig.from_dict(ga_section)

    seed = config.get('random_seed')
    if seed is not None and not isinstance(seed, int):
        raise ConfigValidationError(f"'random_seed' must be an integer, got: {seed}")


def _validate_tasks_config(tasks_config: Any) -> None:
    """
    Validate the tasks section: exactly one of 'csv' or 'generate'.

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    if not isinstance(tasks_config, dict):
        raise ConfigValidationError("'tasks' must be a dictionary")

    has_csv = 'csv' in tasks_config
    has_generate = 'generate' in tasks_config

    if not has_csv and not has_generate:
        raise ConfigValidationError("'tasks' requires either 'csv' or 'generate'")

    if has_csv and has_generate:
        raise ConfigValidationError(
            "'tasks' cannot have both 'csv' and 'generate'. Please specify only one."
        )

    if has_csv:
        csv_path = Path(tasks_config['csv'])
        if not csv_path.exists():
            raise ConfigValidationError(f"Task file not found: {csv_path}")

    if has_generate:
        generate = tasks_config['generate']
        if not isinstance(generate, dict):
            raise ConfigValidationError("'tasks.generate' must be a dictionary")

        count = generate.get('count')
        if not isinstance(count, int) or count <= 0:
            raise ConfigValidationError(
                f"'tasks.generate.count' must be a positive integer, got: {count}"
            )


def run_from_config(config_path: str, output_overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Load run configuration and execute the FIFO vs GA comparison.

    This is the main entry point called by amr_cli.py.

    Args:
        config_path: Path to run configuration YAML file
        output_overrides: Values merged into the output section before validation

    Returns:
        Summary dict from run_comparison

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigValidationError: If config is invalid
    """
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)

    if output_overrides:
        if config.get('output') is None:
            config['output'] = {}
        if isinstance(config['output'], dict):
            config['output'].update(output_overrides)

    print(f"Validating configuration...")
    validate_run_config(config)

    from .orchestration import run_comparison
    summary = run_comparison(config)

    print("\nRun completed successfully!")
    return summary
