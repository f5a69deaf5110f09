"""Configuration management for the quote engine."""

import json
import logging
from pathlib import Path
from typing import Dict, Any

from config.settings import get_config_path
from quotations.pricing.pricing_tables import (
    NestingParameters,
    PricingRules,
    PricingTables,
    SheetPolicy,
    policies_from_dict,
)

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = CONFIG_DIR / "default_config.json"


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from JSON file.

    Args:
        config_path: Path to config file (default: QUOTE_CONFIG_PATH or default_config.json)

    Returns:
        Configuration dictionary
    """
    if config_path is None:
        config_path = get_config_path()
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = json.load(f)
    logger.debug(f"Loaded quote config from {config_path}")
    return config


def save_config(config: Dict[str, Any], config_path: str = None):
    """
    Save configuration to JSON file.

    Args:
        config: Configuration dictionary
        config_path: Path to save config (default: default_config.json)
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(config_path)

    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=4, ensure_ascii=False)


def create_tables_from_config(config: Dict[str, Any] = None) -> PricingTables:
    """
    Create PricingTables from configuration dictionary.

    Args:
        config: Configuration dict (loads default if None)
    """
    if config is None:
        config = load_config()
    return PricingTables.from_dict(config.get('pricing_tables', {}))


def create_rules_from_config(config: Dict[str, Any] = None) -> PricingRules:
    """Create PricingRules (markup, minimum margin) from configuration."""
    if config is None:
        config = load_config()
    return PricingRules.from_dict(config.get('pricing_rules', {}))


def create_nesting_from_config(config: Dict[str, Any] = None) -> NestingParameters:
    """Create NestingParameters from configuration."""
    if config is None:
        config = load_config()
    return NestingParameters.from_dict(config.get('nesting', {}))


def create_policies_from_config(config: Dict[str, Any] = None) -> Dict[str, SheetPolicy]:
    """Create {family: SheetPolicy} from configuration."""
    if config is None:
        config = load_config()
    return policies_from_dict(config.get('sheet_policies', {}))


__all__ = [
    'load_config',
    'save_config',
    'create_tables_from_config',
    'create_rules_from_config',
    'create_nesting_from_config',
    'create_policies_from_config',
    'DEFAULT_CONFIG_PATH'
]
