"""Configuration loading from YAML with environment overrides."""

import copy
import os
from typing import Dict

import yaml
from dotenv import load_dotenv


DEFAULT_CONFIG: Dict = {
    'detection': {
        'backend': 'local',
        'model_path': 'best.onnx',
        'target_size': 640,
        'confidence_threshold': 0.25,
        'keep_class_id': 0,
        'min_rel_size': 0.02,
        'max_rel_size': 0.9,
        'remote_url': None,
        'remote_timeout': 30.0
    },
    'occupancy': {
        'policy': 'sensitive-or'
    },
    'database': {
        'url': 'sqlite:///parking.db'
    },
    'server': {
        'host': '0.0.0.0',
        'port': 5000,
        'default_parking_lot_id': 1,
        'max_upload_mb': 16
    },
    'output': {
        'output_directory': 'output',
        'output_report': True,
        'log_detections': True
    },
    'logging': {
        'level': 'INFO'
    }
}

# Environment variable -> (section, key, type)
ENV_OVERRIDES = {
    'DATABASE_URL': ('database', 'url', str),
    'DETECTOR_BACKEND': ('detection', 'backend', str),
    'DETECTOR_URL': ('detection', 'remote_url', str),
    'MODEL_PATH': ('detection', 'model_path', str),
    'PORT': ('server', 'port', int),
    'LOG_LEVEL': ('logging', 'level', str),
}


def merge_config(base: Dict, overrides: Dict) -> Dict:
    """Recursively merge ``overrides`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_env_overrides(config: Dict, environ=None) -> Dict:
    """Apply environment variable overrides to configuration.
    
    Args:
        config: Configuration dictionary (modified in place)
        environ: Mapping to read from (defaults to os.environ)
        
    Returns:
        Updated configuration dictionary
    """
    environ = os.environ if environ is None else environ
    for name, (section, key, cast) in ENV_OVERRIDES.items():
        value = environ.get(name)
        if value:
            config.setdefault(section, {})[key] = cast(value)
    return config


def load_config(config_path: str = None) -> Dict:
    """Load configuration from a YAML file on top of the defaults.
    
    Variables from a ``.env`` file are loaded into the environment first and
    then applied as overrides.
    
    Args:
        config_path: Path to YAML configuration file; defaults only if None
        
    Returns:
        Configuration dictionary
        
    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid
    """
    load_dotenv()
    
    file_config = {}
    if config_path is not None:
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with open(config_path, 'r') as f:
            file_config = yaml.safe_load(f) or {}
    
    config = merge_config(DEFAULT_CONFIG, file_config)
    return apply_env_overrides(config)
