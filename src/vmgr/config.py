"""
Manage the configuration of the tool
"""
import os
from pathlib import Path
import yaml

from vmgr.constants import StopMode

DEFAULT_CONFIG = {
    'URI': 'qemu:///system',
    'TICK_INTERVAL': 1.0,
    'FETCH_TIMEOUT': 5,
    'CONNECT_TIMEOUT': 10,
    'STOP_MODE': StopMode.DESTROY,
    'LOG_FILE': str(Path.home() / '.cache' / 'vmgr' / 'vmgr.log'),
}

def get_config_paths():
    """Returns the potential paths for the config file."""
    return [
        Path.home() / '.config' / 'vmgr' / 'config.yaml',
        Path('/etc') / 'vmgr' / 'config.yaml'
    ]

def get_user_config_path():
    """Returns the path to the user's config file."""
    return get_config_paths()[0]

def load_config():
    """
    Loads the configuration from the first found config file.
    If no config file is found, returns the default configuration.
    Merges the loaded configuration with default values to ensure all keys are present.
    """
    config_path = None
    user_config = {}

    for path in get_config_paths():
        if path.exists():
            config_path = path
            break

    if config_path:
        with open(config_path, 'r') as f:
            user_config = yaml.safe_load(f) or {}

    config = DEFAULT_CONFIG.copy()
    if user_config:
        config.update(user_config)
        # a key set to null in yaml falls back to its default
        for key, value in config.items():
            if value is None and key in DEFAULT_CONFIG:
                config[key] = DEFAULT_CONFIG[key]

    if config.get('STOP_MODE') not in (StopMode.DESTROY, StopMode.SHUTDOWN):
        config['STOP_MODE'] = DEFAULT_CONFIG['STOP_MODE']

    return config

def save_config(config):
    """Saves the configuration to the user's config file."""
    config_path = get_user_config_path()
    os.makedirs(config_path.parent, exist_ok=True)
    with open(config_path, 'w') as f:
        yaml.dump(config, f, default_flow_style=False)

def get_log_path(config=None) -> Path:
    """Returns the log file path, creating its directory if needed."""
    if config is None:
        config = load_config()
    log_path = Path(os.path.expanduser(config.get('LOG_FILE') or DEFAULT_CONFIG['LOG_FILE']))
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return log_path
