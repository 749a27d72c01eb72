from __future__ import annotations

import logging
import logging.config
import os

import toml
import yaml

# Read in environment variables, set defaults if not present
package_location = os.path.dirname(__file__)

config_file = os.environ.get("PALEO_CONFIG", f"{package_location}/package_config.toml")
log_config_file = os.environ.get("PALEO_LOG_CONFIG", f"{package_location}/log.yml")

log = logging.getLogger()


def config_from_env(config: dict, environ=None) -> dict:
    """Overrides each [section] key with a PALEO_<SECTION>_<KEY> env var
    when one is set. Env values are parsed as yaml scalars so that
    numbers and lists keep their types.
    """
    environ = os.environ if environ is None else environ
    for parent_key, sub_config in config.items():
        if not isinstance(sub_config, dict):
            continue
        for sub_key, value in sub_config.items():
            key = f"PALEO_{parent_key.upper()}_{sub_key.upper()}"
            if key not in environ:
                continue
            coalesced_val = yaml.safe_load(environ[key])
            if coalesced_val != value:
                log.info(f"Existing value for {key} found: {coalesced_val}")
            sub_config[sub_key] = coalesced_val
    return config


def load_config(config_file: str) -> dict:
    config = dict()
    try:
        with open(config_file) as f:
            if 'toml' in config_file:
                config = toml.load(f)
            elif 'yml' in config_file or 'yaml' in config_file:
                config = yaml.safe_load(f)
            log.info(f"Loaded config from {config_file}")
    except Exception as error:
        log.error(f"Error loading config {config_file}: {error}")
        log.error(f"Default values will be used")
    return config or dict()


def get_setting(section: str, key: str, default=None):
    """Returns config[section][key], falling back to default
    when either the section or the key is missing.
    """
    value = config.get(section, {}).get(key, default)
    if value is None:
        return default
    return value


log_config = load_config(log_config_file)
try:
    logging.config.dictConfig(log_config)
except Exception as e:
    log.error(f"Error loading log config {log_config_file}: {e}")
    log.error(f"Default values will be used")
log = logging.getLogger('paleomag')

config = config_from_env(load_config(config_file))
