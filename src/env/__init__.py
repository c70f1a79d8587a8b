"""
Runtime configuration: the cached Environment, the dotenv loader and the
directories Requestarr writes to.
"""

from env.env import (
    ConfigError,
    Environment,
    get_env,
    get_logging_env,
    load_dotenv_file,
    logs_dir,
    reset_env_caches,
)
from env.paths import (
    PROJECT_ROOT,
    auth_client_secrets_file,
    auth_dir,
    auth_token_file,
    out_dir,
    out_file,
    private_file,
)

__all__ = [
    "ConfigError",
    "Environment",
    "PROJECT_ROOT",
    "auth_client_secrets_file",
    "auth_dir",
    "auth_token_file",
    "get_env",
    "get_logging_env",
    "load_dotenv_file",
    "logs_dir",
    "out_dir",
    "out_file",
    "private_file",
    "reset_env_caches",
]
