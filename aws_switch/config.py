"""Locations of the AWS files and the tool's fixed settings."""

import os
from datetime import timedelta
from pathlib import Path

AWS_COMMAND = 'aws'
MIN_AWS_CLI_MAJOR_VERSION = 2

# Credentials expiring within this margin are treated as already expired
EXPIRY_SKEW = timedelta(minutes=2)

SSO_POLL_INTERVAL_SECONDS = 2
SSO_LOGIN_TIMEOUT_SECONDS = 5 * 60

DEFAULT_PROFILE = 'default'
DEFAULT_OUTPUT = 'json'


def get_aws_dir():
    """Get the ~/.aws directory."""
    return Path.home() / '.aws'


def get_credentials_path():
    """Get the path to the AWS credentials file."""
    override = os.environ.get('AWS_SHARED_CREDENTIALS_FILE')
    if override:
        return Path(override).expanduser()
    return get_aws_dir() / 'credentials'


def get_config_path():
    """Get the path to the AWS config file."""
    override = os.environ.get('AWS_CONFIG_FILE')
    if override:
        return Path(override).expanduser()
    return get_aws_dir() / 'config'


def get_sso_cache_dir():
    """Get the directory where the AWS CLI caches SSO sessions."""
    return get_aws_dir() / 'sso' / 'cache'


def get_cli_cache_dir():
    """Get the directory where the AWS CLI caches exported credentials."""
    return get_aws_dir() / 'cli' / 'cache'
