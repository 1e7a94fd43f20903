"""AWS Switch - A CLI tool to switch the default AWS profile, including SSO profiles."""

__version__ = "1.0.0"

from .aws_cli import AwsCli
from .credentials import CredentialSet, get_cached_credentials
from .default_profile import get_default, set_default
from .profiles import Profile, create_profile, delete_profiles, list_profiles
from .refresh import refresh_credentials, resolve_credentials
from .sso import SsoSession, get_sso_session

__all__ = [
    'AwsCli',
    'CredentialSet',
    'Profile',
    'SsoSession',
    'create_profile',
    'delete_profiles',
    'get_cached_credentials',
    'get_default',
    'get_sso_session',
    'list_profiles',
    'refresh_credentials',
    'resolve_credentials',
    'set_default',
]
