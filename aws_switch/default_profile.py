"""Reading and rewriting the [default] profile."""

import logging

from .config import DEFAULT_OUTPUT, DEFAULT_PROFILE
from .credentials import format_expiry, parse_expiry
from .errors import AwsFileError
from .sections import build_section, detect_newline, find_section, get_params, replace_section
from .store import read_config, read_credentials, write_config, write_credentials

LOG = logging.getLogger(__name__)

DEFAULT_KEYS = (
    'aws_access_key_id',
    'aws_secret_access_key',
    'aws_session_token',
    'expiry_date',
    'profile',
)


def build_default_credentials_section(credentials, profile_name, newline='\n'):
    expiry = format_expiry(credentials.expiry_date) if credentials.expiry_date else None
    return build_section(DEFAULT_PROFILE, [
        ('aws_access_key_id', credentials.aws_access_key_id),
        ('aws_secret_access_key', credentials.aws_secret_access_key),
        ('aws_session_token', credentials.aws_session_token or None),
        ('expiry_date', expiry),
        ('profile', profile_name),
    ], newline)


def build_default_config_section(region, newline='\n'):
    return build_section(DEFAULT_PROFILE, [
        ('region', region or None),
        ('output', DEFAULT_OUTPUT),
    ], newline)


def upsert_default_section(text, section):
    """Replace the [default] section in place, or prepend it if absent."""
    span = find_section(text, DEFAULT_PROFILE, allow_profile_prefix=False)
    if span is None:
        return section + text
    return replace_section(text, span, section)


def set_default(credentials, profile_name, region=None):
    """
    Point the [default] profile at a resolved set of credentials.

    The credentials file is written first, then the config file. There is
    no rollback if the second write fails. New sections use the line
    ending each file already has.

    Args:
        credentials: CredentialSet to copy into [default]
        profile_name: Name of the profile the default now mirrors
        region: Region written to the config file's [default] section;
            when None the section only carries ``output``

    Returns:
        dict: Result with success status and message
    """
    if not credentials or not credentials.aws_access_key_id or not credentials.aws_secret_access_key:
        return {
            'success': False,
            'message': f'No credentials to set as default for profile "{profile_name}"'
        }

    try:
        creds_text = read_credentials()
        creds_text = upsert_default_section(
            creds_text,
            build_default_credentials_section(credentials, profile_name, detect_newline(creds_text))
        )
        write_credentials(creds_text)

        config_text = read_config()
        config_text = upsert_default_section(
            config_text,
            build_default_config_section(region, detect_newline(config_text))
        )
        write_config(config_text)

        LOG.debug('Default profile now mirrors %s', profile_name)
        return {
            'success': True,
            'message': f'AWS profile "{profile_name}" successfully set up as default.'
        }

    except (AwsFileError, OSError) as e:
        return {
            'success': False,
            'message': f'Fail to update the default profile: {str(e)}'
        }


def get_default():
    """
    Get the fields of the [default] section of the credentials file.

    A missing file or section is a normal state: every field is then None.

    Returns:
        dict: aws_access_key_id, aws_secret_access_key, aws_session_token,
        expiry_date (datetime) and profile

    Raises:
        AwsFileError: The credentials file cannot be decoded
    """
    text = read_credentials()
    span = find_section(text, DEFAULT_PROFILE, allow_profile_prefix=False)
    body = span.body(text) if span else ''
    params = get_params(body, DEFAULT_KEYS)

    result = {key: params[key] or None for key in DEFAULT_KEYS}
    result['expiry_date'] = parse_expiry(result['expiry_date'])
    return result

