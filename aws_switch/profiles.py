"""AWS profile discovery, creation and deletion."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .aws_cli import AwsCli
from .config import DEFAULT_OUTPUT, DEFAULT_PROFILE
from .default_profile import get_default
from .errors import AwsFileError, AwsSwitchError, ProfileConflictError, ValidationError
from .regions import is_known_region
from .sections import (
    build_section,
    delete_section,
    detect_newline,
    find_section,
    get_params,
    iter_sections,
    strip_profile_prefix,
)
from .store import read_config, read_credentials, write_config, write_credentials

LOG = logging.getLogger(__name__)

PROFILE_NAME_PATTERN = re.compile(r'[a-z0-9-]{2,}')
PROFILE_KEYS = (
    'sso_start_url',
    'sso_region',
    'sso_account_id',
    'sso_role_name',
    'region',
    'output',
)


@dataclass
class Profile:
    """A named profile from the AWS config file."""

    name: str
    region: Optional[str] = None
    output: Optional[str] = None
    sso_start_url: Optional[str] = None
    sso_region: Optional[str] = None
    sso_account_id: Optional[str] = None
    sso_role_name: Optional[str] = None

    @property
    def is_sso(self):
        return bool(self.sso_start_url)

    @property
    def friendly_name(self):
        if not self.is_sso:
            return self.name
        role = self.sso_role_name or 'unknown'
        account = self.sso_account_id or 'unknown'
        return f'{self.name} (SSO [role:{role} - account:{account}])'


def validate_profile_name(name):
    """
    Check a new profile name.

    Names are at least 2 characters of lowercase letters, digits and
    hyphens.

    Raises:
        ValidationError: The name is invalid
    """
    if not name:
        raise ValidationError("Missing required argument 'name'.")
    if not PROFILE_NAME_PATTERN.fullmatch(name):
        raise ValidationError(
            f'Invalid profile name "{name}". Use at least 2 lowercase letters, '
            'digits or hyphens.'
        )
    if name == DEFAULT_PROFILE:
        raise ValidationError(f"'{DEFAULT_PROFILE}' is a reserved profile name.")


def parse_profiles(config_text):
    """Build the non-default profiles of a config file, in file order."""
    profiles = []
    for header, body in iter_sections(config_text):
        name = strip_profile_prefix(header)
        # [sso-session x], [services x] and other typed sections are not profiles
        if not name or name == DEFAULT_PROFILE or len(name.split()) > 1:
            continue

        params = get_params(body, PROFILE_KEYS)
        profile = Profile(name=name, **{key: value or None for key, value in params.items()})
        if profile.sso_region:
            profile.region = profile.sso_region
        profiles.append(profile)
    return profiles


def list_profiles(cli=None):
    """
    Get every profile defined in the AWS config file except ``default``.

    Args:
        cli: AwsCli used to check the AWS CLI v2 is installed

    Returns:
        list: Profile objects in the order they appear in the file
    """
    cli = cli or AwsCli()
    cli.ensure_available()

    config_text = read_config()
    if not config_text.strip():
        return []

    profiles = parse_profiles(config_text)
    LOG.debug('Found %d profile(s)', len(profiles))
    return profiles


def get_existing_profile_names():
    """Get every section name used in either file, without ``profile`` prefixes."""
    names = set()
    for text in (read_config(), read_credentials()):
        names.update(strip_profile_prefix(header) for header, _ in iter_sections(text))
    return names


def _require(value, argument, hint=''):
    if not value:
        raise ValidationError(f"Missing required argument '{argument}'.{hint}")


def _append_section(text, section, newline):
    if text and not text.endswith('\n'):
        text += newline
    return text + section


def create_profile(name, aws_access_key_id=None, aws_secret_access_key=None, region=None,
                   sso_start_url=None, sso_region=None, sso_account_id=None, sso_role_name=None):
    """
    Add a new profile to the AWS files.

    Static profiles get a section in both the credentials and the config
    file. SSO profiles (``sso_start_url`` set) only get a config section.
    Sections are always appended. A file that was empty is first seeded
    with a [default] section.

    Returns:
        dict: Result with success status and message
    """
    try:
        validate_profile_name(name)
        _require(region, 'region')
        if not is_known_region(region):
            raise ValidationError(f'Unknown AWS region "{region}".')

        if sso_start_url:
            sso_hint = ' With AWS SSO profile this argument is required.'
            _require(sso_region, 'sso_region', sso_hint)
            _require(sso_account_id, 'sso_account_id', sso_hint)
            _require(sso_role_name, 'sso_role_name', sso_hint)
            if not is_known_region(sso_region):
                raise ValidationError(f'Unknown AWS region "{sso_region}".')
        else:
            _require(aws_access_key_id, 'aws_access_key_id')
            _require(aws_secret_access_key, 'aws_secret_access_key')

        if name in get_existing_profile_names():
            raise ValidationError(f'Profile "{name}" already exists.')

        config_text = read_config()
        config_newline = detect_newline(config_text)
        if not config_text.strip():
            config_text = build_section(
                DEFAULT_PROFILE, [('region', region), ('output', DEFAULT_OUTPUT)], config_newline
            )

        config_params = []
        if sso_start_url:
            config_params += [
                ('sso_start_url', sso_start_url),
                ('sso_region', sso_region),
                ('sso_account_id', sso_account_id),
                ('sso_role_name', sso_role_name),
            ]
        config_params += [('region', region), ('output', DEFAULT_OUTPUT)]
        config_text = _append_section(
            config_text, build_section(f'profile {name}', config_params, config_newline), config_newline
        )

        if not sso_start_url:
            creds_text = read_credentials()
            creds_newline = detect_newline(creds_text)
            if not creds_text.strip():
                creds_text = build_section(DEFAULT_PROFILE, [], creds_newline)
            creds_text = _append_section(creds_text, build_section(name, [
                ('aws_access_key_id', aws_access_key_id),
                ('aws_secret_access_key', aws_secret_access_key),
            ], creds_newline), creds_newline)
            write_credentials(creds_text)

        write_config(config_text)

        LOG.debug('Created %s profile %s', 'SSO' if sso_start_url else 'static', name)
        return {
            'success': True,
            'message': f'✓ Profile "{name}" created'
        }

    except (AwsFileError, ValidationError, OSError) as e:
        return {
            'success': False,
            'message': f'Fail to create AWS profile: {str(e)}'
        }


def delete_profiles(profile_names):
    """
    Remove profiles from both AWS files.

    Nothing is deleted if ``default`` or the profile the default currently
    mirrors is requested. A profile may live in only one of the files.

    Returns:
        dict: Result with success status and message
    """
    profile_names = list(profile_names or [])
    if not profile_names:
        return {'success': True, 'message': 'No profile to delete'}

    try:
        if DEFAULT_PROFILE in profile_names:
            raise ValidationError(f"The '{DEFAULT_PROFILE}' profile cannot be deleted.")

        current = get_default()['profile']
        if current and current in profile_names:
            raise ProfileConflictError(
                f'Profile "{current}" is the current default profile. '
                'Switch to another profile before deleting it.'
            )

        original_config = read_config()
        original_creds = read_credentials()
        config_text = original_config
        creds_text = original_creds

        for name in profile_names:
            config_text = delete_section(config_text, find_section(config_text, name))
            creds_text = delete_section(
                creds_text, find_section(creds_text, name, allow_profile_prefix=False)
            )

        if original_config and config_text != original_config:
            write_config(config_text)
        if original_creds and creds_text != original_creds:
            write_credentials(creds_text)

        LOG.debug('Deleted profile(s) %s', ', '.join(profile_names))
        return {
            'success': True,
            'message': f'✓ Deleted profile(s): {", ".join(profile_names)}'
        }

    except (AwsSwitchError, OSError) as e:
        return {
            'success': False,
            'message': f'Fail to delete AWS profiles: {str(e)}'
        }


def configure_sso_profile(name, cli=None):
    """
    Create an SSO profile through the interactive ``aws configure sso`` wizard.

    Returns:
        dict: Result with success status and message
    """
    cli = cli or AwsCli()
    try:
        validate_profile_name(name)
        if name in get_existing_profile_names():
            raise ValidationError(f'Profile "{name}" already exists.')
        cli.ensure_available()
        cli.configure_sso(name)
        return {
            'success': True,
            'message': f'✓ SSO profile "{name}" configured'
        }
    except AwsSwitchError as e:
        return {
            'success': False,
            'message': f'Fail to configure SSO profile: {str(e)}'
        }
