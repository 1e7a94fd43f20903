"""Credential resolution for static and SSO profiles."""

import logging
import time

from .aws_cli import AwsCli
from .config import SSO_LOGIN_TIMEOUT_SECONDS, SSO_POLL_INTERVAL_SECONDS
from .credentials import CredentialSet, get_cached_credentials
from .default_profile import set_default
from .errors import AwsCliError, AwsSwitchError, CredentialResolutionError, ValidationError
from .sections import find_section, get_params
from .sso import find_sso_session, wait_for_sso_session
from .store import read_credentials

LOG = logging.getLogger(__name__)

STALE_SESSION_MESSAGE = 'session associated with this profile has expired'
STATIC_KEYS = ('aws_access_key_id', 'aws_secret_access_key', 'aws_session_token')


def get_static_credentials(profile_name):
    """
    Read a profile's keys from the credentials file.

    Missing files or sections give a CredentialSet with empty fields.
    Static keys never carry an expiry date.
    """
    text = read_credentials()
    span = find_section(text, profile_name, allow_profile_prefix=False)
    params = get_params(span.body(text) if span else '', STATIC_KEYS)
    return CredentialSet(
        aws_access_key_id=params['aws_access_key_id'] or None,
        aws_secret_access_key=params['aws_secret_access_key'] or None,
        aws_session_token=params['aws_session_token'] or None,
        expiry_date=None,
    )


def refresh_sso_session(profile_name, sso_url, cli, force=False,
                        timeout=SSO_LOGIN_TIMEOUT_SECONDS, interval=SSO_POLL_INTERVAL_SECONDS,
                        clock=time.monotonic, sleep=time.sleep):
    """
    Make sure a valid SSO session is cached for ``sso_url``.

    Reuses the cached session unless ``force`` is set; otherwise runs
    ``aws sso login`` and waits for the new session to be cached.

    Returns:
        SsoSession
    """
    if not force:
        session = find_sso_session(sso_url)
        if session:
            LOG.debug('Reusing cached SSO session for %s', profile_name)
            return session

    print(f"🔐 Initiating SSO login for profile: {profile_name}")
    print("   Please follow the instructions in your browser...\n")
    cli.sso_login(profile_name)

    return wait_for_sso_session(
        sso_url, profile_name,
        timeout=timeout, interval=interval, clock=clock, sleep=sleep
    )


def get_sso_credentials(profile_name, cli):
    """
    Look up the CLI-cached credentials of an SSO profile.

    ``aws configure list`` refreshes the CLI cache when needed and shows
    the last characters of the keys, which identify the cache entry.

    Returns:
        CredentialSet or None
    """
    suffixes = cli.describe_masked_keys(profile_name)
    if not suffixes:
        return None
    return get_cached_credentials(*suffixes)


def _is_stale_session_error(error):
    text = f'{error.stderr} {error}'.lower()
    return STALE_SESSION_MESSAGE in text


def resolve_sso_credentials(profile_name, sso_url, cli, force=False, **wait_options):
    """
    Run the SSO refresh sequence for a profile.

    1. Reuse or create an SSO session (login + poll).
    2. Match ``aws configure list`` against the CLI credential cache.
    3. If the CLI reports the session has expired, log in again and retry
       step 2 once.
    4. Fall back to ``aws configure export-credentials``.

    Returns:
        CredentialSet

    Raises:
        CredentialResolutionError: No path produced credentials
    """
    refresh_sso_session(profile_name, sso_url, cli, force=force, **wait_options)

    last_error = None
    try:
        credentials = get_sso_credentials(profile_name, cli)
    except AwsCliError as e:
        if not _is_stale_session_error(e):
            LOG.debug('Listing the configuration of %s failed: %s', profile_name, e)
            credentials, last_error = None, e
        else:
            LOG.debug('SSO session of %s has expired, logging in again', profile_name)
            refresh_sso_session(profile_name, sso_url, cli, force=True, **wait_options)
            try:
                credentials = get_sso_credentials(profile_name, cli)
            except AwsCliError as retry_error:
                credentials, last_error = None, retry_error

    if not credentials:
        LOG.debug('No cached credentials for %s, exporting them', profile_name)
        credentials = cli.export_credentials(profile_name)

    if not credentials:
        message = f'No SSO credentials found for profile {profile_name}.'
        if last_error:
            raise CredentialResolutionError(message) from last_error
        raise CredentialResolutionError(message)

    return credentials


def resolve_credentials(profile_name, sso_url=None, cli=None, force=False, **wait_options):
    """
    Get usable credentials for a profile.

    Args:
        profile_name: Name of the AWS profile
        sso_url: SSO portal URL of the profile; empty for static profiles
        cli: AwsCli to run the AWS CLI with
        force: Start a new SSO login even if a session is cached
        wait_options: timeout, interval, clock and sleep for the SSO
            login wait loop

    Returns:
        CredentialSet

    Raises:
        CredentialResolutionError: Credentials could not be obtained
        AwsCliNotFoundError, AwsCliVersionError: The AWS CLI is unusable
    """
    if not profile_name:
        raise ValidationError("Missing required 'profile' argument")

    cli = cli or AwsCli()
    cli.ensure_available()

    if not sso_url:
        return get_static_credentials(profile_name)

    try:
        return resolve_sso_credentials(profile_name, sso_url, cli, force=force, **wait_options)
    except CredentialResolutionError:
        raise
    except AwsSwitchError as e:
        raise CredentialResolutionError(
            f'Fail to get AWS credentials for profile {profile_name}'
        ) from e


def refresh_credentials(profile, cli=None, force=False, **wait_options):
    """
    Resolve a profile's credentials and make them the default profile.

    Args:
        profile: Profile to switch to
        cli: AwsCli to run the AWS CLI with
        force: Start a new SSO login even if a session is cached

    Returns:
        dict: Result with success status, message and credentials
    """
    try:
        credentials = resolve_credentials(
            profile.name, profile.sso_start_url, cli=cli, force=force, **wait_options
        )
    except AwsSwitchError as e:
        return {
            'success': False,
            'message': f'Fail to get credentials for profile {profile.name}',
            'error': e,
        }

    result = set_default(credentials, profile.name, profile.region)
    result['credentials'] = credentials
    return result
