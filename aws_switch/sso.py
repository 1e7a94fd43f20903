"""SSO session cache lookup and the post-login wait loop."""

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from urllib.parse import urlparse

from .config import SSO_LOGIN_TIMEOUT_SECONDS, SSO_POLL_INTERVAL_SECONDS, get_sso_cache_dir
from .credentials import is_fresh, load_json_files, parse_expiry
from .errors import SsoCacheEmptyError, SsoSessionError, SsoTimeoutError

LOG = logging.getLogger(__name__)


@dataclass
class SsoSession:
    """A browser or device-code session cached by ``aws sso login``."""

    start_url: str
    region: Optional[str]
    access_token: str
    expires_at: datetime

    @classmethod
    def from_cache(cls, entry):
        return cls(
            start_url=entry['startUrl'],
            region=entry.get('region'),
            access_token=entry['accessToken'],
            expires_at=parse_expiry(entry['expiresAt']),
        )


def get_url_host(url):
    try:
        return urlparse(url or '').netloc
    except ValueError:
        return ''


def get_sso_session(sso_url):
    """
    Get a valid cached SSO session for an SSO portal URL.

    Sessions are matched on the host of their ``startUrl`` and must not
    expire within the next 2 minutes. When several cache files match, the
    last one scanned wins.

    Args:
        sso_url: SSO portal URL, e.g. https://my-org.awsapps.com/start

    Returns:
        SsoSession or None when no valid session is cached

    Raises:
        SsoSessionError: The URL is not valid
        SsoCacheEmptyError: The cache directory is missing or empty
    """
    sso_host = get_url_host(sso_url)
    if not sso_host:
        raise SsoSessionError(f'The SSO portal URL {sso_url} is not a valid URL.')

    cache_dir = get_sso_cache_dir()
    if not cache_dir.is_dir():
        raise SsoCacheEmptyError(f'AWS SSO folder {cache_dir} not found.')

    entries = list(load_json_files(cache_dir))
    if not entries:
        raise SsoCacheEmptyError(f'AWS SSO folder {cache_dir} contains no credentials.')

    session = None
    for path, entry in entries:
        if not isinstance(entry, dict):
            continue
        if not entry.get('startUrl') or not entry.get('expiresAt') or not entry.get('accessToken'):
            continue
        if get_url_host(entry['startUrl']) != sso_host:
            continue
        if not is_fresh(entry['expiresAt']):
            LOG.debug('SSO session in %s has expired', path.name)
            continue
        LOG.debug('Found SSO session for %s in %s', sso_host, path.name)
        session = SsoSession.from_cache(entry)

    return session


def find_sso_session(sso_url):
    """Like get_sso_session, but an empty cache simply means no session."""
    try:
        return get_sso_session(sso_url)
    except SsoCacheEmptyError as e:
        LOG.debug('%s', e)
        return None


def wait_for_sso_session(sso_url, profile_name,
                         timeout=SSO_LOGIN_TIMEOUT_SECONDS,
                         interval=SSO_POLL_INTERVAL_SECONDS,
                         clock=time.monotonic, sleep=time.sleep):
    """
    Poll the SSO cache until a valid session shows up.

    The deadline is measured once, from the moment this function is
    entered.

    Returns:
        SsoSession

    Raises:
        SsoTimeoutError: No session appeared before ``timeout`` seconds
    """
    deadline = clock() + timeout
    while True:
        session = find_sso_session(sso_url)
        if session:
            return session
        if clock() >= deadline:
            raise SsoTimeoutError(
                f'Timeout - Time to wait for refreshing the SSO session for profile '
                f'{profile_name} exceeded {timeout} seconds.'
            )
        LOG.debug('No SSO session yet for %s, retrying in %ss', profile_name, interval)
        sleep(interval)
