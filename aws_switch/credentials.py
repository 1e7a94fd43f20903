"""Credential sets, expiry checks and the AWS CLI credential cache."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from botocore.utils import parse_timestamp

from .config import EXPIRY_SKEW, get_cli_cache_dir
from .errors import ValidationError

LOG = logging.getLogger(__name__)

KEY_SUFFIX_LENGTH = 4


@dataclass
class CredentialSet:
    """A usable set of AWS keys."""

    aws_access_key_id: str
    aws_secret_access_key: str
    aws_session_token: Optional[str] = None
    expiry_date: Optional[datetime] = None

    @property
    def is_temporary(self):
        return bool(self.aws_session_token)


def parse_expiry(value):
    """
    Parse an expiry timestamp into an aware datetime.

    Accepts the formats the AWS CLI writes to its caches, e.g.
    ``2021-07-17T11:33:12Z`` or ``2021-07-17T11:33:12UTC``. Naive values
    are taken as UTC.

    Returns:
        datetime or None if the value is empty or unparseable
    """
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = parse_timestamp(value)
        except (TypeError, ValueError):
            LOG.debug('Ignoring unparseable timestamp %r', value)
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_expiry(expiry_date):
    """Format an expiry date as an ISO-8601 UTC string."""
    return expiry_date.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def is_fresh(expires_at, now=None):
    """Check that an expiry lies further in the future than the skew."""
    expiry = parse_expiry(expires_at)
    if expiry is None:
        return False
    now = now or datetime.now(timezone.utc)
    return now + EXPIRY_SKEW < expiry


def describe_expiry(expiry_date, now=None):
    """
    Classify how close a credential is to expiring.

    Returns:
        dict: ``status`` is one of ``permanent``, ``expired``, ``expiring``
        (inside the skew) or ``valid``; ``minutes_left`` is set for
        ``valid``.
    """
    expiry = parse_expiry(expiry_date)
    if expiry is None:
        return {'status': 'permanent', 'minutes_left': None}

    now = now or datetime.now(timezone.utc)
    if now >= expiry:
        return {'status': 'expired', 'minutes_left': None}
    if now + EXPIRY_SKEW >= expiry:
        return {'status': 'expiring', 'minutes_left': None}

    minutes_left = round((expiry - now).total_seconds() / 60, 2)
    return {'status': 'valid', 'minutes_left': minutes_left}


def mask_key(key):
    """Hide everything but the last characters of a key."""
    if not key:
        return ''
    return '*' * max(len(key) - KEY_SUFFIX_LENGTH, 0) + key[-KEY_SUFFIX_LENGTH:]


def load_json_files(directory):
    """
    Load every ``*.json`` file in ``directory``, in name order.

    Files that cannot be read or decoded are skipped.

    Yields:
        tuple: (path, decoded content)
    """
    for path in sorted(directory.glob('*.json')):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                yield path, json.load(f)
        except (OSError, ValueError) as e:
            LOG.debug('Skipping cache file %s: %s', path.name, e)


def get_cached_credentials(access_key_suffix, secret_key_suffix):
    """
    Find SSO credentials exported by the AWS CLI in ~/.aws/cli/cache.

    ``aws configure list`` only shows the last characters of each key, so
    the full keys are looked up in the CLI cache by those suffixes.

    Args:
        access_key_suffix: Last 4 characters of the access key id
        secret_key_suffix: Last 4 characters of the secret access key

    Returns:
        CredentialSet of the first matching, unexpired entry, or None
    """
    if not access_key_suffix:
        raise ValidationError("Missing required argument 'access_key_suffix'.")
    if not secret_key_suffix:
        raise ValidationError("Missing required argument 'secret_key_suffix'.")

    cache_dir = get_cli_cache_dir()
    if not cache_dir.is_dir():
        LOG.debug('CLI cache %s not found', cache_dir)
        return None

    for path, entry in load_json_files(cache_dir):
        if not isinstance(entry, dict) or entry.get('ProviderType') != 'sso':
            continue
        creds = entry.get('Credentials')
        if not isinstance(creds, dict):
            continue
        if not is_fresh(creds.get('Expiration')):
            LOG.debug('Skipping expired CLI cache entry %s', path.name)
            continue

        access_key = creds.get('AccessKeyId') or ''
        secret_key = creds.get('SecretAccessKey') or ''
        if (access_key[-KEY_SUFFIX_LENGTH:] == access_key_suffix
                and secret_key[-KEY_SUFFIX_LENGTH:] == secret_key_suffix):
            LOG.debug('Matched CLI cache entry %s for key %s', path.name, mask_key(access_key))
            return CredentialSet(
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                aws_session_token=creds.get('SessionToken'),
                expiry_date=parse_expiry(creds.get('Expiration')),
            )

    return None
