"""Calls into the external AWS CLI."""

import json
import logging
import re
import shutil
import subprocess

from .config import AWS_COMMAND, MIN_AWS_CLI_MAJOR_VERSION
from .credentials import CredentialSet, parse_expiry
from .errors import AwsCliError, AwsCliNotFoundError, AwsCliVersionError

LOG = logging.getLogger(__name__)

VERSION_PATTERN = re.compile(r'aws-cli/(\d+)\.')
MASKED_ACCESS_KEY_PATTERN = re.compile(r'access_key\s*\*+(.{4})')
MASKED_SECRET_KEY_PATTERN = re.compile(r'secret_key\s*\*+(.{4})')


class AwsCli:
    """
    The handful of AWS CLI commands aws_switch relies on.

    Two of them are scraped from human-readable output, so all parsing of
    the tool's output lives here. The "is it installed" check runs once per
    instance; ``reset()`` forgets it.
    """

    def __init__(self, command=AWS_COMMAND):
        self.command = command
        self._available = False

    def reset(self):
        self._available = False

    def ensure_available(self):
        """
        Make sure the AWS CLI v2 (or later) is installed.

        Raises:
            AwsCliNotFoundError: The command is not on PATH
            AwsCliVersionError: The version is unreadable or below v2
        """
        if self._available:
            return

        if not shutil.which(self.command):
            raise AwsCliNotFoundError(f'Command {self.command} not found')

        # v1 prints its version to stderr
        result = self._run(['--version'])
        output = (result.stdout or '') + (result.stderr or '')
        match = VERSION_PATTERN.search(output)
        if not match:
            raise AwsCliVersionError(
                'Fail to test the AWS CLI version. Please try to run "aws --version" '
                'manually to try to debug this issue.'
            )
        version = int(match.group(1))
        if version < MIN_AWS_CLI_MAJOR_VERSION:
            raise AwsCliVersionError(
                f'AWS CLI version {version} is not supported. '
                'Please upgrade to AWS CLI v2 or greater.'
            )

        LOG.debug('Found AWS CLI major version %d', version)
        self._available = True

    def sso_login(self, profile_name):
        """Run ``aws sso login``, letting it talk to the terminal directly."""
        LOG.debug('Starting SSO login for profile %s', profile_name)
        self._run(['sso', 'login', '--profile', profile_name], capture=False)

    def configure_sso(self, profile_name):
        """Run the interactive ``aws configure sso`` wizard."""
        self._run(['configure', 'sso', '--profile', profile_name], capture=False)

    def describe_masked_keys(self, profile_name):
        """
        Get the visible key suffixes from ``aws configure list``.

        Returns:
            tuple: (access key suffix, secret key suffix), or None if the
            output does not show both keys
        """
        output = self._run(['configure', 'list', '--profile', profile_name]).stdout or ''
        access = MASKED_ACCESS_KEY_PATTERN.search(output)
        secret = MASKED_SECRET_KEY_PATTERN.search(output)
        if not access or not secret:
            LOG.debug('No masked keys in "aws configure list" output for %s', profile_name)
            return None
        return access.group(1), secret.group(1)

    def export_credentials(self, profile_name):
        """
        Get credentials from ``aws configure export-credentials``.

        Returns:
            CredentialSet or None if the command fails or prints no keys
        """
        try:
            result = self._run([
                'configure', 'export-credentials',
                '--profile', profile_name,
                '--format', 'process',
            ])
        except AwsCliError as e:
            LOG.debug('Credential export failed for %s: %s', profile_name, e)
            return None

        try:
            data = json.loads(result.stdout or '')
        except ValueError:
            LOG.debug('Credential export for %s printed no JSON', profile_name)
            return None

        if not isinstance(data, dict) or not data.get('AccessKeyId') or not data.get('SecretAccessKey'):
            return None

        return CredentialSet(
            aws_access_key_id=data['AccessKeyId'],
            aws_secret_access_key=data['SecretAccessKey'],
            aws_session_token=data.get('SessionToken'),
            expiry_date=parse_expiry(data.get('Expiration')),
        )

    def _run(self, args, capture=True):
        command = [self.command] + list(args)
        LOG.debug('Running %s', ' '.join(command))
        try:
            result = subprocess.run(
                command,
                capture_output=capture,
                text=True
            )
        except FileNotFoundError as e:
            raise AwsCliNotFoundError(f'Command {self.command} not found') from e

        if result.returncode != 0:
            raise AwsCliError(command, result.returncode, result.stderr if capture else '')
        return result
