"""Exception types raised by aws_switch."""


class AwsSwitchError(Exception):
    """Base class for every error raised by aws_switch."""


class AwsCliNotFoundError(AwsSwitchError):
    """The external AWS CLI is not installed or not on PATH."""


class AwsCliVersionError(AwsSwitchError):
    """The installed AWS CLI is too old or its version cannot be read."""


class AwsCliError(AwsSwitchError):
    """An AWS CLI invocation exited with a non-zero status."""

    def __init__(self, command, returncode, stderr=''):
        self.command = command
        self.returncode = returncode
        self.stderr = (stderr or '').strip()
        message = f'Command "{" ".join(command)}" failed with exit code {returncode}'
        if self.stderr:
            message += f': {self.stderr}'
        super().__init__(message)


class AwsFileError(AwsSwitchError):
    """An AWS credentials or config file cannot be read as text."""


class ValidationError(AwsSwitchError):
    """Invalid input for a profile operation."""


class ProfileConflictError(AwsSwitchError):
    """The operation conflicts with the current state of the profile files."""


class SsoSessionError(AwsSwitchError):
    """The SSO session cache cannot be read."""


class SsoCacheEmptyError(SsoSessionError):
    """The SSO session cache directory is missing or holds no sessions."""


class SsoTimeoutError(AwsSwitchError):
    """No valid SSO session appeared before the login deadline."""


class CredentialResolutionError(AwsSwitchError):
    """No usable credentials could be obtained for a profile."""


def iter_error_chain(error):
    """Yield ``error`` followed by each exception it was raised from."""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        yield error
        error = error.__cause__


def format_error_chain(error):
    """Render an exception and its causes, one message per line."""
    return '\n'.join(str(e) or e.__class__.__name__ for e in iter_error_chain(error))
