"""Plain text access to the AWS credentials and config files."""

import logging

from .config import get_config_path, get_credentials_path
from .errors import AwsFileError

LOG = logging.getLogger(__name__)


def read_text(path):
    """
    Read a file as text, returning an empty string when it does not exist.

    Raises:
        AwsFileError: The file is not valid UTF-8
    """
    if not path.exists():
        LOG.debug('%s not found, treating it as empty', path)
        return ''
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise AwsFileError(f'{path} is not a valid UTF-8 text file') from e


def write_text(path, content):
    """Overwrite a file with ``content``, creating its directory if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(content)
    LOG.debug('Wrote %d characters to %s', len(content), path)


def read_credentials():
    return read_text(get_credentials_path())


def write_credentials(content):
    write_text(get_credentials_path(), content)


def read_config():
    return read_text(get_config_path())


def write_config(content):
    write_text(get_config_path(), content)
