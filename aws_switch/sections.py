"""
Locate, read and rewrite bracketed sections of the AWS INI-like files.

The files are never parsed and re-serialized as a whole. Each edit swaps
one section's span of text and leaves everything else untouched, so
comments, unknown keys and spacing survive.

A section starts at its ``[name]`` header and runs up to the next ``[``
or the end of the text. That closing ``[`` belongs to the following
section, so it is kept as the span's ``boundary`` and put back after
every replacement.
"""

import re
from dataclasses import dataclass

HEADER_PATTERN = re.compile(r'\[([^\]\n]*)\]')
PROFILE_PREFIX_PATTERN = re.compile(r'^profile\s+')


@dataclass(frozen=True)
class SectionSpan:
    """Position of a section inside a text blob."""

    start: int
    body_start: int
    end: int
    boundary: str

    def body(self, text):
        return text[self.body_start:self.end - len(self.boundary)]


def find_section(text, name, allow_profile_prefix=True):
    """
    Find the first section named ``name``.

    Args:
        text: Content of a credentials or config file
        name: Exact section name, without brackets
        allow_profile_prefix: Also match ``[profile name]`` headers

    Returns:
        SectionSpan or None when no such section exists
    """
    if not text or not name:
        return None

    prefix = r'(?:profile\s+)?' if allow_profile_prefix else ''
    pattern = re.compile(r'\[' + prefix + re.escape(name) + r'\]([\s\S]*?)(\[|\Z)')
    match = pattern.search(text)
    if not match:
        return None

    return SectionSpan(
        start=match.start(),
        body_start=match.start(1),
        end=match.end(),
        boundary=match.group(2),
    )


def get_param(lines, key):
    """Get the trimmed value of the last ``key = value`` line, or None."""
    if not lines or not key:
        return None

    pattern = re.compile(r'^\s*' + re.escape(key) + r'\s*=\s*')
    value = None
    for line in lines:
        match = pattern.match(line)
        if match:
            value = line[match.end():].strip()
    return value


def get_params(body, keys):
    """Extract several parameters from a section body."""
    lines = body.splitlines()
    return {key: get_param(lines, key) for key in keys}


def replace_section(text, span, content):
    """Swap the section at ``span`` for ``content``, keeping its boundary."""
    if span is None:
        return text
    return text[:span.start] + content + span.boundary + text[span.end:]


def delete_section(text, span):
    """Remove the section at ``span``, keeping its boundary."""
    return replace_section(text, span, '')


def iter_sections(text):
    """
    Yield ``(header, body)`` for every bracketed header, in file order.

    ``header`` is the raw text between the brackets, e.g. ``profile dev``.
    """
    if not text:
        return

    for match in HEADER_PATTERN.finditer(text):
        body_end = text.find('[', match.end())
        if body_end < 0:
            body_end = len(text)
        yield match.group(1), text[match.end():body_end]


def strip_profile_prefix(header):
    return PROFILE_PREFIX_PATTERN.sub('', header.strip())


def detect_newline(text):
    """Get the line ending used by ``text``; ``\\n`` unless it holds CRLF."""
    return '\r\n' if text and '\r\n' in text else '\n'


def build_section(header, params, newline='\n'):
    """
    Render a section as text.

    ``params`` is a sequence of ``(key, value)`` pairs; pairs whose value is
    None are skipped. The section ends with a blank line.
    """
    lines = [f'[{header}]']
    lines.extend(f'{key} = {value}' for key, value in params if value is not None)
    return newline.join(lines) + newline * 2
