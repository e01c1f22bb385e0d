"""Utility functions for shai."""

import re
from datetime import datetime, timezone
from functools import lru_cache
from typing import Optional

# =============================================================================
# Identifier utilities
# =============================================================================


def parse_configuration_name(name: str) -> tuple[Optional[str], str]:
    """Split a configuration identifier into owner and slug.

    Args:
        name: ``slug`` or ``owner/slug``

    Returns:
        Tuple of (owner or None, slug)

    Examples:
        >>> parse_configuration_name("anthropic/claude-expert")
        ('anthropic', 'claude-expert')
        >>> parse_configuration_name("my-config")
        (None, 'my-config')
    """
    if "/" in name:
        owner, slug = name.split("/", 1)
        return (owner, slug)
    return (None, name)


# =============================================================================
# Timestamp parsing utilities
# =============================================================================


def parse_iso_timestamp(
    timestamp_str: Optional[str], local: bool = True
) -> Optional[datetime]:
    """Parse ISO format timestamp from the shai API.

    Args:
        timestamp_str: ISO format timestamp string (e.g., "2025-01-15T10:30:00Z")
        local: Convert aware timestamps to naive local time. When False the
            parsed (possibly aware) datetime is returned as is.

    Returns:
        datetime object or None if parsing fails
    """
    if not timestamp_str:
        return None

    try:
        # The 'Z' suffix indicates UTC time
        if timestamp_str.endswith("Z"):
            timestamp_str = timestamp_str[:-1] + "+00:00"
        dt = datetime.fromisoformat(timestamp_str)
    except (ValueError, TypeError):
        return None

    if local and dt.tzinfo is not None:
        return datetime.fromtimestamp(dt.timestamp())
    return dt


def format_date(timestamp_str: Optional[str], unknown: str = "unknown") -> str:
    """Format an ISO timestamp as e.g. ``January 5, 2025``.

    Unparsable input is returned unchanged.
    """
    if not timestamp_str:
        return unknown
    dt = parse_iso_timestamp(timestamp_str)
    if dt is None:
        return timestamp_str
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}"


def time_ago(timestamp_str: Optional[str], now: Optional[datetime] = None) -> str:
    """Describe how long ago a timestamp was, in words.

    Args:
        timestamp_str: ISO timestamp
        now: Reference time (defaults to the current time)

    Returns:
        Text such as "just now", "5 minutes ago", "yesterday", or a full date
        for anything older than a week
    """
    if not timestamp_str:
        return "unknown"

    dt = parse_iso_timestamp(timestamp_str, local=False)
    if dt is None:
        return timestamp_str
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    seconds = (now - dt).total_seconds()
    if seconds < 60:
        return "just now"
    if seconds < 3600:
        return f"{int(seconds // 60)} minutes ago"
    if seconds < 86400:
        hours = int(seconds // 3600)
        return "1 hour ago" if hours == 1 else f"{hours} hours ago"
    if seconds < 604800:
        days = int(seconds // 86400)
        return "yesterday" if days == 1 else f"{days} days ago"
    return format_date(timestamp_str)


# =============================================================================
# Glob matching utilities
# =============================================================================


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """Translate a path glob into a compiled regular expression.

    Matching is path-aware: ``*`` and ``?`` never match ``/``, ``**/``
    matches zero or more whole directories, and a trailing ``/**`` matches
    everything below a directory. Leading dots are not special, so hidden
    files and directories are matched like any other name.

    Args:
        pattern: Glob pattern such as ``**/*.local.*``

    Returns:
        Compiled regex to be used with ``fullmatch``
    """
    i, n = 0, len(pattern)
    parts: list[str] = []

    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**", i):
                at_segment_start = i == 0 or pattern[i - 1] == "/"
                j = i + 2
                if at_segment_start and j < n and pattern[j] == "/":
                    parts.append("(?:.*/)?")
                    i = j + 1
                    continue
                if at_segment_start and j == n:
                    parts.append(".*")
                    i = j
                    continue
                # "**" inside a segment is a plain "*"
                parts.append("[^/]*")
                i = j
                continue
            parts.append("[^/]*")
        elif c == "?":
            parts.append("[^/]")
        elif c == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                parts.append(re.escape(c))
            else:
                chars = pattern[i + 1 : j].replace("\\", "\\\\")
                if chars[0] in "!^":
                    chars = "^" + chars[1:]
                parts.append(f"(?!/)[{chars}]")
                i = j + 1
                continue
        else:
            parts.append(re.escape(c))
        i += 1

    return re.compile("".join(parts), re.DOTALL)


def glob_match(pattern: str, path: str) -> bool:
    """Check whether a relative ``/``-separated path matches a glob.

    Examples:
        >>> glob_match("**/*.local.*", "settings.local.json")
        True
        >>> glob_match("**/.env", "app/.env")
        True
        >>> glob_match("*.json", "dir/a.json")
        False
    """
    return glob_to_regex(pattern).fullmatch(path) is not None
