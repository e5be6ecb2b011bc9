"""Templater-lite: resolves a small set of ``<% tp.* %>`` expressions."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from tam_filesystem.core.variable_operations import render_value

logger = logging.getLogger(__name__)

TEMPLATER_PATTERN = re.compile(r"<%[-_]?\s*(.*?)\s*[-_]?%>", re.DOTALL)
_DATE_CALL = re.compile(
    r"^tp\.date\.(now|today|tomorrow|yesterday)\(\s*"
    r"(?:(['\"])(?P<format>.*?)\2)?\s*"
    r"(?:,\s*(?P<offset>[+-]?\d+))?\s*\)$"
)
_FILE_CREATION = re.compile(r"^tp\.file\.creation_date\(\s*(?:(['\"])(?P<format>.*?)\1)?\s*\)$")
_FILE_FOLDER = re.compile(r"^tp\.file\.folder\(\s*(?P<relative>true|false)?\s*\)$")
_LOOKUP = re.compile(r"^tp\.(?P<source>variables|frontmatter)\.(?P<name>[\w-]+)$")
_MOMENT_TOKENS = re.compile(r"\[([^\]]*)\]|YYYY|YY|MMMM|MMM|MM|M|DD|D|dddd|ddd|HH|H|hh|h|mm|ss|A")
_DAY_OFFSETS = {"now": 0, "today": 0, "tomorrow": 1, "yesterday": -1}


def format_moment(moment: datetime, fmt: str) -> str:
    """Format ``moment`` using moment.js-style tokens (``YYYY-MM-DD``).

    Text inside square brackets is emitted literally.
    """

    def _token(match: re.Match[str]) -> str:
        if match.group(1) is not None:
            return match.group(1)
        token = match.group(0)
        hour12 = moment.hour % 12 or 12
        values = {
            "YYYY": f"{moment.year:04d}",
            "YY": f"{moment.year % 100:02d}",
            "MMMM": moment.strftime("%B"),
            "MMM": moment.strftime("%b"),
            "MM": f"{moment.month:02d}",
            "M": str(moment.month),
            "DD": f"{moment.day:02d}",
            "D": str(moment.day),
            "dddd": moment.strftime("%A"),
            "ddd": moment.strftime("%a"),
            "HH": f"{moment.hour:02d}",
            "H": str(moment.hour),
            "hh": f"{hour12:02d}",
            "h": str(hour12),
            "mm": f"{moment.minute:02d}",
            "ss": f"{moment.second:02d}",
            "A": "AM" if moment.hour < 12 else "PM",
        }
        return values[token]

    return _MOMENT_TOKENS.sub(_token, fmt)


def process_templater(
    content: str,
    variables: Optional[Mapping[str, Any]] = None,
    *,
    file_path: Optional[Path] = None,
    frontmatter: Optional[Mapping[str, Any]] = None,
    now: Optional[datetime] = None,
    date_format: str = "YYYY-MM-DD",
) -> str:
    """Resolve supported Templater expressions in a single pass.

    Supported: ``tp.date.now/today/tomorrow/yesterday([format][, offset])``,
    ``tp.file.title``, ``tp.file.folder([true])``,
    ``tp.file.creation_date([format])``, ``tp.variables.NAME`` and
    ``tp.frontmatter.NAME``. Anything else, including lookups of unknown
    names, is left untouched.

    Args:
        content: Text containing ``<% ... %>`` expressions.
        variables: Caller bindings used by ``tp.variables``.
        file_path: Path of the document being processed.
        frontmatter: Document metadata used by ``tp.frontmatter``.
        now: Reference time; defaults to the current local time.
        date_format: Format used when a date call gives none.

    Returns:
        The processed text.
    """
    variables = variables or {}
    frontmatter = frontmatter or {}
    current = now or datetime.now()

    def _resolve(expression: str) -> Optional[str]:
        date_call = _DATE_CALL.match(expression)
        if date_call:
            offset = _DAY_OFFSETS[date_call.group(1)] + int(date_call.group("offset") or 0)
            fmt = date_call.group("format") or date_format
            return format_moment(current + timedelta(days=offset), fmt)

        if expression == "tp.file.title":
            if file_path is not None:
                return file_path.stem
            title = variables.get("title")
            return render_value(title) if title is not None else None

        folder = _FILE_FOLDER.match(expression)
        if folder:
            if file_path is None:
                return None
            if folder.group("relative") == "true":
                return file_path.parent.as_posix()
            return file_path.parent.name

        creation = _FILE_CREATION.match(expression)
        if creation:
            if file_path is None:
                return None
            try:
                created = datetime.fromtimestamp(file_path.stat().st_ctime)
            except OSError as exc:
                logger.debug("Cannot stat '%s' for tp.file.creation_date: %s", file_path, exc)
                return None
            return format_moment(created, creation.group("format") or date_format)

        lookup = _LOOKUP.match(expression)
        if lookup:
            source = variables if lookup.group("source") == "variables" else frontmatter
            name = lookup.group("name")
            if name in source:
                return render_value(source[name])
            return None

        return None

    def _replace(match: re.Match[str]) -> str:
        resolved = _resolve(match.group(1).strip())
        if resolved is None:
            logger.debug("Leaving unsupported templater expression: %s", match.group(0))
            return match.group(0)
        return resolved

    return TEMPLATER_PATTERN.sub(_replace, content)
