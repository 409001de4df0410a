"""
gitlink — source server (srcsrv) index document

File: src/gitlink/linking/srcsrv.py

Purpose
- Render the ``srcsrv`` stream a debugger reads to fetch each source file
  of a symbol file from the repository host at one fixed revision.

Functional requirements
- Output is byte-identical for identical inputs (CRLF, UTF-8, insertion order).
- Duplicate local paths collapse to one data line; the last write wins.
- Each data line is ``<local path>*<revision>*<repository-relative path>``.

Notes
- The revision token ``{0}`` in the raw URL template is substituted once here.
  The per-file token ``%var2%`` is retargeted to ``%var3%``, the field that
  carries the relative path in each data line; the debugger expands it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Final

from jinja2 import Environment, StrictUndefined

from gitlink.domain.errors import ProjectLinkError
from gitlink.domain.models import PathMapping
from gitlink.utils.fs import atomic_write

DOCUMENT_SUFFIX: Final[str] = ".srcsrv"
STREAM_NAME: Final[str] = "srcsrv"
REVISION_TOKEN: Final[str] = "{0}"
PER_FILE_TOKEN: Final[str] = "%var2%"
RELATIVE_PATH_FIELD: Final[str] = "%var3%"
DEFAULT_SCHEME: Final[str] = "http"

_TEMPLATE: Final[str] = """\
SRCSRV: ini ------------------------------------------------
VERSION=2
INDEXVERSION=2
VERCTRL={{ scheme }}
SRCSRV: variables ------------------------------------------
REVISION={{ revision }}
RAWURL={{ raw_url }}
SRCSRVVERCTRL={{ scheme }}
SRCSRVTRG=%RAWURL%
SRCSRV: source files ---------------------------------------
{% for local_path, relative_path in entries %}
{{ local_path }}*{{ revision }}*{{ relative_path }}
{% endfor %}
SRCSRV: end ------------------------------------------------
"""

_FORBIDDEN_FIELD_CHARS: Final[frozenset[str]] = frozenset({"*", "\r", "\n"})


class IndexDocumentError(ProjectLinkError):
    """Raised when a value cannot be represented in a srcsrv document."""


def document_path_for(symbol_file: str | Path) -> Path:
    """``App.pdb`` -> ``App.pdb.srcsrv`` beside it."""

    path = Path(symbol_file)
    return path.with_name(f"{path.name}{DOCUMENT_SUFFIX}")


def _check_field(value: str, label: str) -> str:
    if not value:
        raise IndexDocumentError(f"{label} must not be empty")
    if _FORBIDDEN_FIELD_CHARS.intersection(value):
        raise IndexDocumentError(f"{label} contains a field separator or line break: {value!r}")
    return value


class SrcSrvWriter:
    """Renders path mappings into srcsrv documents."""

    def __init__(self, *, scheme: str = DEFAULT_SCHEME) -> None:
        self._scheme = _check_field(scheme, "version control scheme")
        self._environment = Environment(
            undefined=StrictUndefined,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            newline_sequence="\r\n",
            keep_trailing_newline=True,
        )
        self._template = self._environment.from_string(_TEMPLATE)

    def render(
        self,
        mapping: Mapping[str, str] | Iterable[tuple[str, str]],
        revision: str,
        raw_url_template: str,
    ) -> bytes:
        if isinstance(mapping, PathMapping):
            entries = mapping
        else:
            entries = PathMapping()
            pairs = mapping.items() if isinstance(mapping, Mapping) else mapping
            for local_path, relative_path in pairs:
                entries.add(local_path, relative_path)

        _check_field(revision, "revision")
        lines = [
            (_check_field(local, "local path"), _check_field(relative, "relative path"))
            for local, relative in entries.items()
        ]
        raw_url = raw_url_template.replace(REVISION_TOKEN, revision).replace(
            PER_FILE_TOKEN, RELATIVE_PATH_FIELD
        )
        text = self._template.render(
            scheme=self._scheme,
            revision=revision,
            raw_url=_check_field(raw_url, "raw URL"),
            entries=lines,
        )
        return text.encode("utf-8")

    def write(
        self,
        destination: str | Path,
        mapping: Mapping[str, str] | Iterable[tuple[str, str]],
        revision: str,
        raw_url_template: str,
    ) -> Path:
        """Render and atomically write the document; returns its path."""

        target = Path(destination)
        try:
            atomic_write(target, self.render(mapping, revision, raw_url_template))
        except OSError as exc:
            raise IndexDocumentError(f"unable to write {target}: {exc}") from exc
        return target


__all__ = [
    "DOCUMENT_SUFFIX",
    "STREAM_NAME",
    "IndexDocumentError",
    "SrcSrvWriter",
    "document_path_for",
]
