"""
gitlink — link engine and run flow

Purpose
- Verify, map, render and index symbol files for every project of a run.
"""

from gitlink.linking.engine import LinkEngine, compute_relative_path, is_ignored, raw_url_template
from gitlink.linking.indexer import (
    ExternalIndexer,
    IndexerCompletion,
    IndexerError,
    IndexerUnavailableError,
    PdbStrIndexer,
    staged_indexer,
)
from gitlink.linking.report import Reporter, summary_line
from gitlink.linking.runner import LinkRunner, RunOutcome
from gitlink.linking.srcsrv import IndexDocumentError, SrcSrvWriter, document_path_for
from gitlink.linking.verifier import ChecksumVerifier

__all__ = [
    "ChecksumVerifier",
    "ExternalIndexer",
    "IndexDocumentError",
    "IndexerCompletion",
    "IndexerError",
    "IndexerUnavailableError",
    "LinkEngine",
    "LinkRunner",
    "PdbStrIndexer",
    "Reporter",
    "RunOutcome",
    "SrcSrvWriter",
    "compute_relative_path",
    "document_path_for",
    "is_ignored",
    "raw_url_template",
    "staged_indexer",
    "summary_line",
]
