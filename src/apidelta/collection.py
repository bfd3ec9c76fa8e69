"""Compare two trees of API documents."""

# apidelta:domain=collection

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from apidelta.changes.api_changes import ApiChanges
from apidelta.changes.collection_changes import ApiCollectionChanges
from apidelta.config import Settings
from apidelta.differencer import ApiDifferencer, GraphLoader
from apidelta.graph.loader import load_graph_file

logger = logging.getLogger(__name__)


@dataclass
class _TreeMatch:
    """Documents of two trees matched by relative path."""

    common: list[str] = field(default_factory=list)
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)


def _is_document(path: Path, suffixes: tuple[str, ...]) -> bool:
    return path.is_file() and path.suffix.lower() in suffixes


def _child_id(prefix: str, name: str) -> str:
    return f"{prefix}/{name}" if prefix else name


def list_documents(root: Path, suffixes: tuple[str, ...], prefix: str = "") -> list[str]:
    """Return the ids of every document under *root*, sorted."""
    docs: list[str] = []
    for entry in sorted(root.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            docs.extend(list_documents(entry, suffixes, _child_id(prefix, entry.name)))
        elif _is_document(entry, suffixes):
            docs.append(_child_id(prefix, entry.name))
    return docs


def _entries(root: Path, suffixes: tuple[str, ...]) -> dict[str, Path]:
    return {
        entry.name: entry
        for entry in root.iterdir()
        if entry.is_dir() or _is_document(entry, suffixes)
    }


def match_trees(
    base_dir: Path,
    new_dir: Path,
    suffixes: tuple[str, ...],
    prefix: str = "",
    result: _TreeMatch | None = None,
) -> _TreeMatch:
    """Walk both trees together, matching subdirectories and documents by name.

    A subtree that only exists on one side contributes all of its documents
    to ``removed`` or ``added``.  A name that is a directory on one side and
    a document on the other counts as removed on the base side and added on
    the new side.
    """
    if result is None:
        result = _TreeMatch()

    base_entries = _entries(base_dir, suffixes)
    new_entries = _entries(new_dir, suffixes)

    for name in sorted(base_entries.keys() | new_entries.keys()):
        doc_id = _child_id(prefix, name)
        base_entry = base_entries.get(name)
        new_entry = new_entries.get(name)

        if base_entry is not None and new_entry is not None:
            if base_entry.is_dir() and new_entry.is_dir():
                match_trees(base_entry, new_entry, suffixes, doc_id, result)
                continue
            if not base_entry.is_dir() and not new_entry.is_dir():
                result.common.append(doc_id)
                continue

        if base_entry is not None:
            if base_entry.is_dir():
                result.removed.extend(list_documents(base_entry, suffixes, doc_id))
            else:
                result.removed.append(doc_id)
        if new_entry is not None:
            if new_entry.is_dir():
                result.added.extend(list_documents(new_entry, suffixes, doc_id))
            else:
                result.added.append(doc_id)

    return result


def diff_collections(
    base_dir: Path | str,
    new_dir: Path | str,
    *,
    rules_path: Path | str | None = None,
    categorize: bool = True,
    loader: GraphLoader = load_graph_file,
    settings: Settings | None = None,
) -> ApiCollectionChanges:
    """Compare every document of two trees.

    Common documents are compared concurrently.  A document whose comparison
    fails is recorded under ``errored`` and does not stop the others; only
    documents with changes are recorded under ``changed``.
    """
    settings = settings or Settings()
    base_root = Path(base_dir)
    new_root = Path(new_dir)
    matched = match_trees(base_root, new_root, settings.document_suffixes)
    logger.info(
        "Comparing %d common documents (%d added, %d removed)",
        len(matched.common),
        len(matched.added),
        len(matched.removed),
    )

    def compare(doc_id: str) -> ApiChanges:
        differencer = ApiDifferencer(
            base_root / doc_id, new_root / doc_id, loader=loader, settings=settings
        )
        if categorize:
            return differencer.find_and_categorize_changes(rules_path)
        return differencer.find_changes()

    changes = ApiCollectionChanges(
        base_path=str(base_root),
        new_path=str(new_root),
        added=matched.added,
        removed=matched.removed,
    )

    with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
        futures = {doc_id: pool.submit(compare, doc_id) for doc_id in matched.common}
        for doc_id, future in futures.items():
            try:
                api_changes = future.result()
            except Exception as exc:  # per-document failure
                logger.error("Diff operation for '%s' failed: %s", doc_id, exc)
                changes.errored[doc_id] = str(exc)
                continue
            if api_changes.has_changes():
                changes.changed[doc_id] = api_changes

    return changes
