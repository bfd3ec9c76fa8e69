"""Compare two API documents: load both graphs, diff them, optionally categorize."""

# apidelta:domain=differencer

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from apidelta.changes.api_changes import ApiChanges
from apidelta.config import Settings
from apidelta.graph.compare import find_graph_changes
from apidelta.graph.loader import load_graph_file
from apidelta.graph.model import FlattenedGraph
from apidelta.rules.engine import apply_rules
from apidelta.rules.ruleset import RuleSet

logger = logging.getLogger(__name__)

GraphLoader = Callable[[Path], FlattenedGraph]


class ApiDifferencer:
    """Changes between a base and a new version of one API document.

    *loader* turns a document reference into its flattened graph.  The
    default reads graphs that were already flattened to JSON or YAML; any
    API-modeling front end can be plugged in instead.
    """

    def __init__(
        self,
        base_api: Path | str,
        new_api: Path | str,
        *,
        loader: GraphLoader = load_graph_file,
        settings: Settings | None = None,
    ) -> None:
        self.base_api = Path(base_api)
        self.new_api = Path(new_api)
        self.loader = loader
        self.settings = settings or Settings()

    def _generate_graphs(self) -> tuple[FlattenedGraph, FlattenedGraph]:
        """Load the base and new graphs concurrently."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            base_future = pool.submit(self.loader, self.base_api)
            new_future = pool.submit(self.loader, self.new_api)
            return base_future.result(), new_future.result()

    def find_changes(self) -> ApiChanges:
        """Return the uncategorized changes between the two documents."""
        base_graph, new_graph = self._generate_graphs()
        logger.info("Finding differences between %s and %s", self.base_api, self.new_api)
        node_changes = find_graph_changes(
            base_graph,
            new_graph,
            text_diff_min_length=self.settings.text_diff_min_length,
        )
        return ApiChanges(
            base_ref=str(self.base_api),
            new_ref=str(self.new_api),
            node_changes=node_changes,
        )

    def find_and_categorize_changes(self, rules_path: Path | str | None = None) -> ApiChanges:
        """Return the changes categorized by the rules at *rules_path*.

        Falls back to ``settings.rules_path`` and then to the shipped default rules.
        """
        ruleset = RuleSet.from_path(rules_path or self.settings.rules_path)
        api_changes = self.find_changes()
        logger.info("Applying rules on the differences")
        apply_rules(api_changes.node_changes, ruleset, max_workers=self.settings.max_workers)
        return api_changes
