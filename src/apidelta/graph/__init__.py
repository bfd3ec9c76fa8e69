"""Graph domain: validation, structural diff and delta decoding of flattened graphs."""

from apidelta.graph.compare import find_graph_changes
from apidelta.graph.delta_parser import (
    DeltaType,
    InvalidDeltaError,
    get_delta_type,
    parse_delta,
)
from apidelta.graph.differ import DEFAULT_TEXT_DIFF_MIN_LENGTH, GraphDiffer, diff_graphs
from apidelta.graph.loader import GraphLoadError, load_graph_file
from apidelta.graph.validator import GraphValidationError, validate_graph

__all__ = [
    "DEFAULT_TEXT_DIFF_MIN_LENGTH",
    "DeltaType",
    "GraphDiffer",
    "GraphLoadError",
    "GraphValidationError",
    "InvalidDeltaError",
    "diff_graphs",
    "find_graph_changes",
    "get_delta_type",
    "load_graph_file",
    "parse_delta",
    "validate_graph",
]
