from .graph import build_graph
from .hierarchy import build_hierarchy
from .relations import get_relations_for
from .search import highlight_sets, path_to_root, search_features
from .session import Session, load_json_file
from .solver import FeatureModel
from .validation import ModelValidationError, normalize_constraint, validate_json, validate_model

__all__ = [
    "FeatureModel",
    "ModelValidationError",
    "Session",
    "build_graph",
    "build_hierarchy",
    "get_relations_for",
    "highlight_sets",
    "load_json_file",
    "normalize_constraint",
    "path_to_root",
    "search_features",
    "validate_json",
    "validate_model",
]
