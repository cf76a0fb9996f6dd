import json
import logging
import os
import threading
from collections import namedtuple

from .graph import build_graph
from .hierarchy import build_hierarchy
from .relations import get_relations_for
from .search import path_to_root, search_features
from .validation import ModelValidationError, validate_json, validate_model

logger = logging.getLogger(__name__)

Snapshot = namedtuple("Snapshot", ["model", "graph", "hierarchy", "filename"])


def load_json_file(file):
    """Parse a JSON document from a path or a readable file object."""
    if not file:
        raise ModelValidationError("No file")
    if isinstance(file, (str, os.PathLike)):
        with open(file, "rb") as handle:
            data = handle.read()
    else:
        data = file.read()
    try:
        return json.loads(data)
    except (ValueError, UnicodeDecodeError) as e:
        raise ModelValidationError(f"Failed to load file: {e}") from e


def parse_model(source):
    if isinstance(source, (str, bytes, bytearray)):
        try:
            return json.loads(source)
        except ValueError as e:
            raise ModelValidationError(f"Failed to load file: {e}") from e
    return source


class Session:
    """The caller-side record of the current model and its derived views.

    A new upload replaces model, graph and hierarchy together; readers always
    see one consistent snapshot.
    """

    def __init__(self, strict=True):
        self.strict = strict
        self.snapshot = None
        self.search_hits = []
        self.active_id = None
        self._lock = threading.Lock()

    @property
    def model(self):
        return self.snapshot.model if self.snapshot else None

    @property
    def graph(self):
        return self.snapshot.graph if self.snapshot else None

    @property
    def hierarchy(self):
        return self.snapshot.hierarchy if self.snapshot else None

    def load(self, source, filename=None):
        model = parse_model(source)

        if self.strict:
            validate_json(model)
        result = validate_model(model)
        if not result["ok"]:
            raise ModelValidationError(
                "Invalid model:\n" + "\n".join(result["errors"]), result["errors"]
            )

        snapshot = Snapshot(
            model=model,
            graph=build_graph(model["features"]),
            hierarchy=build_hierarchy(model["features"]),
            filename=filename,
        )
        with self._lock:
            self.snapshot = snapshot
            self.search_hits = []
            self.active_id = None

        logger.info(
            "Loaded model %s with %d features and %d constraints",
            filename or "<inline>",
            len(model["features"]),
            len(model.get("constraints") or []),
        )
        return snapshot

    def search(self, keyword):
        snapshot = self.snapshot
        hits = search_features(snapshot.model["features"], keyword) if snapshot else []
        with self._lock:
            if self.snapshot is snapshot:
                self.search_hits = hits
        return hits

    def focus(self, feature_id):
        snapshot = self.snapshot
        if snapshot is None:
            return {"path": [], "requires": [], "excludes": []}
        with self._lock:
            if self.snapshot is snapshot:
                self.active_id = feature_id

        focus = {"path": path_to_root(feature_id, snapshot.graph["parentMap"])}
        focus.update(get_relations_for(feature_id, snapshot.model.get("constraints")))
        return focus
