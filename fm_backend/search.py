from collections.abc import Mapping

from .graph import ROOT_KEY


def search_features(features, keyword):
    """Ids of features whose label (or id, without a label) contains `keyword`.

    Matching is case-insensitive and results keep the input order.
    """
    query = (keyword or "").strip().lower()
    if not query:
        return []

    hits = []
    for feature in features or []:
        if not isinstance(feature, dict):
            continue
        feature_id = feature.get("id")
        if not isinstance(feature_id, str):
            continue
        text = feature.get("label") or feature_id
        if isinstance(text, str) and query in text.lower():
            hits.append(feature_id)
    return hits


def path_to_root(target_id, parent_map):
    """Ids from the root down to `target_id`, or [] for an unknown id.

    The walk stops at the first id it has already seen, so a cyclic map
    still terminates.
    """
    if not target_id or not isinstance(parent_map, Mapping):
        return []

    known = set(parent_map.keys()) | set(parent_map.values())
    if target_id not in known:
        return []

    path = []
    seen = set()
    current = target_id
    while current and current not in seen:
        path.append(current)
        seen.add(current)
        current = parent_map.get(current)
    path.reverse()
    return path


def highlight_sets(highlighted_ids, graph):
    """Split a highlight into the hit ids and everything related to them.

    The related set holds each hit, all of its ancestors and all of its
    descendants.
    """
    highlighted = set(highlighted_ids or [])
    related = set()
    if not highlighted or not graph:
        return highlighted, related

    parent_map = graph["parentMap"]
    children_map = graph["childrenMap"]

    ancestors = set()
    descendants = set()
    for feature_id in highlighted:
        current = parent_map.get(feature_id)
        while current and current not in ancestors:
            ancestors.add(current)
            current = parent_map.get(current)

        stack = [feature_id]
        while stack:
            node_id = stack.pop()
            if node_id in descendants or node_id == ROOT_KEY:
                continue
            descendants.add(node_id)
            stack.extend(children_map.get(node_id, []))

    related = ancestors | descendants
    return highlighted, related
