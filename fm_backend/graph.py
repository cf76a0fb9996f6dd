ROOT_KEY = "ROOT"
DEFAULT_TYPE = "optional"


def build_graph(features):
    """Flat node/edge view of the features plus parent and children lookups.

    Parents are not checked here; an edge may point at an id that does not
    exist.
    """
    nodes = []
    edges = []
    parent_map = {}
    children_map = {}

    for feature in features or []:
        if not isinstance(feature, dict):
            continue
        feature_id = feature.get("id")
        parent = feature.get("parent")

        nodes.append({
            "id": feature_id,
            "label": feature.get("label"),
            "type": feature.get("type") or DEFAULT_TYPE,
        })
        if parent:
            edges.append({"from": parent, "to": feature_id})
            parent_map[feature_id] = parent
        children_map.setdefault(parent or ROOT_KEY, []).append(feature_id)

    return {
        "nodes": nodes,
        "edges": edges,
        "parentMap": parent_map,
        "childrenMap": children_map,
    }
