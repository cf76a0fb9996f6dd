import logging

logger = logging.getLogger(__name__)


def build_hierarchy(features):
    """Rebuild the feature forest from a flat list of parent-pointing features.

    Never raises. Entries without a usable string id are dropped, duplicate ids
    collapse to the last entry, and parent cycles are broken so that every
    member of a cycle becomes a root.
    """
    if not isinstance(features, list) or not features:
        return []

    nodes = {}
    for feature in features:
        if not isinstance(feature, dict):
            continue
        feature_id = feature.get("id")
        if not isinstance(feature_id, str) or not feature_id.strip():
            continue
        # later duplicates replace earlier ones but keep the first slot in order
        nodes[feature_id] = dict(feature, children=[])

    # second full pass so children listed before their parent still link
    for node in nodes.values():
        if _links_to_parent(node, nodes):
            nodes[node["parent"]]["children"].append(node)

    cyclic = find_cycles(nodes)
    if cyclic:
        logger.warning("Breaking parent cycle between features: %s", ", ".join(sorted(cyclic)))
        for feature_id in cyclic:
            node = nodes[feature_id]
            node["children"] = [c for c in node["children"] if c["id"] not in cyclic]

    roots = []
    for feature_id, node in nodes.items():
        if feature_id in cyclic or not _links_to_parent(node, nodes):
            roots.append(node)
    return roots


def _links_to_parent(node, nodes):
    parent_id = node.get("parent")
    return isinstance(parent_id, str) and parent_id != node["id"] and parent_id in nodes


def find_cycles(nodes):
    """Ids of every node that lies on a parent cycle.

    Walks each subtree depth-first with an explicit stack. Leaving a node pops
    it off the current path; a child already on the path marks the whole path
    cyclic.
    """
    visited = set()
    cyclic = set()

    for start in nodes.values():
        if start["id"] in visited:
            continue
        path = []
        on_path = set()
        stack = [(start, False)]
        while stack:
            node, leaving = stack.pop()
            node_id = node["id"]
            if leaving:
                path.pop()
                on_path.discard(node_id)
                continue
            if node_id in on_path:
                cyclic.update(path)
                continue
            if node_id in visited:
                continue
            visited.add(node_id)

            path.append(node_id)
            on_path.add(node_id)
            stack.append((node, True))
            for child in reversed(node["children"]):
                stack.append((child, False))

    return cyclic


def iter_nodes(forest):
    """Yield every node of a forest in depth-first pre-order."""
    stack = list(reversed(forest))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node["children"]))
