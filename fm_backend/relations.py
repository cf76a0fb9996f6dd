import logging

from .validation import normalize_constraint

logger = logging.getLogger(__name__)


def _kind(constraint):
    kind = constraint.kind
    return kind.lower() if isinstance(kind, str) else None


def get_relations_for(feature_id, constraints):
    """Features that `feature_id` requires and features it excludes.

    `requires` is directional (only the source side sees it); `excludes` is
    symmetric. Malformed constraints and `conflicts` entries are skipped.
    """
    requires = []
    excludes = []
    if not isinstance(constraints, list):
        return {"requires": requires, "excludes": excludes}

    for raw in constraints:
        c = normalize_constraint(raw)
        if not isinstance(c.source, str) or not isinstance(c.target, str):
            continue
        if c.source == c.target:
            continue

        kind = _kind(c)
        if kind == "requires":
            if c.source == feature_id and c.target not in requires:
                requires.append(c.target)
        elif kind == "excludes":
            if c.source == feature_id:
                other = c.target
            elif c.target == feature_id:
                other = c.source
            else:
                continue
            if other not in excludes:
                excludes.append(other)
        elif kind == "conflicts":
            logger.debug("Skipping conflicts constraint %s -> %s", c.source, c.target)

    return {"requires": requires, "excludes": excludes}
