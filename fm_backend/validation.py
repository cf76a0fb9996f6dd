import logging
from collections import namedtuple
from collections.abc import Hashable

logger = logging.getLogger(__name__)

FEATURE_TYPES = ("mandatory", "optional", "alternative", "or")
CONSTRAINT_TYPES = ("requires", "excludes")
STRICT_CONSTRAINT_TYPES = ("requires", "excludes", "conflicts")

Constraint = namedtuple("Constraint", ["source", "target", "kind"])


class ModelValidationError(ValueError):
    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = list(errors) if errors else [message]


def normalize_constraint(constraint):
    """Map either endpoint naming ({a, b} or {from, to}) onto one Constraint.

    `from`/`to` win when both conventions are present. Non-dict input gives a
    Constraint with every field set to None.
    """
    if not isinstance(constraint, dict):
        return Constraint(None, None, None)
    source = constraint.get("from")
    if source is None:
        source = constraint.get("a")
    target = constraint.get("to")
    if target is None:
        target = constraint.get("b")
    return Constraint(source, target, constraint.get("type"))


def legacy_fields(constraint):
    """Names of the legacy endpoint fields that normalization had to rename."""
    renamed = []
    if constraint.get("from") is None and constraint.get("a") is not None:
        renamed.append(("a", "from"))
    if constraint.get("to") is None and constraint.get("b") is not None:
        renamed.append(("b", "to"))
    return renamed


def _get(obj, key):
    value = obj.get(key) if isinstance(obj, dict) else None
    # lists and objects from JSON can never match a feature id
    return value if isinstance(value, Hashable) else None


def _known(value, ids):
    return isinstance(value, Hashable) and value in ids


def _present(value):
    # empty lists and objects count as present; empty strings, zero and false do not
    return value is not None and value is not False and value != "" and value != 0


def validate_model(model):
    """Collect every problem in `model` and return {"ok": bool, "errors": [...]}."""
    errors = []

    if not isinstance(model, dict):
        errors.append("Invalid JSON object")
        return {"ok": False, "errors": errors}

    root = _get(model, "root")
    features = model.get("features")

    if not model.get("root"):
        errors.append("Missing root")
    if not isinstance(features, list):
        errors.append("features must be array")
        return {"ok": False, "errors": errors}

    all_ids = {_get(f, "id") for f in features}
    ids = set()
    for feature in features:
        feature_id = _get(feature, "id")
        if not feature_id:
            errors.append("Feature missing id")
        else:
            if feature_id in ids:
                errors.append(f"Duplicate feature id: {feature_id}")
            ids.add(feature_id)

        parent = _get(feature, "parent")
        if parent and parent not in all_ids:
            errors.append(f"Parent not found for {feature_id}: {parent}")

    if root not in ids:
        errors.append(f"Root '{model.get('root')}' not found in features")

    constraints = model.get("constraints")
    if isinstance(constraints, list):
        for raw in constraints:
            c = normalize_constraint(raw)
            if c.kind not in CONSTRAINT_TYPES:
                errors.append(f"Invalid constraint type: {c.kind}")
            if not (_known(c.source, ids) and _known(c.target, ids)):
                errors.append(
                    f"Constraint refers to missing feature: {c.source} or {c.target}"
                )

    return {"ok": not errors, "errors": errors}


def validate_json(data):
    """Strict schema check that raises ModelValidationError on the first problem.

    Constraints that point at undefined features are only logged. Returns True
    when the model passes.
    """
    if not isinstance(data, dict):
        raise ModelValidationError("The uploaded file must contain a valid JSON object.")

    features = data.get("features")
    if not isinstance(features, list):
        raise ModelValidationError(
            "The file must include a 'features' array describing all system features."
        )

    feature_ids = set()
    for index, feature in enumerate(features, start=1):
        if not isinstance(feature, dict):
            raise ModelValidationError(f"Feature #{index} must be a valid object.")

        feature_id = feature.get("id")
        if not feature_id or not isinstance(feature_id, str):
            raise ModelValidationError(
                f"Feature #{index} is missing a valid 'id' property (a unique feature name)."
            )
        feature_ids.add(feature_id)

        feature_type = feature.get("type")
        if _present(feature_type) and (
            not isinstance(feature_type, str) or feature_type.lower() not in FEATURE_TYPES
        ):
            raise ModelValidationError(
                f"Feature '{feature_id}' has an invalid type '{feature_type}'. "
                f"Allowed types are: {', '.join(FEATURE_TYPES)}."
            )

        parent = feature.get("parent")
        if _present(parent) and not isinstance(parent, str):
            raise ModelValidationError(
                f"Feature '{feature_id}' has an invalid parent reference. The 'parent' "
                "field must be a string referring to another feature's ID."
            )

    root = data.get("root")
    if _present(root) and not isinstance(root, str):
        raise ModelValidationError("The 'root' field must be a text value (the main feature ID).")
    if root and root not in feature_ids:
        raise ModelValidationError(
            f"The root feature '{root}' is not defined in the 'features' list. "
            "Please check that the root ID matches an existing feature."
        )

    constraints = data.get("constraints")
    if _present(constraints):
        if not isinstance(constraints, list):
            raise ModelValidationError(
                "The 'constraints' section must be an array (list) of relationships between features."
            )

        for index, constraint in enumerate(constraints, start=1):
            if not isinstance(constraint, dict):
                raise ModelValidationError(f"Constraint #{index} must be a valid object.")

            for old, new in legacy_fields(constraint):
                logger.info(
                    "Renamed legacy constraint field '%s' to '%s' for constraint #%d.",
                    old, new, index,
                )
            c = normalize_constraint(constraint)

            if not isinstance(c.source, str) or not isinstance(c.target, str):
                raise ModelValidationError(
                    f"Constraint #{index} must specify two valid feature IDs under 'from' and 'to'."
                )

            if not isinstance(c.kind, str) or c.kind.lower() not in STRICT_CONSTRAINT_TYPES:
                raise ModelValidationError(
                    f"Constraint between '{c.source}' and '{c.target}' uses an invalid type "
                    f"'{c.kind}'. Allowed types are: {', '.join(STRICT_CONSTRAINT_TYPES)}."
                )

            if c.source not in feature_ids or c.target not in feature_ids:
                logger.warning(
                    "Constraint between '%s' and '%s' references features not defined "
                    "in the feature list.",
                    c.source, c.target,
                )

    return True
