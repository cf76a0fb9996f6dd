import logging
from itertools import combinations

from pysat.formula import CNF
from pysat.solvers import Glucose3

from .hierarchy import build_hierarchy, iter_nodes
from .validation import normalize_constraint

logger = logging.getLogger(__name__)


class FeatureModel:
    """Propositional view of a feature model, checked with a SAT solver."""

    def __init__(self, model):
        self.root_id = model.get("root")
        self.forest = build_hierarchy(model.get("features") or [])
        self.constraints = [normalize_constraint(c) for c in model.get("constraints") or []]
        self.features = {}
        self.parents = {}
        self.var_map = {}
        self.reverse_map = {}
        self.next_var = 1
        self.logic_rules = []

        for node in iter_nodes(self.forest):
            self.features[node["id"]] = node
            for child in node["children"]:
                self.parents[child["id"]] = node["id"]

    def get_var(self, name):
        if name not in self.var_map:
            self.var_map[name] = self.next_var
            self.reverse_map[self.next_var] = name
            self.next_var += 1
        return self.var_map[name]

    def get_name(self, var):
        return self.reverse_map.get(abs(var))

    def _type(self, feature):
        feature_type = feature.get("type")
        return feature_type.lower() if isinstance(feature_type, str) else "optional"

    def _group(self, feature, kind):
        return [c["id"] for c in feature["children"] if self._type(c) == kind]

    def _relations(self):
        for c in self.constraints:
            if not isinstance(c.source, str) or not isinstance(c.target, str):
                continue
            if c.source not in self.features or c.target not in self.features:
                continue
            kind = c.kind.lower() if isinstance(c.kind, str) else None
            if kind in ("requires", "excludes"):
                yield kind, c.source, c.target

    def generate_rules_and_cnf(self):
        cnf = CNF()
        self.logic_rules = []

        def add_rule(rule):
            self.logic_rules.append(rule)

        for name, feature in self.features.items():
            var = self.get_var(name)
            parent = self.parents.get(name)

            # Root
            if name == self.root_id:
                cnf.append([var])
                add_rule(name)

            # Parent-child relationships
            if parent:
                parent_var = self.get_var(parent)
                cnf.append([-var, parent_var])
                add_rule(f"{name} → {parent}")
                if self._type(feature) == "mandatory":
                    cnf.append([-parent_var, var])
                    add_rule(f"{parent} → {name}")

            # Alternative (XOR) group: parent implies exactly one child
            alternatives = self._group(feature, "alternative")
            if alternatives:
                add_rule(f"{name} → ({' ∨ '.join(alternatives)})")
                cnf.append([-var] + [self.get_var(c) for c in alternatives])
                for c1, c2 in combinations(alternatives, 2):
                    add_rule(f"¬({c1} ∧ {c2})")
                    cnf.append([-self.get_var(c1), -self.get_var(c2)])

            # OR group: parent implies at least one child
            or_children = self._group(feature, "or")
            if or_children:
                add_rule(f"{name} → ({' ∨ '.join(or_children)})")
                cnf.append([-var] + [self.get_var(c) for c in or_children])

        # Cross-tree constraints
        for kind, source, target in self._relations():
            if kind == "requires":
                add_rule(f"{source} → {target}")
                cnf.append([-self.get_var(source), self.get_var(target)])
            else:
                add_rule(f"¬({source} ∧ {target})")
                cnf.append([-self.get_var(source), -self.get_var(target)])

        return cnf

    def validate_selection(self, selected):
        selected = set(selected)
        cnf = self.generate_rules_and_cnf()

        with Glucose3(bootstrap_with=cnf.clauses) as solver:
            # Add selection constraints
            assumptions = []
            for name in self.features:
                var = self.get_var(name)
                assumptions.append(var if name in selected else -var)
            is_valid = solver.solve(assumptions=assumptions)

        unknown = sorted(s for s in selected if s not in self.features)
        if unknown:
            is_valid = False

        messages = []
        if not is_valid:
            messages = self.get_violation_messages(selected)
        logger.debug("Selection of %d features valid=%s", len(selected), is_valid)

        return {"isValid": is_valid, "messages": messages}

    def get_violation_messages(self, selected):
        messages = []

        for name in sorted(s for s in selected if s not in self.features):
            messages.append(f"Unknown feature: {name}")

        if self.root_id in self.features and self.root_id not in selected:
            messages.append(f"Root feature {self.root_id} must be selected")

        for name, feature in self.features.items():
            parent = self.parents.get(name)

            # Mandatory feature check
            if self._type(feature) == "mandatory" and parent in selected and name not in selected:
                messages.append(f"Missing mandatory feature: {name}")
            if name in selected and parent and parent not in selected:
                messages.append(f"Feature {name} is selected without its parent {parent}")

            # Group constraints
            if name in selected:
                alternatives = self._group(feature, "alternative")
                if alternatives:
                    chosen = [c for c in alternatives if c in selected]
                    if len(chosen) != 1:
                        messages.append(f"Alternative group {name} must have exactly one selection")
                or_children = self._group(feature, "or")
                if or_children and not any(c in selected for c in or_children):
                    messages.append(f"OR group {name} must have at least one selection")

        # Check cross-tree constraints
        for kind, source, target in self._relations():
            if kind == "requires" and source in selected and target not in selected:
                messages.append(f"{source} requires {target}")
            elif kind == "excludes" and source in selected and target in selected:
                messages.append(f"{source} excludes {target}")

        return messages
