import logging
import os

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

from .relations import get_relations_for
from .search import highlight_sets, path_to_root
from .session import Session, load_json_file
from .solver import FeatureModel
from .validation import ModelValidationError

logger = logging.getLogger(__name__)


class NoModelLoaded(Exception):
    pass


DEFAULT_CONFIG = {
    "MAX_CONTENT_LENGTH": 16 * 1024 * 1024,
    "CORS_ORIGINS": "*",
    "STRICT_VALIDATION": True,
    "ALLOWED_EXTENSIONS": [".json"],
}


def create_app(config=None):
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("FM")
    if config:
        app.config.from_mapping(config)

    CORS(app, origins=app.config["CORS_ORIGINS"])
    app.extensions["fm_session"] = Session(strict=app.config["STRICT_VALIDATION"])

    @app.errorhandler(ModelValidationError)
    def handle_invalid_model(e):
        return jsonify({"error": str(e), "errors": e.errors}), 400

    @app.errorhandler(NoModelLoaded)
    def handle_no_model(e):
        return jsonify({"error": "No model loaded"}), 409

    @app.route("/upload", methods=["POST"])
    def upload_file():
        session = get_session()

        if "file" in request.files:
            file = request.files["file"]
            extension = os.path.splitext(file.filename or "")[1].lower()
            if extension not in app.config["ALLOWED_EXTENSIONS"]:
                return jsonify({"error": "Invalid file type"}), 400
            source, filename = load_json_file(file.stream), file.filename
        elif request.is_json:
            source, filename = request.get_json(silent=True), None
            if source is None:
                return jsonify({"error": "Request body is not valid JSON"}), 400
        else:
            return jsonify({"error": "No file uploaded"}), 400

        try:
            snapshot = session.load(source, filename)
            checker = FeatureModel(snapshot.model)
            checker.generate_rules_and_cnf()
        except ModelValidationError:
            raise
        except Exception as e:
            logger.exception("Failed to process uploaded model")
            return jsonify({"error": str(e)}), 500

        return jsonify({
            "root": snapshot.model.get("root"),
            "hierarchy": snapshot.hierarchy,
            "graph": snapshot.graph,
            "constraints": snapshot.model.get("constraints") or [],
            "logicRules": checker.logic_rules,
        })

    @app.route("/validate", methods=["POST"])
    def validate():
        model = require_model()
        selected = json_body().get("selectedFeatures", [])
        if not isinstance(selected, list) or not all(isinstance(s, str) for s in selected):
            return jsonify({"error": "selectedFeatures must be a list of feature ids"}), 400
        return jsonify(FeatureModel(model).validate_selection(selected))

    @app.route("/search", methods=["GET"])
    def search():
        require_model()
        return jsonify({"hits": get_session().search(request.args.get("q", ""))})

    @app.route("/features/<feature_id>/relations", methods=["GET"])
    def relations(feature_id):
        model = require_model()
        return jsonify(get_relations_for(feature_id, model.get("constraints")))

    @app.route("/features/<feature_id>/path", methods=["GET"])
    def path(feature_id):
        require_model()
        return jsonify({"path": path_to_root(feature_id, get_session().graph["parentMap"])})

    @app.route("/highlights", methods=["POST"])
    def highlights():
        require_model()
        session = get_session()
        ids = json_body().get("ids")
        if ids is None:
            ids = session.search_hits
        if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
            return jsonify({"error": "ids must be a list of feature ids"}), 400
        highlighted, related = highlight_sets(ids, session.graph)
        return jsonify({"highlighted": sorted(highlighted), "related": sorted(related)})

    return app


def get_session():
    return current_app.extensions["fm_session"]


def require_model():
    model = get_session().model
    if model is None:
        raise NoModelLoaded()
    return model


def json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    app = create_app()
    app.run(debug=True)
