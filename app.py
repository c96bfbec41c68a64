"""
Financial Ingest — HTTP API

JSON endpoints over ``DataIngestionService`` for the upload flow:
parse a CSV (preview or full), list the standard fields, suggest a field
per column, and validate a confirmed mapping.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict

from flask import Flask, request
from werkzeug.utils import secure_filename

from financial_ingest import __version__
from financial_ingest.config import MatchingConfig, PipelineConfig, ValidationConfig
from financial_ingest.errors import EmptyFileError, StreamReadError
from financial_ingest.pipeline import DataIngestionService

# -------------------------------------------------------
# App Setup
# -------------------------------------------------------

app = Flask(__name__)

app.config["MAX_CONTENT_LENGTH"] = 64 * 1024 * 1024
app.config["UPLOAD_FOLDER"] = Path("/tmp")

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {"csv", "txt"}

# -------------------------------------------------------
# Service Setup
# -------------------------------------------------------

service = DataIngestionService(
    config=PipelineConfig(
        matching=MatchingConfig(candidate_threshold=60, ambiguity_delta=5),
        validation=ValidationConfig(required_fields=[]),
        log_level=logging.WARNING,
    )
)

# -------------------------------------------------------
# Helpers
# -------------------------------------------------------

def allowed_file(filename: str) -> bool:
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def is_truthy(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def error_response(message: str, status: int) -> tuple[Dict[str, Any], int]:
    return {"success": False, "error": message}, status


# -------------------------------------------------------
# API
# -------------------------------------------------------

@app.route("/api/parse", methods=["POST"])
def api_parse():
    """Parse an uploaded CSV; ``preview`` (default true) limits it to the first rows."""
    if "file" not in request.files:
        return error_response("No file uploaded", 400)

    file = request.files["file"]

    if file.filename == "":
        return error_response("No file selected", 400)

    if not allowed_file(file.filename):
        return error_response(
            f"Invalid file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}", 400
        )

    preview = is_truthy(request.values.get("preview", "true"))
    filename = secure_filename(file.filename) or "upload.csv"
    filepath = Path(app.config["UPLOAD_FOLDER"]) / filename

    try:
        file.save(filepath)
        dataset = service.parse_file(filepath, preview=preview)
    except (EmptyFileError, StreamReadError) as e:
        logger.warning("Rejected upload %s: %s", filename, e)
        return error_response(str(e), 400)
    finally:
        filepath.unlink(missing_ok=True)

    body: Dict[str, Any] = {
        "success": True,
        "preview": preview,
        "dataset": dataset.to_dict(),
        "coverage": service.build_mapping(dataset).coverage(len(dataset.columns)),
    }
    if dataset.is_partial and not preview:
        body["notice"] = (
            f"Only the first {dataset.parsed_row_count:,} of "
            f"{dataset.row_count:,} rows were loaded."
        )
    return body, 200


@app.route("/api/fields", methods=["GET"])
def api_fields():
    """Standard fields grouped by category, in registry order."""
    return {
        "success": True,
        "categories": service.registry.list_fields_by_category(),
        "fields": service.registry.fields_array(),
    }, 200


@app.route("/api/suggest", methods=["POST"])
def api_suggest():
    """Suggest a field (plus ranked alternatives) for each column name."""
    payload = request.get_json(silent=True) or {}
    columns = payload.get("columns")

    if not isinstance(columns, list) or not all(isinstance(c, str) for c in columns):
        return error_response("'columns' must be a list of strings", 400)

    return {
        "success": True,
        "suggestions": {c: service.suggest_field(c) for c in columns},
        "candidates": {
            c: [cand.to_dict() for cand in service.rank_candidates(c)] for c in columns
        },
    }, 200


@app.route("/api/validate", methods=["POST"])
def api_validate():
    """Validate a ``{fieldId: column}`` mapping against required fields."""
    payload = request.get_json(silent=True) or {}
    mapping = payload.get("mapping")
    required = payload.get("requiredFields")

    if not isinstance(mapping, dict):
        return error_response("'mapping' must be an object", 400)
    if not all(c is None or isinstance(c, str) for c in mapping.values()):
        return error_response("'mapping' values must be column names or null", 400)
    if required is not None and (
        not isinstance(required, list) or not all(isinstance(f, str) for f in required)
    ):
        return error_response("'requiredFields' must be a list of strings", 400)

    report = service.validate_mapping(mapping, required)

    return {"success": True, **report.to_dict()}, 200


@app.route("/api/health", methods=["GET"])
def api_health():
    return {
        "status": "online",
        "version": __version__,
        "endpoints": ["/api/parse", "/api/fields", "/api/suggest", "/api/validate"],
    }, 200


if __name__ == "__main__":
    print("=" * 60)
    print("Financial Ingest API Running")
    print("http://localhost:5000")
    print("=" * 60)

    app.run(host="0.0.0.0", port=5000, debug=True)

# Export for Vercel
handler = app
