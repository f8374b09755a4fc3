from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import List

from flask import Blueprint, abort, jsonify, request
from pydantic import ValidationError

from csvimport.db import SessionLocal
from csvimport.db.models import ImportBatch
from csvimport.services.ingest.base import EmptyCsvError
from csvimport.services.ingest.batch_importer import percent
from csvimport.services.ingest.csv_text import decode
from csvimport.services.normalize.schema import ImportSession, MappingRow
from csvimport.services.session import (
    MappingError,
    confirm_mapping,
    load_csv,
    preview,
    propose_mapping,
    run_import,
)
from csvimport.services.wizards import Wizard, get_wizard

bp = Blueprint("api", __name__)


class UploadError(ValueError):
    pass


@bp.errorhandler(UploadError)
@bp.errorhandler(EmptyCsvError)
@bp.errorhandler(MappingError)
def bad_upload(exc):
    return jsonify({"error": str(exc)}), 400


def _wizard(name: str) -> Wizard:
    wizard = get_wizard(name)
    if wizard is None:
        abort(404)
    return wizard


def _load_upload(wizard: Wizard) -> ImportSession:
    upload = request.files.get("file")
    if upload is None:
        raise UploadError("No file uploaded")
    state = load_csv(decode(upload.read()), upload.filename or getattr(upload, "name", ""))
    if wizard.requires_data and not state.has_data:
        raise UploadError("CSV has no data rows")
    return propose_mapping(state, wizard.strategy, wizard.load_fields)


def _mapping_from_form(state: ImportSession) -> List[MappingRow]:
    raw = request.form.get("mapping")
    if raw is None:
        return list(state.mapping)
    try:
        items = json.loads(raw)
        if not isinstance(items, list):
            raise UploadError("mapping must be a JSON list")
        return [MappingRow.model_validate(item) for item in items]
    except (json.JSONDecodeError, ValidationError) as exc:
        raise UploadError(f"Invalid mapping: {exc}")


@bp.route("/api/import/<name>/fields", methods=["GET"])
def fields(name):
    wizard = _wizard(name)
    return jsonify({"fields": [f.to_json() for f in wizard.load_fields()]})


@bp.route("/api/import/<name>/preview", methods=["POST"])
def preview_upload(name):
    wizard = _wizard(name)
    state = _load_upload(wizard)
    return jsonify({
        "file_name": state.file_name,
        "headers": list(state.headers),
        "record_count": len(state.records),
        "preview": preview(state, wizard.preview_rows),
        "fields": [f.to_json() for f in state.fields],
        "mapping": [m.to_json() for m in state.mapping],
    })


@bp.route("/api/import/<name>/run", methods=["POST"])
def run(name):
    wizard = _wizard(name)
    state = _load_upload(wizard)
    state = confirm_mapping(state, _mapping_from_form(state))

    with SessionLocal() as session:
        batch = ImportBatch(
            wizard=wizard.name,
            file_name=state.file_name,
            total_rows=len(state.records),
            started_at=datetime.now(timezone.utc),
        )
        session.add(batch)
        session.commit()
        batch_id = batch.id

    def on_progress(processed: int, total: int) -> None:
        logging.info(
            "import-progress batch_id=%s processed=%s total=%s percent=%s",
            batch_id, processed, total, percent(processed, total),
        )

    state = run_import(state, wizard.make_sink(), on_progress=on_progress)
    outcome = state.outcome

    with SessionLocal() as session:
        batch = session.get(ImportBatch, batch_id)
        batch.completed_at = datetime.now(timezone.utc)
        batch.processed_rows = outcome.processed
        batch.inserted_counts = outcome.inserted_counts
        batch.errors = outcome.errors
        batch.success = outcome.success
        session.commit()

    logging.info(json.dumps({
        "batch_id": batch_id,
        "wizard": wizard.name,
        "success": outcome.success,
        "inserted_counts": outcome.inserted_counts,
        "errors": len(outcome.errors),
    }))

    return jsonify({"batch_id": batch_id, **outcome.to_json()})
