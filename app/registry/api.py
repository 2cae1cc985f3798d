from __future__ import annotations

from typing import Any

from flask import Blueprint, abort, current_app, jsonify, request

from app.registry.auth import current_principal
from app.registry.constants import BRANCH_LABELS
from app.registry.modules.documents.models import DocumentView
from app.registry.modules.principals.models import StudentView
from app.registry.service import RegistryService

bp = Blueprint("api", __name__)


def _registry() -> RegistryService:
    return current_app.extensions["registry"]


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValueError("Request body must be a JSON object.")
    return payload


def _field(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if value is None:
        return ""
    return str(value)


def _iso(value) -> str | None:
    return value.isoformat() if value is not None else None


def _document_json(d: DocumentView) -> dict[str, Any]:
    return {
        "id": d.id,
        "doc_type": d.doc_type,
        "content_hash": d.content_hash,
        "metadata": d.metadata,
        "created_at": _iso(d.created_at),
        "submitter": d.submitter,
        "verified": d.verified,
        "verified_by": list(d.verified_by),
        "verified_at": _iso(d.verified_at),
        "student_id_number": d.student_id_number,
    }


def _student_json(st: StudentView) -> dict[str, Any]:
    return {
        "address": st.address,
        "name": st.name,
        "year": st.year.name,
        "branch": BRANCH_LABELS[st.branch],
        "id_number": st.id_number,
        "registered_at": _iso(st.registered_at),
    }


@bp.post("/admins")
def add_admin():
    payload = _json_body()
    added = _registry().add_admin(current_principal(), _field(payload, "address"), _field(payload, "name"))
    return jsonify({"ok": True, "added": added})


@bp.post("/verifiers")
def add_verifier():
    payload = _json_body()
    added = _registry().add_verifier(current_principal(), _field(payload, "address"))
    return jsonify({"ok": True, "added": added})


@bp.post("/students")
def register_student():
    payload = _json_body()
    st = _registry().register_student(
        current_principal(),
        _field(payload, "address"),
        name=_field(payload, "name"),
        year=payload.get("year"),
        branch=payload.get("branch"),
        id_number=_field(payload, "id_number"),
    )
    return jsonify(_student_json(st)), 201


@bp.get("/students/<addr>")
def get_student(addr: str):
    current_principal()
    return jsonify(_student_json(_registry().get_student(addr)))


@bp.get("/principals/<addr>/roles")
def roles(addr: str):
    current_principal()
    held = _registry().roles_of(addr)
    return jsonify({"address": addr, "roles": sorted(r.value for r in held)})


@bp.post("/documents")
def submit_document():
    payload = _json_body()
    doc_id = _registry().submit_document(
        current_principal(),
        doc_type=_field(payload, "doc_type"),
        content_hash=_field(payload, "content_hash"),
        metadata=_field(payload, "metadata"),
        student_id_number=_field(payload, "student_id_number"),
    )
    return jsonify({"id": doc_id}), 201


@bp.get("/documents/<int:doc_id>")
def get_document(doc_id: int):
    principal = current_principal()
    reg = _registry()
    # Core reads are unconditional; confidentiality is enforced here.
    if not reg.can_view(doc_id, principal):
        abort(403)
    return jsonify(_document_json(reg.get_document(doc_id)))


@bp.post("/documents/<int:doc_id>/verify")
def verify_document(doc_id: int):
    view = _registry().verify_document(current_principal(), doc_id)
    return jsonify(_document_json(view))


@bp.post("/documents/<int:doc_id>/grants")
def grant_access(doc_id: int):
    payload = _json_body()
    granted = _registry().grant_access(current_principal(), doc_id, _field(payload, "grantee"))
    return jsonify({"ok": True, "granted": granted})


@bp.get("/documents/<int:doc_id>/access/<addr>")
def has_access(doc_id: int, addr: str):
    return jsonify({"document_id": doc_id, "address": addr, "has_access": _registry().has_access(doc_id, addr)})
