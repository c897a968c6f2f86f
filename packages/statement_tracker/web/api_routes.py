from __future__ import annotations

from flask import Blueprint, jsonify, request

from ..auth import require_user_id
from ..categories import create_category, delete_category, get_categories, update_category
from ..errors import UploadRejectedError
from ..models import CategoryAssignment, CategoryInput, PaginationOptions, TransactionListParams
from ..statements import get_statements, process_statement
from ..transactions import (
    get_transaction_count,
    get_transactions,
    get_uncategorized_transactions,
    update_transaction_category,
)
from ..uploads import resolve_media_type, validate_upload
from .context import current_context, current_extractor, current_settings, db_session

api_bp = Blueprint("api", __name__, url_prefix="/api")


def _json_body() -> dict:
    return request.get_json(force=True, silent=False) or {}


# ---- Categories --------------------------------------------------------------


@api_bp.get("/categories")
def list_categories():
    with db_session() as s:
        return jsonify(get_categories(s, current_context()))


@api_bp.post("/categories")
def post_category():
    data = CategoryInput.model_validate(_json_body())
    with db_session() as s:
        category = create_category(s, current_context(), name=data.name, color=data.color)
    return jsonify(category), 201


@api_bp.put("/categories/<int:category_id>")
def put_category(category_id: int):
    data = CategoryInput.model_validate(_json_body())
    with db_session() as s:
        category = update_category(
            s,
            current_context(),
            category_id=category_id,
            name=data.name,
            color=data.color,
        )
    return jsonify(category)


@api_bp.delete("/categories/<int:category_id>")
def remove_category(category_id: int):
    with db_session() as s:
        delete_category(s, current_context(), category_id=category_id)
    return "", 204


# ---- Transactions ------------------------------------------------------------


@api_bp.get("/transactions")
def list_transactions():
    params = TransactionListParams.model_validate(request.args.to_dict())
    with db_session() as s:
        page = get_transactions(
            s,
            current_context(),
            pagination=PaginationOptions(num_items=params.num_items, cursor=params.cursor),
            category_id=params.category_id,
            sort_by=params.sort_by,
            sort_order=params.sort_order,
        )
    return jsonify(page)


@api_bp.get("/transactions/count")
def count_transactions():
    params = TransactionListParams.model_validate(request.args.to_dict())
    with db_session() as s:
        count = get_transaction_count(s, current_context(), category_id=params.category_id)
    return jsonify({"count": count})


@api_bp.get("/transactions/uncategorized")
def list_uncategorized():
    params = TransactionListParams.model_validate(request.args.to_dict())
    with db_session() as s:
        page = get_uncategorized_transactions(
            s,
            current_context(),
            pagination=PaginationOptions(num_items=params.num_items, cursor=params.cursor),
            sort_by=params.sort_by,
            sort_order=params.sort_order,
        )
    return jsonify(page)


@api_bp.patch("/transactions/<int:transaction_id>/category")
def patch_transaction_category(transaction_id: int):
    data = CategoryAssignment.model_validate(_json_body())
    with db_session() as s:
        update_transaction_category(
            s,
            current_context(),
            transaction_id=transaction_id,
            category_id=data.category_id,
            category_note=data.category_note,
        )
    return "", 204


# ---- Statements --------------------------------------------------------------


@api_bp.get("/statements")
def list_statements():
    with db_session() as s:
        return jsonify(get_statements(s, current_context()))


@api_bp.post("/statements")
def upload_statement():
    ctx = current_context()
    require_user_id(ctx)
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        raise UploadRejectedError("No file provided")

    settings = current_settings()
    data = upload.read()
    validate_upload(upload.filename, len(data), max_bytes=settings.max_upload_bytes)
    result = process_statement(
        ctx,
        file_data=data,
        file_name=upload.filename,
        media_type=resolve_media_type(upload.filename, upload.mimetype),
        extractor=current_extractor(),
        database_url=settings.database_url,
    )
    return jsonify(result), 201
