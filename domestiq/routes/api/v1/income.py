from flask import Blueprint, jsonify, request
from flask_login import current_user

from domestiq.decorators import json_body, role_required
from domestiq.services import IncomeService

api_income_bp = Blueprint("api_income", __name__)


@api_income_bp.get("")
@role_required("worker")
def income_summary():
    return jsonify(IncomeService.summary(current_user.id, request.args.get("period", "all")))


@api_income_bp.post("/statements")
@role_required("worker")
@json_body("month")
def generate_statement(payload):
    statement = IncomeService.generate_statement(current_user.id, payload["month"])
    return jsonify({"statement": statement.to_dict()}), 201


@api_income_bp.get("/statements/<int:statement_id>")
@role_required("worker")
def statement_detail(statement_id):
    statement = IncomeService.get_statement(current_user.id, statement_id)
    return jsonify({"statement": statement.to_dict(), "hash_valid": IncomeService.verify_statement(statement)})


@api_income_bp.post("/statements/<int:statement_id>/share")
@role_required("worker")
def share_statement(statement_id):
    statement = IncomeService.share_statement(current_user.id, statement_id)
    return jsonify({"success": True, "statement": statement.to_dict()})
