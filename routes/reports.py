"""
Analytics routes (admin).

Handles:
- GET /reports/daily       - Trailing daily rollup (?days, ?today, ?include_refunded)
- GET /reports/monthly     - Trailing monthly rollup (?months, ?today, ?include_refunded)
- GET /reports/categories  - Units and revenue per category (?include_refunded)
- GET /reports/day         - Sales history for one day (?date)
- GET /reports/overview    - Headline totals (?include_refunded)

include_refunded defaults to true (gross figures); pass 0/false for net.
"""

from flask import Blueprint, jsonify, request

from .context import (
    current_terminal,
    login_required,
    parse_date_arg,
    parse_flag,
    parse_int_arg,
)


reports_bp = Blueprint("reports", __name__, url_prefix="/reports")


def _include_refunded() -> bool:
    return parse_flag(request.args.get("include_refunded"), default=True)


@reports_bp.route("/daily", methods=["GET"])
@login_required
def daily():
    rows = current_terminal().daily_rollup(
        days=parse_int_arg("days"),
        today=parse_date_arg("today"),
        include_refunded=_include_refunded(),
    )
    return jsonify({"rows": [row.to_dict() for row in rows]})


@reports_bp.route("/monthly", methods=["GET"])
@login_required
def monthly():
    rows = current_terminal().monthly_rollup(
        months=parse_int_arg("months"),
        today=parse_date_arg("today"),
        include_refunded=_include_refunded(),
    )
    return jsonify({"rows": [row.to_dict() for row in rows]})


@reports_bp.route("/categories", methods=["GET"])
@login_required
def categories():
    rows = current_terminal().category_rollup(include_refunded=_include_refunded())
    return jsonify({"rows": [row.to_dict() for row in rows]})


@reports_bp.route("/day", methods=["GET"])
@login_required
def day():
    summary = current_terminal().day_summary(parse_date_arg("date"))
    return jsonify(summary.to_dict())


@reports_bp.route("/overview", methods=["GET"])
@login_required
def overview():
    summary = current_terminal().overview(include_refunded=_include_refunded())
    return jsonify(summary.to_dict())
