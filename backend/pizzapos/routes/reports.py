# Overview: Flask API routes for reports.

from flask import Blueprint, request, jsonify

from ..models.auth import CASH_ADMIN_ROLES
from ..services import reporting_service
from ..decorators import require_auth, require_role
from ..time_utils import parse_iso_datetime


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/cash")
@require_auth
@require_role(*CASH_ADMIN_ROLES)
def cash_report_route():
    """Query: ?startDate=ISO&endDate=ISO (defaults to the current business day)"""
    try:
        start = parse_iso_datetime(request.args.get("startDate"))
        end = parse_iso_datetime(request.args.get("endDate"))
    except ValueError:
        return jsonify({"error": "startDate and endDate must be ISO-8601 datetimes", "kind": "InvalidInput"}), 400

    return jsonify(reporting_service.cash_report(start, end)), 200
