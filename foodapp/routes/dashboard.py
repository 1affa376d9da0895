from flask import Blueprint, jsonify, request

from foodapp.auth import admin_required
from foodapp.container import get_services

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/dashboard', methods=['GET'])
@admin_required
def dashboard():
    """Financial summary for a period (defaults to today)"""
    summary = get_services().dashboard.summary(
        request.args.get('startDate'), request.args.get('endDate')
    )
    return jsonify({'success': True, **summary})


@dashboard_bp.route('/dashboard/reports', methods=['GET'])
@admin_required
def reports():
    """Detailed sales, product, delivery and expense lists"""
    report = get_services().dashboard.reports(
        request.args.get('startDate'), request.args.get('endDate')
    )
    return jsonify({'success': True, **report})


@dashboard_bp.route('/expenses', methods=['POST'])
@admin_required
def create_expense():
    expense = get_services().dashboard.add_expense(request.get_json(silent=True))
    return jsonify({'success': True, 'expense': expense}), 201
