from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from foodapp.auth import admin_required
from foodapp.container import get_services

delivery_bp = Blueprint('delivery', __name__)


@delivery_bp.route('/delivery-taxes', methods=['GET'])
@admin_required
def list_delivery_taxes():
    """Every delivery zone, ordered by range start"""
    zones = get_services().zones.list()
    return jsonify({
        'success': True,
        'delivery_taxes': [zone.to_dict() for zone in zones]
    })


@delivery_bp.route('/delivery-taxes', methods=['POST'])
@admin_required
def create_delivery_tax():
    """Register a postal-code range and its fee"""
    zone = get_services().zones.create(request.get_json(silent=True))
    return jsonify({
        'success': True,
        'delivery_tax': zone.to_dict()
    }), 201


@delivery_bp.route('/delivery-calculate', methods=['POST'])
@jwt_required()
def calculate_delivery():
    """Delivery fee for a cep"""
    quote = get_services().zones.quote(request.get_json(silent=True))
    return jsonify({'success': True, **quote})
