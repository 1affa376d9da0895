from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from foodapp.container import get_services

payments_bp = Blueprint('payments', __name__)


@payments_bp.route('/create_payment_intent', methods=['POST'])
@jwt_required()
def create_payment_intent():
    """Stripe payment intent for the cart total"""
    intent = get_services().payments.create_payment_intent(request.get_json(silent=True))
    return jsonify({'success': True, **intent})
