from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from foodapp.auth import admin_required, current_user
from foodapp.container import get_services
from foodapp.schemas import MessageCreate, RatingIn, StatusUpdate, parse

orders_bp = Blueprint('orders', __name__)


@orders_bp.route('/orders', methods=['POST'])
@jwt_required()
def create_order():
    """Checkout: price the cart and create the order"""
    user = current_user()
    order = get_services().orders.create(request.get_json(silent=True), user.id, user.name)
    return jsonify({
        'success': True,
        'order': order,
        'message': 'Order created successfully'
    }), 201


@orders_bp.route('/orders', methods=['GET'])
@admin_required
def list_orders():
    """All orders, newest first (admin)"""
    return jsonify({
        'success': True,
        'orders': get_services().orders.list_all()
    })


@orders_bp.route('/orders/history', methods=['GET'])
@jwt_required()
def order_history():
    """Orders placed by the current user"""
    return jsonify({
        'success': True,
        'orders': get_services().orders.history(current_user().id)
    })


@orders_bp.route('/orders/<order_id>', methods=['PUT'])
@admin_required
def update_order_status(order_id):
    """Advance an order to its next status (admin)"""
    data = parse(StatusUpdate, request.get_json(silent=True))
    user = current_user()
    order = get_services().lifecycle.advance(order_id, data.status, actor=f"admin:{user.id}")
    current_app.logger.info(f"Order {order_id} status updated to {order.status}")
    return jsonify({
        'success': True,
        'order': order.to_dict(),
        'message': 'Status updated successfully'
    })


@orders_bp.route('/orders/<order_id>/cancel', methods=['PUT'])
@jwt_required()
def cancel_order(order_id):
    """Customer cancels their own order"""
    order = get_services().lifecycle.cancel(order_id, current_user().id)
    return jsonify({
        'success': True,
        'order': order.to_dict(),
        'message': 'Order canceled successfully'
    })


@orders_bp.route('/orders/<order_id>/messages', methods=['POST'])
@jwt_required()
def add_message(order_id):
    """Append a chat message to the order"""
    data = parse(MessageCreate, request.get_json(silent=True))
    chat = get_services().lifecycle.add_message(order_id, current_user().name, data.text)
    return jsonify({
        'success': True,
        'message': 'Message sent',
        'chat': chat
    })


@orders_bp.route('/orders/<order_id>/rate', methods=['POST'])
@jwt_required()
def rate_order(order_id):
    """Rate every product of the order at once"""
    data = parse(RatingIn, request.get_json(silent=True))
    get_services().lifecycle.rate(order_id, data.stars)
    return jsonify({
        'success': True,
        'message': 'Rating submitted successfully'
    })
