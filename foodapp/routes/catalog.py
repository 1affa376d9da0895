from flask import Blueprint, current_app, jsonify, request, send_from_directory
from flask_jwt_extended import jwt_required

from foodapp.auth import admin_required
from foodapp.container import get_services

catalog_bp = Blueprint('catalog', __name__)


# Products

@catalog_bp.route('/products', methods=['GET'])
def list_products():
    """Available products with their category"""
    return jsonify({
        'success': True,
        'products': get_services().catalog.list_products()
    })


@catalog_bp.route('/products', methods=['POST'])
@admin_required
def create_product():
    product = get_services().catalog.create_product(request.form.to_dict(), request.files.get('file'))
    return jsonify({'success': True, 'product': product}), 201


@catalog_bp.route('/products/<int:product_id>', methods=['PUT'])
@admin_required
def update_product(product_id):
    product = get_services().catalog.update_product(
        product_id, request.form.to_dict(), request.files.get('file')
    )
    return jsonify({'success': True, 'product': product})


@catalog_bp.route('/products/<int:product_id>', methods=['DELETE'])
@admin_required
def delete_product(product_id):
    """Soft delete: hides the product from the menu"""
    get_services().catalog.deactivate_product(product_id)
    return jsonify({
        'success': True,
        'message': 'Product deactivated successfully'
    })


@catalog_bp.route('/products/<int:product_id>/rate', methods=['POST'])
@jwt_required()
def rate_product(product_id):
    product = get_services().catalog.rate_product(product_id, request.get_json(silent=True))
    return jsonify({'success': True, 'product': product})


# Categories

@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    return jsonify({
        'success': True,
        'categories': get_services().catalog.list_categories()
    })


@catalog_bp.route('/categories', methods=['POST'])
@admin_required
def create_category():
    category = get_services().catalog.create_category(request.form.to_dict(), request.files.get('file'))
    return jsonify({'success': True, 'category': category}), 201


@catalog_bp.route('/categories/<int:category_id>', methods=['PUT'])
@admin_required
def update_category(category_id):
    category = get_services().catalog.update_category(
        category_id, request.form.to_dict(), request.files.get('file')
    )
    return jsonify({'success': True, 'category': category})


# Uploaded images

@catalog_bp.route('/product-file/<path:filename>', methods=['GET'])
@catalog_bp.route('/category-file/<path:filename>', methods=['GET'])
def uploaded_file(filename):
    return send_from_directory(current_app.config['UPLOAD_DIR'], filename)
