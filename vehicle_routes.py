"""
Vehicle API
Fleet asset management and maintenance schedule alerts
"""

from flask import Blueprint, request, jsonify
import logging

from app import get_service
from models import RecordNotFoundError, RecordValidationError

logger = logging.getLogger(__name__)

vehicles_bp = Blueprint('vehicles', __name__)


@vehicles_bp.route('', methods=['GET'])
def list_vehicles():
    """Vehicles in fleet order, each with its maintenance alerts"""
    try:
        vehicle_service = get_service('vehicle_service')
        alerts = vehicle_service.get_vehicle_alerts()
        return jsonify({
            'success': True,
            'vehicles': [
                dict(result.vehicle.to_dict(), maintenance=result.to_dict())
                for result in alerts
            ],
            'count': len(alerts)
        })
    except Exception as e:
        logger.error(f"Error in list_vehicles: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'INTERNAL_ERROR',
            'message': 'Internal server error'
        }), 500


@vehicles_bp.route('/alerts', methods=['GET'])
def vehicle_alerts():
    """Vehicles with at least one maintenance or insurance date due within a week"""
    alerts = get_service('vehicle_service').get_attention_needed()
    return jsonify({
        'success': True,
        'alerts': [result.to_dict() for result in alerts],
        'count': len(alerts)
    })


@vehicles_bp.route('', methods=['POST'])
def add_vehicle():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({
            'success': False,
            'error': 'VALIDATION_ERROR',
            'field': 'body',
            'message': 'expected a JSON object'
        }), 400

    try:
        vehicle = get_service('vehicle_service').add_vehicle(data)
        return jsonify({'success': True, 'vehicle': vehicle.to_dict()}), 201
    except RecordValidationError as e:
        return jsonify({
            'success': False,
            'error': 'VALIDATION_ERROR',
            'field': e.field_name,
            'message': e.message
        }), 400
    except Exception as e:
        logger.error(f"Error in add_vehicle: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'INTERNAL_ERROR',
            'message': 'Failed to save vehicle'
        }), 500


@vehicles_bp.route('/<vehicle_id>', methods=['DELETE'])
def delete_vehicle(vehicle_id):
    try:
        vehicle = get_service('vehicle_service').delete_vehicle(vehicle_id)
        return jsonify({'success': True, 'deleted': vehicle.id})
    except RecordNotFoundError as e:
        return jsonify({
            'success': False,
            'error': 'NOT_FOUND',
            'message': str(e)
        }), 404
    except Exception as e:
        logger.error(f"Error in delete_vehicle {vehicle_id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'INTERNAL_ERROR',
            'message': 'Failed to delete vehicle'
        }), 500
