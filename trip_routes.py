"""
Trip API
Trip listing, recording and editing for the dashboard frontend
"""

from flask import Blueprint, request, jsonify
import logging

from app import get_service
from models import RecordNotFoundError, RecordValidationError

logger = logging.getLogger(__name__)

trips_bp = Blueprint('trips', __name__)


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise RecordValidationError('body', 'expected a JSON object')
    return data


def _validation_error(e: RecordValidationError):
    return jsonify({
        'success': False,
        'error': 'VALIDATION_ERROR',
        'field': e.field_name,
        'message': e.message
    }), 400


def _not_found(e: RecordNotFoundError):
    return jsonify({
        'success': False,
        'error': 'NOT_FOUND',
        'message': str(e)
    }), 404


@trips_bp.route('', methods=['GET'])
def list_trips():
    """List trips, newest first"""
    try:
        trips = get_service('trip_service').list_trips()
        return jsonify({
            'success': True,
            'trips': [trip.to_dict() for trip in trips],
            'count': len(trips)
        })
    except Exception as e:
        logger.error(f"Error in list_trips: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'INTERNAL_ERROR',
            'message': 'Internal server error'
        }), 500


@trips_bp.route('/<trip_id>', methods=['GET'])
def get_trip(trip_id):
    try:
        trip = get_service('trip_service').get_trip(trip_id)
        return jsonify({'success': True, 'trip': trip.to_dict()})
    except RecordNotFoundError as e:
        return _not_found(e)


@trips_bp.route('', methods=['POST'])
def create_trip():
    """Record a new trip; derived fields are computed server-side"""
    try:
        trip = get_service('trip_service').create_trip(_payload())
        return jsonify({'success': True, 'trip': trip.to_dict()}), 201
    except RecordValidationError as e:
        return _validation_error(e)
    except Exception as e:
        logger.error(f"Error in create_trip: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'INTERNAL_ERROR',
            'message': 'Failed to save trip'
        }), 500


@trips_bp.route('/<trip_id>', methods=['PUT'])
def update_trip(trip_id):
    """Replace a trip in full; derived fields are recomputed from scratch"""
    try:
        trip = get_service('trip_service').update_trip(trip_id, _payload())
        return jsonify({'success': True, 'trip': trip.to_dict()})
    except RecordValidationError as e:
        return _validation_error(e)
    except RecordNotFoundError as e:
        return _not_found(e)
    except Exception as e:
        logger.error(f"Error in update_trip {trip_id}: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'INTERNAL_ERROR',
            'message': 'Failed to save trip'
        }), 500


@trips_bp.route('/preview', methods=['POST'])
def preview_trip():
    """Live totals for an unsaved trip form"""
    try:
        financials = get_service('trip_service').preview(_payload())
        return jsonify({'success': True, 'financials': financials.to_dict()})
    except RecordValidationError as e:
        return _validation_error(e)
