"""
Dashboard API
Financial overview, maintenance alerts and AI insights
"""

from flask import Blueprint, jsonify
import logging

from app import get_service

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('', methods=['GET'])
def dashboard():
    try:
        now = get_service('clock')()
        trips = get_service('trip_service').list_trips()
        vehicles = get_service('vehicle_service').list_vehicles()

        stats = get_service('reporting_service').get_dashboard_statistics(trips, vehicles, now)
        return jsonify(dict(stats, success=True))

    except Exception as e:
        logger.error(f"Error generating dashboard statistics: {str(e)}")
        return jsonify({
            'success': False,
            'error': 'INTERNAL_ERROR',
            'message': 'Internal server error'
        }), 500


@dashboard_bp.route('/insights', methods=['POST'])
def generate_insights():
    """AI insight text; the service itself never raises, it falls back to a fixed message"""
    trips = get_service('trip_service').list_trips()
    vehicles = get_service('vehicle_service').list_vehicles()

    insight = get_service('insight_service').generate_business_insight(trips, vehicles)
    return jsonify({'success': True, 'insight': insight})
