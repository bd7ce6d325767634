"""
Insight Service

Asks a Gemini model for short business insights over recent trips and the
fleet's service schedule. Best effort: every failure becomes a fixed message.
"""

from typing import Any, Dict, List, Optional, Sequence
import json
import logging
import requests

from models import Trip, Vehicle

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "API Key not configured. Please add your Gemini API Key to enable insights."
EMPTY_RESPONSE_MESSAGE = "No insights generated."
FAILURE_MESSAGE = "Unable to generate insights at this time."

# Trips from the front of the (newest-first) collection that are analysed
RECENT_TRIP_LIMIT = 10

PROMPT_TEMPLATE = """
Act as a business consultant for a travel agency. Analyze the following operational data (JSON).
Provide 3 brief, bulleted, actionable insights regarding:
1. Profitability trends or anomalies.
2. Vehicle maintenance urgency.
3. Operational efficiency (fuel cost per km).

Keep it professional and concise.
Data: {data}
"""


class InsightAPIError(Exception):
    """Raised when the model endpoint cannot be reached or answers with an error"""
    pass


def fuel_efficiency(trip: Trip):
    """Fuel cost per km as a two-decimal string, or 0 when no distance was driven"""
    if trip.total_distance > 0:
        return f"{float(trip.expenses.fuel_cost / trip.total_distance):.2f}"
    return 0


def build_data_summary(trips: Sequence[Trip], vehicles: Sequence[Vehicle]) -> Dict[str, Any]:
    """Concise operational summary sent to the model"""
    recent_trips = trips[:RECENT_TRIP_LIMIT]
    return {
        'totalTrips': len(trips),
        'vehicles': [
            {'reg': vehicle.registration_number, 'nextService': vehicle.next_service_due_date}
            for vehicle in vehicles
        ],
        'recentTripPerformance': [
            {
                'date': trip.trip_date.isoformat() if trip.trip_date else '',
                'profit': float(trip.net_profit),
                'efficiency': fuel_efficiency(trip),
                'notes': trip.notes,
            }
            for trip in recent_trips
        ],
    }


def build_prompt(trips: Sequence[Trip], vehicles: Sequence[Vehicle]) -> str:
    data = json.dumps(build_data_summary(trips, vehicles), ensure_ascii=False)
    return PROMPT_TEMPLATE.format(data=data)


class InsightService:
    """Service class for AI-generated business insights"""

    def __init__(self, api_key: Optional[str] = None, model: str = 'gemini-3-flash-preview',
                 base_url: str = 'https://generativelanguage.googleapis.com',
                 timeout: float = 30.0, session: Optional[requests.Session] = None):
        self.api_key = api_key or ''
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': 'Navexa/1.0',
            'Content-Type': 'application/json',
        })

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def generate_business_insight(self, trips: Sequence[Trip], vehicles: Sequence[Vehicle]) -> str:
        """
        Generate insight text for the dashboard.

        Args:
            trips: newest-first trip collection
            vehicles: fleet vehicles

        Returns:
            str: model output, or one of the fixed fallback messages
        """
        if not self.configured:
            logger.warning("Gemini API Key is missing. AI features will be disabled.")
            return MISSING_KEY_MESSAGE

        prompt = build_prompt(trips, vehicles)

        try:
            text = self._generate_content(prompt)
        except InsightAPIError as e:
            logger.error(f"Gemini Error: {str(e)}")
            return FAILURE_MESSAGE

        return text or EMPTY_RESPONSE_MESSAGE

    def _generate_content(self, prompt: str) -> str:
        """
        Single generateContent call; no retry.

        Raises:
            InsightAPIError: on transport, HTTP or response-shape failure
        """
        url = f"{self.base_url}/v1beta/models/{self.model}:generateContent"
        body = {'contents': [{'parts': [{'text': prompt}]}]}

        try:
            response = self.session.post(
                url,
                json=body,
                headers={'x-goog-api-key': self.api_key},
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise InsightAPIError(f"Request error: {str(e)}")

        if response.status_code != 200:
            raise InsightAPIError(f"API request failed: {response.status_code} - {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as e:
            raise InsightAPIError(f"Invalid JSON response: {str(e)}")

        return self._extract_text(payload)

    @staticmethod
    def _extract_text(payload: Dict[str, Any]) -> str:
        try:
            candidates: List[Dict[str, Any]] = payload.get('candidates') or []
            if not candidates:
                return ''
            parts = (candidates[0].get('content') or {}).get('parts') or []
            return ''.join(part.get('text', '') for part in parts).strip()
        except (AttributeError, TypeError) as e:
            raise InsightAPIError(f"Unexpected response shape: {str(e)}")
