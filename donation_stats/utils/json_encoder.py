"""JSON encoding for stats payloads"""
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from donation_stats.models.transaction import format_timestamp

class DateTimeEncoder(json.JSONEncoder):
    """Encodes datetimes as ISO-8601 UTC, dates as YYYY-MM-DD and Decimals as numbers"""

    def default(self, obj):
        if isinstance(obj, datetime):
            return format_timestamp(obj)
        if isinstance(obj, date):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return int(obj) if obj == obj.to_integral_value() else float(obj)
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)
