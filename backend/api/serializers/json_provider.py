"""
JSON provider for contract-typed payloads.

Typed values produced by date/datetime schemas are date/datetime objects.
Flask's default provider renders those as HTTP dates
("Mon, 15 Jan 2024 00:00:00 GMT"); contracts exchange ISO-8601 strings,
which is also what coerce mode accepts back.
"""

from datetime import date, datetime

from flask.json.provider import DefaultJSONProvider


class ContractJSONProvider(DefaultJSONProvider):
    """DefaultJSONProvider with ISO-8601 dates."""

    @staticmethod
    def default(o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)
