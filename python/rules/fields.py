"""
Field value extraction for rule evaluation

Rules name the customer field (sourceField) and the watchlist field
(targetField) they compare. Field names are matched case-insensitively
and both camelCase and snake_case spellings are accepted.
"""

from datetime import date
from typing import List, Optional

from screening_models import CustomerInfo, WatchlistEntry

NAME_FIELDS = frozenset({'name', 'aliases'})
DATE_FIELDS = frozenset({'dateofbirth', 'dob'})
NATIONALITY_FIELDS = frozenset({'nationality'})


def field_key(field: Optional[str]) -> str:
    """Canonical lookup key: lower case without underscores"""
    if not field:
        return ""
    return field.strip().lower().replace('_', '')


class FieldValueExtractor:
    """Reads named fields off customers and watchlist entries"""

    def get_customer_value(self, customer: Optional[CustomerInfo], field: Optional[str]) -> Optional[str]:
        """Single customer field as text, or None if unset or unknown"""
        if customer is None:
            return None
        key = field_key(field)
        if key == 'name':
            return customer.name
        if key == 'nationality':
            return customer.nationality
        if key in DATE_FIELDS:
            return customer.date_of_birth.isoformat() if customer.date_of_birth else None
        if key == 'customerid':
            return customer.customer_id
        return None

    def get_watchlist_values(self, entry: Optional[WatchlistEntry], field: Optional[str]) -> List[str]:
        """Watchlist field as a list of text values

        Multi-valued fields such as aliases return every value; unset
        single-valued fields return an empty list.
        """
        if entry is None:
            return []
        key = field_key(field)
        if key == 'aliases':
            return [a for a in entry.aliases if a]
        if key == 'name':
            value = entry.name
        elif key == 'nationality':
            value = entry.nationality
        elif key in DATE_FIELDS:
            value = entry.date_of_birth.isoformat() if entry.date_of_birth else None
        elif key == 'listsource':
            value = entry.list_source
        elif key == 'entrytype':
            value = entry.entry_type
        elif key == 'id':
            value = entry.id
        else:
            return []
        return [value] if value else []

    def get_customer_date(self, customer: Optional[CustomerInfo], field: Optional[str]) -> Optional[date]:
        if customer is None or field_key(field) not in DATE_FIELDS:
            return None
        return customer.date_of_birth

    def get_watchlist_date(self, entry: Optional[WatchlistEntry], field: Optional[str]) -> Optional[date]:
        if entry is None or field_key(field) not in DATE_FIELDS:
            return None
        return entry.date_of_birth

    @staticmethod
    def is_name_field(field: Optional[str]) -> bool:
        return field_key(field) in NAME_FIELDS

    @staticmethod
    def is_date_field(field: Optional[str]) -> bool:
        return field_key(field) in DATE_FIELDS

    @staticmethod
    def is_nationality_field(field: Optional[str]) -> bool:
        return field_key(field) in NATIONALITY_FIELDS
