"""
services/currency_service.py
-----------------------------
Derives the currency for new obligations from the configured or
process locale, and formats amounts for display.
"""

import locale
import re
from decimal import Decimal
from typing import Optional

from config import CURRENCY, FALLBACK_CURRENCY, LOCALE
from utils.logger import get_logger

logger = get_logger(__name__)

# Euro-area regions
_EUR_REGIONS = {
    "AT", "BE", "HR", "CY", "EE", "FI", "FR", "DE", "GR", "IE",
    "IT", "LV", "LT", "LU", "MT", "NL", "PT", "SK", "SI", "ES",
}

_REGION_TO_CURRENCY = {
    "US": "USD", "CA": "CAD", "MX": "MXN", "BR": "BRL", "AR": "ARS", "CL": "CLP",
    "CO": "COP", "PE": "PEN", "GB": "GBP", "CH": "CHF", "NO": "NOK", "SE": "SEK",
    "DK": "DKK", "IS": "ISK", "PL": "PLN", "CZ": "CZK", "HU": "HUF", "RO": "RON",
    "BG": "BGN", "RU": "RUB", "TR": "TRY", "UA": "UAH", "IN": "INR", "PK": "PKR",
    "BD": "BDT", "LK": "LKR", "NP": "NPR", "CN": "CNY", "JP": "JPY", "KR": "KRW",
    "SG": "SGD", "HK": "HKD", "TW": "TWD", "MY": "MYR", "ID": "IDR", "TH": "THB",
    "PH": "PHP", "VN": "VND", "AU": "AUD", "NZ": "NZD", "AE": "AED", "SA": "SAR",
    "QA": "QAR", "KW": "KWD", "BH": "BHD", "OM": "OMR", "JO": "JOD", "IL": "ILS",
    "ZA": "ZAR", "NG": "NGN", "KE": "KES", "EG": "EGP", "MA": "MAD", "TN": "TND",
    "GH": "GHS",
}

_LOCALE_RE = re.compile(r"^[A-Za-z]{2,3}[-_]([A-Za-z]{2})\b")


def region_from_locale(tag: Optional[str]) -> Optional[str]:
    """Extract the region from a tag like 'en_US', 'de-DE' or 'fr_FR.UTF-8'."""
    if not tag:
        return None
    match = _LOCALE_RE.match(tag)
    return match.group(1).upper() if match else None


def currency_for_region(region: Optional[str]) -> str:
    if not region:
        return FALLBACK_CURRENCY
    region = region.upper()
    if region in _EUR_REGIONS:
        return "EUR"
    return _REGION_TO_CURRENCY.get(region, FALLBACK_CURRENCY)


def _process_locale() -> Optional[str]:
    try:
        return locale.getlocale()[0]
    except ValueError:
        return None


def format_money(amount: Decimal, currency: str) -> str:
    """Render an amount as '1,234.50 EUR'."""
    return f"{amount:,.2f} {currency}"


class CurrencyResolver:
    """
    Resolves the device currency.

    Order: explicit override, configured locale, process locale, USD.
    """

    def __init__(self, override: str = CURRENCY, locale_tag: str = LOCALE):
        self.override = override
        self.locale_tag = locale_tag

    def current_currency(self) -> str:
        if self.override:
            return self.override
        region = region_from_locale(self.locale_tag) or region_from_locale(_process_locale())
        currency = currency_for_region(region)
        logger.debug(f"Resolved currency {currency} from region {region}")
        return currency
