"""Shared fixtures: settings isolation and sample portable documents."""

import copy

import pytest

from captable_ledger.config import get_settings


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Every test starts from default settings, unaffected by the host environment."""
    for name in ("STRICT_ENUMS", "MAX_CONCURRENCY", "LOG_LEVEL", "DEFAULT_CURRENCY"):
        monkeypatch.delenv(f"CAPTABLE_LEDGER_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


ISSUER = {
    "object_type": "ISSUER",
    "id": "issuer-1",
    "legal_name": "Acme Robotics, Inc.",
    "formation_date": "2020-01-15",
    "country_of_formation": "US",
    "country_subdivision_of_formation": "DE",
    "tax_ids": [{"tax_id": "12-3456789", "country": "US"}],
    "email": {"email_type": "BUSINESS", "email_address": "legal@acme.test"},
    "initial_shares_authorized": "10000000",
    "comments": ["Incorporated in Delaware"],
}

STAKEHOLDER = {
    "object_type": "STAKEHOLDER",
    "id": "sh-founder",
    "name": {"legal_name": "Jane Doe", "first_name": "Jane", "last_name": "Doe"},
    "stakeholder_type": "INDIVIDUAL",
    "current_relationships": ["FOUNDER", "EMPLOYEE"],
    "current_status": "ACTIVE",
    "addresses": [{"address_type": "LEGAL", "city": "San Francisco", "country": "US"}],
}

STOCK_CLASS = {
    "object_type": "STOCK_CLASS",
    "id": "sc-series-a",
    "name": "Series A Preferred",
    "class_type": "PREFERRED",
    "default_id_prefix": "PA-",
    "initial_shares_authorized": "5000000",
    "votes_per_share": "1",
    "seniority": "2",
    "price_per_share": {"amount": "1.25", "currency": "USD"},
    "liquidation_preference_multiple": "1",
    "conversion_rights": [
        {
            "type": "STOCK_CLASS_CONVERSION_RIGHT",
            "conversion_mechanism": "RATIO_CONVERSION",
            "conversion_trigger": "ELECTIVE_AT_WILL",
            "converts_to_stock_class_id": "sc-common",
            "ratio": {"numerator": "1", "denominator": "1"},
        }
    ],
}

STOCK_ISSUANCE = {
    "object_type": "TX_STOCK_ISSUANCE",
    "id": "iss-founder",
    "date": "2024-01-15",
    "security_id": "sec-founder",
    "custom_id": "CS-1",
    "stakeholder_id": "sh-founder",
    "stock_class_id": "sc-common",
    "share_price": {"amount": "0.001", "currency": "USD"},
    "quantity": "4000000",
    "security_law_exemptions": [{"description": "Rule 701", "jurisdiction": "US"}],
    "stock_legend_ids": ["legend-1"],
    "issuance_type": "FOUNDERS_STOCK",
    "vesting_terms_id": "vt-4yr",
}

STOCK_TRANSFER = {
    "object_type": "TX_STOCK_TRANSFER",
    "id": "xfer-1",
    "date": "2024-06-01",
    "security_id": "sec-founder",
    "quantity": "1000",
    "resulting_security_ids": ["sec-founder-2"],
    "balance_security_id": "sec-founder-3",
}

VESTING_TERMS = {
    "object_type": "VESTING_TERMS",
    "id": "vt-4yr",
    "name": "4 year, 1 year cliff",
    "description": "Standard four year schedule",
    "allocation_type": "CUMULATIVE_ROUNDING",
    "vesting_conditions": [
        {
            "id": "start",
            "trigger": {"type": "VESTING_START_DATE"},
            "next_condition_ids": ["cliff"],
        },
        {
            "id": "cliff",
            "description": "One year cliff",
            "portion": {"numerator": "12", "denominator": "48"},
            "trigger": {
                "type": "VESTING_SCHEDULE_RELATIVE",
                "period": {
                    "type": "MONTHS",
                    "length": 12,
                    "occurrences": 1,
                    "day_of_month": "VESTING_START_DAY_OR_LAST_DAY_OF_MONTH",
                },
                "relative_to_condition_id": "start",
            },
            "next_condition_ids": ["monthly"],
        },
        {
            "id": "monthly",
            "portion": {"numerator": "36", "denominator": "48", "remainder": True},
            "trigger": {
                "type": "VESTING_SCHEDULE_RELATIVE",
                "period": {
                    "type": "MONTHS",
                    "length": 1,
                    "occurrences": 36,
                    "day_of_month": "VESTING_START_DAY_OR_LAST_DAY_OF_MONTH",
                },
                "relative_to_condition_id": "cliff",
            },
            "next_condition_ids": [],
        },
    ],
}


@pytest.fixture
def issuer_doc():
    return copy.deepcopy(ISSUER)


@pytest.fixture
def stakeholder_doc():
    return copy.deepcopy(STAKEHOLDER)


@pytest.fixture
def stock_class_doc():
    return copy.deepcopy(STOCK_CLASS)


@pytest.fixture
def stock_issuance_doc():
    return copy.deepcopy(STOCK_ISSUANCE)


@pytest.fixture
def stock_transfer_doc():
    return copy.deepcopy(STOCK_TRANSFER)


@pytest.fixture
def vesting_terms_doc():
    return copy.deepcopy(VESTING_TERMS)
