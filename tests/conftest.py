"""Shared fixtures for the helper tests."""

import pytest

from helper_engine.config.settings import LABOR_RATE_GROUPS_KEY
from helper_engine.src.store import MemoryConfigStore


@pytest.fixture
def asian_group():
    return {"name": "Asian", "makes": ["Honda", "Toyota"], "laborRate": 16000}


@pytest.fixture
def store(asian_group):
    """Memory store holding one Asian-makes group at $160/hr."""
    return MemoryConfigStore({LABOR_RATE_GROUPS_KEY: [asian_group]})


@pytest.fixture
def order_json():
    """Raw Tekmetric repair order for a Honda at $150/hr."""
    return {
        "id": 1001,
        "repairOrderNumber": 5120,
        "laborRate": 15000,
        "vehicle": {"year": 2018, "make": "Honda", "model": "Accord"},
        "appointmentOption": "WAITING",
        "customerTimeIn": "2026-10-19T08:00:00Z",
        "customerTimeOut": None,
        "defaultTechnicianId": 77,
        "keytag": "K12",
        "leadSource": "Google",
        "notes": "Customer waiting",
        "poNumber": "PO-9",
        "referrerId": None,
        "referrerName": None,
        "saveCustomerParts": False,
        "serviceWriterId": 12,
        "totalSales": 42000,
    }
