"""
Pytest configuration and fixtures.
"""

import copy

import pytest

from fm_backend.server import create_app

SAMPLE_MODEL = {
    "root": "Phone",
    "features": [
        {"id": "Phone", "label": "Smart Phone", "type": "mandatory"},
        {"id": "Connectivity", "parent": "Phone", "type": "mandatory"},
        {"id": "Bluetooth", "parent": "Connectivity", "type": "or"},
        {"id": "WiFi", "label": "Wi-Fi", "parent": "Connectivity", "type": "or"},
        {"id": "Power", "parent": "Phone", "type": "mandatory"},
        {"id": "Battery", "parent": "Power", "type": "alternative"},
        {"id": "BatteryBackup", "label": "Battery Backup", "parent": "Power", "type": "alternative"},
        {"id": "Camera", "parent": "Phone", "type": "optional"},
    ],
    "constraints": [
        {"a": "Bluetooth", "b": "BatteryBackup", "type": "requires"},
        {"a": "Bluetooth", "b": "WiFi", "type": "excludes"},
    ],
}


@pytest.fixture
def sample_model():
    return copy.deepcopy(SAMPLE_MODEL)


@pytest.fixture
def app():
    return create_app({"TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()
