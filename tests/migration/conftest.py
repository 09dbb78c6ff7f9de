"""Helpful fixtures for testing pristine.migration functionality."""

import os

import pytest

SAMPLE_SCRIPTS = os.path.join(os.path.dirname(__file__), "sample_scripts")


@pytest.fixture()
def scripts_dir(tmp_path):
    """Provide an empty migration script directory."""
    path = tmp_path / "scripts"
    path.mkdir()
    return path
