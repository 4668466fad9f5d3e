"""
Shared fixtures for composer-lock-inventory tests.
"""

import json
import os

import pytest

from composer_lock_inventory.cli_config import ENV_PREFIX, reset_config
from composer_lock_inventory.error_handling import setup_error_handling

SAMPLE_LOCK = {
    "_readme": [
        "This file locks the dependencies of your project to a known state",
    ],
    "content-hash": "5f2b7c3ad5b8d6a4b7c0e2f1a9d8c7b6",
    "packages": [
        {
            "name": "symfony/console",
            "version": "v5.4.21",
            "source": {
                "type": "git",
                "url": "https://github.com/symfony/console.git",
                "reference": "c77433ddc6cdc689caf48065d9ea22ca0853fbd9",
            },
            "require": {"php": ">=7.2.5"},
            "type": "library",
        },
        {
            "name": "monolog/monolog",
            "version": "2.9.1",
            "require": {"php": ">=7.2", "psr/log": "^1.0.1 || ^2.0 || ^3.0"},
        },
    ],
    "packages-dev": [
        {
            "name": "phpunit/phpunit",
            "version": "9.6.7",
            "require-dev": {"ext-pdo": "*"},
        },
    ],
    "aliases": [],
    "minimum-stability": "stable",
    "platform": {"php": ">=7.4"},
    "plugin-api-version": "2.3.0",
}


class RecordingCollection:
    """Dependency collection fake that records every call."""

    def __init__(self):
        self.added = []
        self.removed = []

    def add_dependency(self, dependency):
        self.added.append(dependency)

    def remove_dependency(self, dependency):
        self.removed.append(dependency)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from real config files and environment overrides."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    reset_config()
    setup_error_handling()
    yield
    reset_config()


@pytest.fixture
def temp_dir(tmp_path):
    """Working directory for files created by a test."""
    work = tmp_path / "work"
    work.mkdir()
    return work


@pytest.fixture
def sample_lock_data():
    return json.loads(json.dumps(SAMPLE_LOCK))


@pytest.fixture
def sample_composer_lock(temp_dir, sample_lock_data):
    """A realistic composer.lock with two runtime and one dev package."""
    lock_file = temp_dir / "composer.lock"
    lock_file.write_text(json.dumps(sample_lock_data, indent=4), encoding="utf-8")
    return lock_file


@pytest.fixture
def truncated_composer_lock(temp_dir, sample_lock_data):
    lock_file = temp_dir / "composer.lock"
    text = json.dumps(sample_lock_data, indent=4)
    lock_file.write_text(text[: len(text) // 2], encoding="utf-8")
    return lock_file


@pytest.fixture
def recording_collection():
    return RecordingCollection()
