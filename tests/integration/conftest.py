"""Pytest configuration for integration tests."""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

REQUIRED_VARIABLES = ["SOURCE_REPO", "DESTINATION_REPO", "GITHUB_PAT_TOKEN"]


@pytest.fixture(autouse=True, scope="session")
def load_env() -> None:
    """Load environment variables from .env.integration or .env before running integration tests.

    The .env.integration file takes precedence over .env. Integration tests
    are skipped unless the repositories and a token are configured.
    """
    project_root = Path(__file__).parent.parent.parent

    integration_env = project_root / ".env.integration"
    if integration_env.exists():
        load_dotenv(dotenv_path=integration_env)

    default_env = project_root / ".env"
    if default_env.exists():
        load_dotenv(dotenv_path=default_env)

    missing_variables = [variable for variable in REQUIRED_VARIABLES if not os.getenv(variable)]
    if missing_variables:
        pytest.skip(f"Missing environment variables for integration tests: {', '.join(missing_variables)}")
