"""
Configuration management for the scenario conformance harness.
"""

import os
from dataclasses import dataclass

from judge_spec.config import COIN_VALUE, DEFAULT_COLLATERAL_PERCENTAGE

_TRUTHY = ("true", "1", "yes")
_DEFAULT_VECTOR_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "vectors")


@dataclass
class HarnessConfig:
    """Main configuration for the test harness."""
    # Paths
    vector_dir: str = _DEFAULT_VECTOR_DIR
    result_dir: str = "results"

    # Execution settings
    stop_on_first_failure: bool = False
    verbose: bool = False

    # Scenario defaults
    default_account_balance: int = 100 * COIN_VALUE
    default_collateral_percentage: int = DEFAULT_COLLATERAL_PERCENTAGE

    @classmethod
    def from_env(cls) -> "HarnessConfig":
        """Load configuration from environment variables."""
        config = cls()

        # Load paths
        config.vector_dir = os.environ.get("VECTOR_DIR", config.vector_dir)
        config.result_dir = os.environ.get("RESULT_DIR", config.result_dir)

        # Load settings
        config.verbose = os.environ.get("VERBOSE", "").lower() in _TRUTHY
        config.stop_on_first_failure = os.environ.get(
            "STOP_ON_FIRST_FAILURE", ""
        ).lower() in _TRUTHY

        balance = os.environ.get("DEFAULT_ACCOUNT_BALANCE")
        if balance:
            config.default_account_balance = int(balance)

        return config
