"""
Configuration Manager for the pump.fun SDK
Loads configuration from YAML files with environment variable support
"""

import json
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from solders.keypair import Keypair


class NetworkMode(Enum):
    """Cluster the SDK trades on; selects the fee recipient account"""
    MAINNET = "mainnet"
    DEVNET = "devnet"


# Initial reserves of a freshly created curve (before the creator's first buy)
INITIAL_VIRTUAL_TOKEN_RESERVES = 1_073_000_000_000_000  # 1.073B tokens (6 decimals)
INITIAL_VIRTUAL_SOL_RESERVES = 30_000_000_000  # 30 SOL
INITIAL_REAL_TOKEN_RESERVES = 793_100_000_000_000  # 793.1M tokens (6 decimals)


@dataclass
class RPCConfig:
    """Ledger client configuration"""
    url: str
    timeout_s: float = 10.0
    skip_preflight: bool = False
    confirmation_timeout_s: float = 60.0
    confirmation_poll_interval_s: float = 1.0


@dataclass
class TradeConfig:
    """Instruction assembly configuration"""
    compute_unit_limit: int = 250_000
    buy_compute_unit_price: int = 100_000  # micro-lamports per CU
    sell_compute_unit_price: int = 10_000  # micro-lamports per CU
    max_tx_size_bytes: int = 1232
    initial_virtual_token_reserves: int = INITIAL_VIRTUAL_TOKEN_RESERVES
    initial_virtual_sol_reserves: int = INITIAL_VIRTUAL_SOL_RESERVES
    initial_real_token_reserves: int = INITIAL_REAL_TOKEN_RESERVES


@dataclass
class LogConfig:
    """Logging configuration"""
    level: str = "INFO"
    format: str = "json"
    output_file: Optional[str] = None


@dataclass
class MetricsConfig:
    """Metrics configuration"""
    enable_histogram: bool = True


@dataclass
class SDKConfig:
    """Complete SDK configuration"""
    rpc_config: RPCConfig
    trade_config: TradeConfig = field(default_factory=TradeConfig)
    log_config: LogConfig = field(default_factory=LogConfig)
    metrics_config: MetricsConfig = field(default_factory=MetricsConfig)
    network: NetworkMode = NetworkMode.MAINNET
    wallet_private_key: Optional[str] = None


def parse_network_mode(value: Optional[str]) -> NetworkMode:
    """
    Parse a network name, defaulting to mainnet when unset

    Raises:
        ValueError: If the name is not a known network
    """
    if value is None:
        return NetworkMode.MAINNET

    try:
        return NetworkMode(str(value).lower())
    except ValueError:
        raise ValueError(
            f"Unknown network '{value}' (expected one of: "
            f"{', '.join(m.value for m in NetworkMode)})"
        ) from None


def load_keypair(secret: str) -> Keypair:
    """
    Load a keypair from a base58 secret or a JSON byte array

    Args:
        secret: "[12, 34, ...]" (solana-keygen file format) or base58 string

    Returns:
        Keypair
    """
    secret = secret.strip()
    if secret.startswith("["):
        return Keypair.from_bytes(bytes(json.loads(secret)))
    return Keypair.from_base58_string(secret)


class ConfigurationManager:
    """Manages SDK configuration from YAML files and environment variables"""

    def __init__(self, config_path: str):
        """
        Initialize configuration manager

        Args:
            config_path: Path to YAML configuration file
        """
        self.config_path = Path(config_path)
        self._config_data: Optional[Dict[str, Any]] = None
        self._sdk_config: Optional[SDKConfig] = None

    def load_config(self) -> SDKConfig:
        """
        Load and validate configuration from file

        Returns:
            SDKConfig: Validated configuration object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r') as f:
            raw_config = yaml.safe_load(f) or {}

        self._config_data = self._substitute_env_vars(raw_config)
        self._sdk_config = self._parse_config(self._config_data)

        return self._sdk_config

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation key

        Args:
            key: Dot-notation key (e.g., "trading.compute_unit_limit")
            default: Default value if key not found
        """
        if self._config_data is None:
            raise RuntimeError("Configuration not loaded. Call load_config() first.")

        value = self._config_data
        for k in key.split('.'):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def _substitute_env_vars(self, config: Any) -> Any:
        """
        Recursively substitute ${VAR_NAME} environment variables in config

        Supports both full-value substitution and embedded vars:
        - Full: "${PRIVATE_KEY}" -> "abc123"
        - Embedded: "https://rpc.example/?api-key=${API_KEY}"
        """
        if isinstance(config, dict):
            return {k: self._substitute_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            def replace_var(match):
                var_name = match.group(1)
                value = os.getenv(var_name)
                if value is None:
                    raise ValueError(
                        f"Environment variable {var_name} not found"
                    )
                return value

            return re.sub(r'\$\{([^}]+)\}', replace_var, config)
        else:
            return config

    def _parse_config(self, config: Dict[str, Any]) -> SDKConfig:
        """
        Parse raw configuration into typed objects

        Raises:
            ValueError: If configuration is invalid
        """
        rpc_data = config.get('rpc', {})
        if not rpc_data.get('url'):
            raise ValueError("No RPC url configured")

        rpc_config = RPCConfig(
            url=rpc_data['url'],
            timeout_s=rpc_data.get('timeout_s', 10.0),
            skip_preflight=rpc_data.get('skip_preflight', False),
            confirmation_timeout_s=rpc_data.get('confirmation_timeout_s', 60.0),
            confirmation_poll_interval_s=rpc_data.get('confirmation_poll_interval_s', 1.0)
        )

        trade_data = config.get('trading', {})
        trade_config = TradeConfig(
            compute_unit_limit=trade_data.get('compute_unit_limit', 250_000),
            buy_compute_unit_price=trade_data.get('buy_compute_unit_price', 100_000),
            sell_compute_unit_price=trade_data.get('sell_compute_unit_price', 10_000),
            max_tx_size_bytes=trade_data.get('max_tx_size_bytes', 1232),
            initial_virtual_token_reserves=trade_data.get(
                'initial_virtual_token_reserves', INITIAL_VIRTUAL_TOKEN_RESERVES
            ),
            initial_virtual_sol_reserves=trade_data.get(
                'initial_virtual_sol_reserves', INITIAL_VIRTUAL_SOL_RESERVES
            ),
            initial_real_token_reserves=trade_data.get(
                'initial_real_token_reserves', INITIAL_REAL_TOKEN_RESERVES
            )
        )
        if trade_config.compute_unit_limit <= 0:
            raise ValueError("compute_unit_limit must be positive")

        log_data = config.get('logging', {})
        log_config = LogConfig(
            level=log_data.get('level', 'INFO'),
            format=log_data.get('format', 'json'),
            output_file=log_data.get('output_file')
        )

        metrics_data = config.get('metrics', {})
        metrics_config = MetricsConfig(
            enable_histogram=metrics_data.get('enable_histogram', True)
        )

        wallet_data = config.get('wallet', {})

        return SDKConfig(
            rpc_config=rpc_config,
            trade_config=trade_config,
            log_config=log_config,
            metrics_config=metrics_config,
            network=parse_network_mode(config.get('network')),
            wallet_private_key=wallet_data.get('private_key')
        )
