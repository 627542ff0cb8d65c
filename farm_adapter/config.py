"""
Configuration management for Farm Adapter

Loads settings from environment variables and .env file.
Includes logging configuration with file output and correlation ID support.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

from .errors import ConfigurationError


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # farm_adapter package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


@dataclass
class RpcConfig:
    """Ethereum RPC configuration"""
    eth_rpc_url: str = field(default_factory=lambda: _get_env("ETH_RPC_URL", ""))
    chain_id: int = field(default_factory=lambda: _get_env_int("CHAIN_ID", 1))
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))


@dataclass
class SignerConfig:
    """Signer configuration for local key signing"""
    private_key_env: str = field(default_factory=lambda: _get_env("SIGNER_KEY_ENV", "EVM_PRIVATE_KEY"))


@dataclass
class ProtocolConfig:
    """
    Contract addresses the farm talks to.

    Protocol-specific addresses (diamond, pipeline, protocol tokens) must be
    configured in .env. Common Ethereum mainnet tokens and Curve contracts
    default to their canonical deployments.
    """
    # Protocol
    protocol: str = field(default_factory=lambda: _get_env("FARM_PROTOCOL_ADDRESS", ""))
    pipeline: str = field(default_factory=lambda: _get_env("FARM_PIPELINE_ADDRESS", ""))

    # Protocol tokens
    hooligan: str = field(default_factory=lambda: _get_env("FARM_HOOLIGAN_ADDRESS", ""))
    hooligan_crv3: str = field(default_factory=lambda: _get_env("FARM_HOOLIGAN_CRV3_ADDRESS", ""))
    unripe_hooligan: str = field(default_factory=lambda: _get_env("FARM_UNRIPE_HOOLIGAN_ADDRESS", ""))
    unripe_hooligan_crv3: str = field(default_factory=lambda: _get_env("FARM_UNRIPE_HOOLIGAN_CRV3_ADDRESS", ""))

    # Common tokens (Ethereum mainnet)
    weth: str = field(default_factory=lambda: _get_env("WETH_ADDRESS", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"))
    usdc: str = field(default_factory=lambda: _get_env("USDC_ADDRESS", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"))
    usdt: str = field(default_factory=lambda: _get_env("USDT_ADDRESS", "0xdAC17F958D2ee523a2206206994597C13D831ec7"))
    dai: str = field(default_factory=lambda: _get_env("DAI_ADDRESS", "0x6B175474E89094C44Da98b954EedeAC495271d0F"))
    crv3: str = field(default_factory=lambda: _get_env("CRV3_ADDRESS", "0x6c3F90f043a72FA612cbac8115EE7e52BDe6E490"))

    # Curve pools
    pool_3pool: str = field(default_factory=lambda: _get_env("CURVE_3POOL_ADDRESS", "0xbEbc44782C7dB0a1A60Cb6fe97d0b483032FF1C7"))
    pool_tricrypto2: str = field(default_factory=lambda: _get_env("CURVE_TRICRYPTO2_ADDRESS", "0xD51a44d3FaE010294C616388b506AcdA1bfAAE46"))

    # Curve registries
    registry_pool: str = field(default_factory=lambda: _get_env("CURVE_POOL_REGISTRY_ADDRESS", "0x90E00ACe148ca3b23Ac1bC8C240C2a7Dd9c2d7f5"))
    registry_meta_factory: str = field(default_factory=lambda: _get_env("CURVE_META_FACTORY_ADDRESS", "0xB9fC157394Af804a3578134A6585C0dc9cc990d4"))
    registry_crypto: str = field(default_factory=lambda: _get_env("CURVE_CRYPTO_REGISTRY_ADDRESS", "0x8F942C20D02bEfc377D41445793068908E2250D0"))

    @property
    def pool_hooligan_crv3(self) -> str:
        """The HOOLIGAN:3CRV metapool is its own LP token"""
        return self.hooligan_crv3

    def require(self, name: str) -> str:
        """
        Get a configured address or fail.

        Raises:
            ConfigurationError: If the address is not set
        """
        value = getattr(self, name, None)
        if not value:
            raise ConfigurationError.missing(f"protocol.{name}")
        return value


@dataclass
class EventsConfig:
    """Event log query configuration"""
    # First block to scan when no range is given
    genesis_block: int = field(default_factory=lambda: _get_env_int("EVENTS_GENESIS_BLOCK", 12974075))
    # Market events did not exist before this block
    market_start_block: int = field(default_factory=lambda: _get_env_int("EVENTS_MARKET_START_BLOCK", 14148509))
    # Worker threads for concurrent log queries
    max_workers: int = field(default_factory=lambda: _get_env_int("EVENTS_MAX_WORKERS", 6))


@dataclass
class TxConfig:
    """Transaction configuration"""
    # Slippage in percent applied to the final output of a workflow
    default_slippage: float = field(default_factory=lambda: _get_env_float("TX_DEFAULT_SLIPPAGE", 0.1))
    # Seconds between receipt polls while waiting for a transaction
    receipt_poll_interval: float = field(default_factory=lambda: _get_env_float("TX_RECEIPT_POLL_INTERVAL", 2.0))
    # Multiplier for gas limit estimates to provide buffer
    gas_limit_multiplier: float = field(default_factory=lambda: _get_env_float("TX_GAS_LIMIT_MULTIPLIER", 1.2))


def _get_default_log_path() -> str:
    """Get default log file path under farm_adapter/log/ with UTC timestamp"""
    from datetime import datetime, timezone
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_dir = Path(__file__).parent / "log"
    return str(log_dir / f"farm_adapter_{timestamp}.log")


@dataclass
class LoggingConfig:
    """
    Logging configuration with file output and correlation ID support.

    Environment variables:
        LOG_FILE: Path to log file (overrides default)
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", _get_default_log_path()))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class Config:
    """
    Main configuration container

    Loads all settings from environment variables and .env file.

    Usage:
        from farm_adapter.config import config

        print(config.rpc.eth_rpc_url)
        print(config.protocol.protocol)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    events: EventsConfig = field(default_factory=EventsConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        """Reload configuration from environment"""
        _load_env_file()
        return cls()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config


def reload_config() -> Config:
    """Reload and return new configuration"""
    global config
    config = Config.reload()
    return config


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "farm_adapter",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure (default: farm_adapter)

    Returns:
        Configured logger instance
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close before removing to flush buffers and release file handles
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)

    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    # Child loggers inherit handlers from parent
    for name in [
        f"{logger_name}.infra",
        f"{logger_name}.workflow",
        f"{logger_name}.routing",
        f"{logger_name}.events",
        f"{logger_name}.modules",
    ]:
        logging.getLogger(name).setLevel(log_config.level)

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger


def enable_file_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    console: bool = True,
) -> logging.Logger:
    """
    Quick setup for file logging.

    Args:
        log_file: Path to log file (defaults to farm_adapter/log/)
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        console: Also output to console

    Returns:
        Configured logger
    """
    if log_file is None:
        log_file = config.logging.log_file

    log_config = LoggingConfig(
        log_file=log_file,
        log_level=level,
        console_output=console,
    )
    return setup_logging(log_config)
