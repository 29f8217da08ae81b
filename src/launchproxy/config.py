"""Application configuration using pydantic-settings.

Every tunable of the burner-wallet launch engine lives here: chain endpoints,
the x402 top-up swap, agent dispatch retries, funding policy, sweep policy and
the fallback deployer contracts.
"""

from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "0.1.0"


class FundingMode(str, Enum):
    """How much native currency a burner wallet receives."""

    STATIC = "static"
    DYNAMIC = "dynamic"


class SweepMode(str, Enum):
    """When the compensating sweep runs relative to the response."""

    INLINE = "inline"          # Before the response is returned
    BACKGROUND = "background"  # Submitted to the task supervisor
    DISABLED = "disabled"      # Never; recorded as skipped


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=True, description="Enable debug mode")

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8000, description="API server port")
    admin_token: str = Field(default="", description="Admin/cron token for protected endpoints")

    # ======================
    # Database
    # ======================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/launchproxy.db",
        description="Database connection URL",
    )

    # ======================
    # Telegram admin log
    # ======================
    telegram_bot_token: str = Field(default="", description="Bot token used for admin audit logs")
    admin_chat_id: int = Field(default=0, description="Telegram chat receiving admin audit logs")

    # ======================
    # Chain (Base mainnet defaults)
    # ======================
    rpc_url: str = Field(default="https://mainnet.base.org", description="EVM JSON-RPC URL")
    chain_id: int = Field(default=8453, description="EVM chain id")
    usdc_address: str = Field(
        default="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        description="Stable token used for x402 payments",
    )
    usdc_decimals: int = Field(default=6, description="Stable token decimals")
    weth_address: str = Field(
        default="0x4200000000000000000000000000000000000006",
        description="Wrapped native token",
    )
    swap_router_address: str = Field(
        default="0x2626664c2603336E57B271c5C0b26F421741e481",
        description="Uniswap V3 SwapRouter02",
    )
    swap_pool_fee: int = Field(default=500, description="WETH/USDC pool fee tier (0.05%)")
    confirmation_timeout: float = Field(
        default=120.0, description="Seconds to wait for any on-chain confirmation"
    )

    # ======================
    # x402 auto top-up
    # ======================
    topup_swap_amount_wei: int = Field(
        default=500_000_000_000_000, description="Native amount swapped when stable balance is short (0.0005 ETH)"
    )
    topup_min_output_units: int = Field(
        default=1_000_000, description="Minimum stable output of the top-up swap (1.00 USDC)"
    )

    # ======================
    # Agent dispatch
    # ======================
    agent_api_url: str = Field(default="https://api.bankr.bot/v2", description="Agent API base URL")
    agent_api_key: str = Field(default="", description="Optional agent API key")
    dispatch_max_attempts: int = Field(default=3, description="Agent attempts before fallback")
    dispatch_attempt_timeout: float = Field(default=20.0, description="Seconds per agent attempt")
    dispatch_retry_delay: float = Field(default=2.0, description="Seconds between agent attempts")

    # ======================
    # Funding
    # ======================
    funding_mode: FundingMode = Field(default=FundingMode.STATIC, description="static or dynamic")
    funding_static_eth: Decimal = Field(default=Decimal("0.0007"), description="Static funding amount")
    funding_base_budget_eth: Decimal = Field(
        default=Decimal("0.0006"), description="Dynamic funding base budget"
    )
    funding_gas_units: int = Field(default=150_000, description="Estimated gas units for one on-chain hop")
    funding_safety_multiplier: Decimal = Field(
        default=Decimal("1.5"), description="Safety multiplier on the gas component"
    )

    # ======================
    # Sweep
    # ======================
    sweep_mode: SweepMode = Field(default=SweepMode.BACKGROUND, description="inline, background or disabled")
    sweep_gas_limit: int = Field(default=21_000, description="Gas limit of a native transfer")
    sweep_base_fee_fallback: int = Field(
        default=1_000_000, description="Base fee used when the latest block has none (wei)"
    )
    background_max_concurrency: int = Field(default=8, description="Concurrent background tasks")

    # ======================
    # Fallback deployer (Clanker v4)
    # ======================
    clanker_factory_address: str = Field(default="", description="Clanker v4 factory")
    clanker_static_hook_address: str = Field(default="", description="Static fee pool hook")
    clanker_dynamic_hook_address: str = Field(default="", description="Dynamic fee pool hook")
    clanker_locker_address: str = Field(default="", description="LP locker")
    clanker_mev_module_address: str = Field(default="", description="MEV module (optional)")
    interface_admin_address: str = Field(
        default="0x1eaf444ebDf6495C57aD52A04C61521bBf564ace", description="Interface reward admin"
    )
    interface_reward_recipient: str = Field(
        default="0x1eaf444ebDf6495C57aD52A04C61521bBf564ace", description="Interface reward recipient"
    )
    deploy_gas_limit: int = Field(default=6_000_000, description="Gas limit of the fallback deployment")

    # ======================
    # Encryption / key escrow
    # ======================
    master_key: Optional[str] = Field(
        default=None, description="Fernet key for sessions and escrowed burner keys"
    )
    escrow_burner_keys: bool = Field(
        default=False, description="Store Fernet-encrypted burner keys for recovery"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def can_escrow_keys(self) -> bool:
        """Key escrow needs both the flag and a master key."""
        return self.escrow_burner_keys and bool(self.master_key)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "database_url": self._redact_url(self.database_url),
            "telegram_bot_token": "***" if self.telegram_bot_token else "(not set)",
            "admin_token": "***" if self.admin_token else "(not set)",
            "chain": {
                "rpc": self.rpc_url,
                "chain_id": self.chain_id,
                "usdc": self.usdc_address,
                "router": self.swap_router_address,
            },
            "agent": {
                "url": self.agent_api_url,
                "api_key": "***" if self.agent_api_key else "(not set)",
                "max_attempts": self.dispatch_max_attempts,
                "attempt_timeout": self.dispatch_attempt_timeout,
            },
            "funding": {
                "mode": self.funding_mode.value,
                "static_eth": str(self.funding_static_eth),
            },
            "sweep": {"mode": self.sweep_mode.value},
            "fallback": {"factory": self.clanker_factory_address or "(not set)"},
            "master_key": "***" if self.master_key else "(not set)",
            "escrow_burner_keys": self.can_escrow_keys,
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact sensitive parts of database URL."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            if "@" in rest:
                creds, host = rest.rsplit("@", 1)
                if ":" in creds:
                    user, _ = creds.split(":", 1)
                    return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
