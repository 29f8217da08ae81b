"""Deployment configuration for the direct Clanker v4 factory call."""

import json
import secrets
import time
from dataclasses import dataclass, field
from typing import Optional

from eth_abi import encode
from web3 import Web3

from launchproxy.config import Settings, get_settings
from launchproxy.schemas import LaunchRequest

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_SALT = b"\x00" * 32

CONTEXT_INTERFACE = "launchproxy"

# WETH-paired pool start
STARTING_TICK = -230400
TICK_SPACING = 200

# (tickLower, tickUpper, positionBps)
POOL_POSITIONS = {
    "Standard": [(-230400, -120000, 10_000)],
    "Project": [
        (-230400, -214000, 1_000),
        (-214000, -155000, 5_000),
        (-202000, -155000, 1_500),
        (-155000, -120000, 2_000),
        (-141000, -120000, 500),
    ],
}

# Fees in bps (100 = 1%)
DYNAMIC_FEE_CONFIG = {
    "base_fee": 100,
    "max_fee": 1000,
    "reference_tick_filter_period": 30,
    "reset_period": 120,
    "reset_tick_filter": 200,
    "fee_control_numerator": 500_000_000,
    "decay_filter_bps": 7500,
}

# Uniswap v4 hooks express fees in millionths
BPS_TO_UNI = 100


def normalize_ipfs_uri(uri: Optional[str]) -> str:
    """Turn a CID or an ipfs.io gateway URL into an ipfs:// URI."""
    if not uri:
        return ""
    if uri.startswith("ipfs://"):
        return uri
    if uri.startswith("Qm") or uri.startswith("bafy"):
        return f"ipfs://{uri}"
    if "ipfs.io/ipfs/" in uri:
        return "ipfs://" + uri.split("ipfs.io/ipfs/", 1)[1]
    return uri


def generate_message_id() -> str:
    return f"launch-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


@dataclass
class TokenDeployConfig:
    """Parameters of a direct token deployment.

    token_admin and reward_recipient must be requester-controlled; the
    deployer refuses configurations that point either at its signer.
    """

    name: str
    symbol: str
    token_admin: str
    reward_recipient: str
    image: str = ""
    description: Optional[str] = None
    social_urls: list[dict] = field(default_factory=list)
    fee_type: str = "static"
    static_fee_bps: int = 1000
    pool_position_type: str = "Standard"
    creator_reward_pct: int = 100
    platform: str = "web"
    platform_id: Optional[str] = None


def build_fallback_config(
    request: LaunchRequest,
    requester_address: str,
    telegram_user_id: Optional[int] = None,
) -> TokenDeployConfig:
    """Map a launch request onto a direct deployment.

    The token admin is always the requester; the reward recipient may be a
    requester-supplied wallet.
    """
    social_urls = []
    if request.tweet:
        social_urls.append({"platform": "x", "url": request.tweet})
    if request.website:
        social_urls.append({"platform": "website", "url": request.website})

    return TokenDeployConfig(
        name=request.name,
        symbol=request.resolved_symbol,
        token_admin=requester_address,
        reward_recipient=request.reward_recipient_for(requester_address),
        image=normalize_ipfs_uri(request.image),
        description=request.description,
        social_urls=social_urls,
        fee_type=request.tax_type,
        static_fee_bps=request.tax_percentage * 100,
        platform="telegram-miniapp" if telegram_user_id else "web",
        platform_id=str(telegram_user_id) if telegram_user_id else requester_address,
    )


def encode_pool_data(config: TokenDeployConfig) -> bytes:
    """Encode the hook initialization data for the chosen fee type."""
    if config.fee_type == "dynamic":
        fees = DYNAMIC_FEE_CONFIG
        return encode(
            ["uint24", "uint24", "uint256", "uint256", "int24", "uint256", "uint256"],
            [
                fees["base_fee"] * BPS_TO_UNI,
                fees["max_fee"] * BPS_TO_UNI,
                fees["reference_tick_filter_period"],
                fees["reset_period"],
                fees["reset_tick_filter"],
                fees["fee_control_numerator"],
                fees["decay_filter_bps"],
            ],
        )

    fee = config.static_fee_bps * BPS_TO_UNI
    return encode(["uint24", "uint24"], [fee, fee])


def _reward_split(config: TokenDeployConfig, settings: Settings) -> list[tuple[str, str, int]]:
    """(admin, recipient, bps) entries; zero-bps entries are dropped."""
    creator_pct = min(max(config.creator_reward_pct, 0), 100)
    creator_bps = creator_pct * 100
    entries = [
        (config.token_admin, config.reward_recipient, creator_bps),
        (settings.interface_admin_address, settings.interface_reward_recipient, 10_000 - creator_bps),
    ]
    return [entry for entry in entries if entry[2] > 0]


def build_deployment_args(config: TokenDeployConfig, settings: Optional[Settings] = None) -> tuple:
    """Build the DeploymentConfig tuple for `deployToken`."""
    settings = settings or get_settings()
    checksum = Web3.to_checksum_address

    metadata = {
        "description": config.description or f"{config.name} - Deployed via {CONTEXT_INTERFACE}",
    }
    if config.social_urls:
        metadata["socialMediaUrls"] = config.social_urls

    context = {
        "interface": CONTEXT_INTERFACE,
        "platform": config.platform,
        "id": config.platform_id or config.token_admin,
        "messageId": generate_message_id(),
    }

    hook = (
        settings.clanker_dynamic_hook_address
        if config.fee_type == "dynamic"
        else settings.clanker_static_hook_address
    )

    token_config = (
        checksum(config.token_admin),
        config.name,
        config.symbol,
        ZERO_SALT,
        config.image,
        json.dumps(metadata),
        json.dumps(context),
        settings.chain_id,
    )

    pool_config = (
        checksum(hook or ZERO_ADDRESS),
        checksum(settings.weth_address),
        STARTING_TICK,
        TICK_SPACING,
        encode_pool_data(config),
    )

    rewards = _reward_split(config, settings)
    positions = POOL_POSITIONS.get(config.pool_position_type, POOL_POSITIONS["Standard"])
    locker_config = (
        checksum(settings.clanker_locker_address or ZERO_ADDRESS),
        [checksum(admin) for admin, _, _ in rewards],
        [checksum(recipient) for _, recipient, _ in rewards],
        [bps for _, _, bps in rewards],
        [lower for lower, _, _ in positions],
        [upper for _, upper, _ in positions],
        [bps for _, _, bps in positions],
        b"",
    )

    mev_module_config = (checksum(settings.clanker_mev_module_address or ZERO_ADDRESS), b"")

    return (token_config, pool_config, locker_config, mev_module_config, [])
