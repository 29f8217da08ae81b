"""Direct token deployment through the Clanker v4 factory.

Used when the agent could not be reached. The burner signs the factory call;
ownership always lands on requester-controlled addresses.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from eth_account import Account

from launchproxy.chain.abis import CLANKER_FACTORY_ABI
from launchproxy.chain.base import ChainClient
from launchproxy.config import Settings, get_settings
from launchproxy.deploy.config import TokenDeployConfig, build_deployment_args
from launchproxy.errors import FallbackDeploymentError

logger = logging.getLogger(__name__)


@dataclass
class DeployResult:
    """A confirmed direct deployment."""

    tx_hash: str
    token_address: Optional[str] = None


class ClankerDeployer:
    """Deploys tokens by calling the factory contract directly."""

    def __init__(self, chain: ChainClient, settings: Optional[Settings] = None):
        self.chain = chain
        self.settings = settings or get_settings()

    async def deploy_direct(self, config: TokenDeployConfig, signing_key: str) -> DeployResult:
        """Deploy a token signed by `signing_key`.

        Raises:
            FallbackDeploymentError: On invalid ownership, a missing factory,
                simulation, broadcast or confirmation failure
        """
        factory = self.settings.clanker_factory_address
        if not factory:
            raise FallbackDeploymentError("Clanker factory address is not configured")

        try:
            signer = Account.from_key(signing_key).address
        except ValueError as e:
            raise FallbackDeploymentError("Invalid deployer key") from e

        for role, address in (("tokenAdmin", config.token_admin), ("rewardRecipient", config.reward_recipient)):
            if address.lower() == signer.lower():
                raise FallbackDeploymentError(f"{role} must not be the deploying wallet")

        logger.info(
            f"Deploying {config.name} ({config.symbol}) via factory {factory}, "
            f"admin {config.token_admin}"
        )

        try:
            args = [build_deployment_args(config, self.settings)]

            # Simulate first to learn the token address and surface reverts early
            token_address = await self.chain.call(
                factory, CLANKER_FACTORY_ABI, "deployToken", args, from_address=signer
            )
            tx_hash = await self.chain.transact(
                signing_key,
                factory,
                CLANKER_FACTORY_ABI,
                "deployToken",
                args,
                gas=self.settings.deploy_gas_limit,
            )
            logger.info(f"Deployment submitted. Tx: {tx_hash}")
            await self.chain.wait_for_receipt(tx_hash, self.settings.confirmation_timeout)
        except FallbackDeploymentError:
            raise
        except Exception as e:
            raise FallbackDeploymentError(str(e)) from e

        logger.info(f"Deployment confirmed: {token_address} (tx {tx_hash})")
        return DeployResult(tx_hash=tx_hash, token_address=token_address)
