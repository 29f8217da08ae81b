"""Direct on-chain fallback deployment."""

from launchproxy.deploy.clanker import ClankerDeployer, DeployResult
from launchproxy.deploy.config import TokenDeployConfig, build_fallback_config

__all__ = ["ClankerDeployer", "DeployResult", "TokenDeployConfig", "build_fallback_config"]
