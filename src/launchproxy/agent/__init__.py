"""External launch agent."""

from launchproxy.agent.bankr import AgentLaunchResult, BankrAgentClient, extract_tx_hash

__all__ = ["AgentLaunchResult", "BankrAgentClient", "extract_tx_hash"]
