"""Minimal contract ABIs used by the engine."""

# ERC20 transfer + balanceOf
ERC20_ABI = [
    {
        "constant": False,
        "inputs": [
            {"name": "_to", "type": "address"},
            {"name": "_value", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "account", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]

# Uniswap V3 SwapRouter02 exactInputSingle (no deadline field)
SWAP_ROUTER_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"name": "tokenIn", "type": "address"},
                    {"name": "tokenOut", "type": "address"},
                    {"name": "fee", "type": "uint24"},
                    {"name": "recipient", "type": "address"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "amountOutMinimum", "type": "uint256"},
                    {"name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
                "name": "params",
                "type": "tuple",
            }
        ],
        "name": "exactInputSingle",
        "outputs": [{"name": "amountOut", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function",
    }
]

# Clanker v4 factory deployToken(DeploymentConfig)
CLANKER_FACTORY_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {
                        "components": [
                            {"name": "tokenAdmin", "type": "address"},
                            {"name": "name", "type": "string"},
                            {"name": "symbol", "type": "string"},
                            {"name": "salt", "type": "bytes32"},
                            {"name": "image", "type": "string"},
                            {"name": "metadata", "type": "string"},
                            {"name": "context", "type": "string"},
                            {"name": "originatingChainId", "type": "uint256"},
                        ],
                        "name": "tokenConfig",
                        "type": "tuple",
                    },
                    {
                        "components": [
                            {"name": "hook", "type": "address"},
                            {"name": "pairedToken", "type": "address"},
                            {"name": "tickIfToken0IsClanker", "type": "int24"},
                            {"name": "tickSpacing", "type": "int24"},
                            {"name": "poolData", "type": "bytes"},
                        ],
                        "name": "poolConfig",
                        "type": "tuple",
                    },
                    {
                        "components": [
                            {"name": "locker", "type": "address"},
                            {"name": "rewardAdmins", "type": "address[]"},
                            {"name": "rewardRecipients", "type": "address[]"},
                            {"name": "rewardBps", "type": "uint16[]"},
                            {"name": "tickLower", "type": "int24[]"},
                            {"name": "tickUpper", "type": "int24[]"},
                            {"name": "positionBps", "type": "uint16[]"},
                            {"name": "lockerData", "type": "bytes"},
                        ],
                        "name": "lockerConfig",
                        "type": "tuple",
                    },
                    {
                        "components": [
                            {"name": "mevModule", "type": "address"},
                            {"name": "mevModuleData", "type": "bytes"},
                        ],
                        "name": "mevModuleConfig",
                        "type": "tuple",
                    },
                    {
                        "components": [
                            {"name": "extension", "type": "address"},
                            {"name": "msgValue", "type": "uint256"},
                            {"name": "extensionBps", "type": "uint16"},
                            {"name": "extensionData", "type": "bytes"},
                        ],
                        "name": "extensionConfigs",
                        "type": "tuple[]",
                    },
                ],
                "name": "deploymentConfig",
                "type": "tuple",
            }
        ],
        "name": "deployToken",
        "outputs": [{"name": "tokenAddress", "type": "address"}],
        "stateMutability": "payable",
        "type": "function",
    }
]
