"""Configuration constants for onchain-deployments library."""

# Built-in network table, extended or overridden by the deployment plan.
# Non-live networks are simulated chains where bytecode patches are applied.
NETWORK_CONFIG = {
    "hardhat": {
        "chain_id": 31337,
        "live": False,
        "rpc_url": "http://127.0.0.1:8545",
    },
    "localhost": {
        "chain_id": 31337,
        "live": False,
        "rpc_url": "http://127.0.0.1:8545",
    },
    "mainnet": {
        "chain_id": 1,
        "live": True,
        "rpc_env": "MAINNET_RPC",
    },
    "bsc": {
        "chain_id": 56,
        "live": True,
        "rpc_env": "BSC_RPC",
    },
}

# Named accounts: integers index into the node's eth_accounts
NAMED_ACCOUNTS = {
    "deployer": 0,
    "relayer": 1,
    "user": 2,
    "feeCollector": 3,
}

# Chain id passed to constructors instead of the live value
CHAIN_ID_OVERRIDES = {
    "mainnet": 42,
}

# Arachnid deterministic deployment proxy, same address on every EVM chain
DETERMINISTIC_DEPLOYMENT_PROXY = "0x4e59b44847b379578588920ca78fbf26c0b4956c"
DEFAULT_SALT = bytes(32)

DEFAULT_PLAN_FILENAME = "deploy.json"
