"""Constants shared across the bridge vault CLI."""

from pathlib import Path

# Local state lives next to the user's home directory; the working-directory
# config file takes precedence when it exists.
STATE_DIR_NAME = ".bridge-vault-cli"
LOCAL_CONFIG_FILENAME = "vault-config.json"
HOME_CONFIG_FILENAME = "config.json"
CACHE_DIR_NAME = "cache"

DEFAULT_CACHE_TTL = 5 * 60.0  # seconds
CONFIG_CACHE_TTL = 30.0  # seconds
CONFIG_CACHE_NAMESPACE = "config"
CONFIG_CACHE_KEY = "config"

# bytes32(0) as returned by tokenPriceFeeds() for tokens that were never whitelisted
ZERO_PRICE_FEED = "0x" + "00" * 32

WEI_PER_ETHER = 10**18

# Conservative amounts used when a fee query cannot be answered
FALLBACK_PRICE_UPDATE_FEE = WEI_PER_ETHER // 1000  # 0.001 ether
FALLBACK_NATIVE_FEE = 5 * WEI_PER_ETHER // 1000  # 0.005 ether

FEE_BUFFER_PERCENT = 10
SUBMISSION_MARGIN_PERCENT = 20

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 120.0

DEFAULT_HERMES_URL = "https://hermes.pyth.network"
DEFAULT_VAULT_ARTIFACT = Path("artifacts") / "contracts" / "BridgeVault.sol" / "BridgeVault.json"

# name -> (display name, chain id, fallback rpc url)
DEFAULT_NETWORKS = {
    "arbitrum": ("Arbitrum One", 42161, "https://arb1.arbitrum.io/rpc"),
    "localhost": ("Localhost", 31337, "http://127.0.0.1:8545"),
}


def default_state_dir() -> Path:
    """Return the per-user directory used for config and cache files."""
    return Path.home() / STATE_DIR_NAME


def default_config_paths() -> list[Path]:
    """Candidate config files, highest priority first."""
    return [
        Path.cwd() / LOCAL_CONFIG_FILENAME,
        default_state_dir() / HOME_CONFIG_FILENAME,
    ]
