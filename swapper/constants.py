"""Protocol constants for UniswapV2-style swapping.

Centralizes well-known addresses and protocol parameters.
"""

from swapper.models.types import NATIVE_SENTINEL, is_valid_address

# Fixed-point scale used for prices (18 decimals)
PRICE_SCALE = 10**18

# Constant-product fee: 0.3% (amount_in * 997 / 1000 reaches the curve)
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000

# Hundredths of a percent in one unit (impact is tracked in basis points)
BPS_SCALE = 10_000

# Slippage fractions are converted to integer parts per million before use
SLIPPAGE_SCALE = 1_000_000

# Submitted trades expire this many seconds after submission
DEADLINE_SECONDS = 60 * 20

# Gas tiers: first submission vs retry after a gas-estimation failure
GWEI = 10**9
STANDARD_GAS_LIMIT = 500_000
STANDARD_GAS_PRICE = 100 * GWEI
ELEVATED_GAS_LIMIT = 1_000_000
ELEVATED_GAS_PRICE = 150 * GWEI

# Relaxed bounds on the single automatic retry
RETRY_MIN_OUT_PERCENT = 90
RETRY_MAX_IN_PERCENT = 110

DEFAULT_SLIPPAGE = "0.05"
DEFAULT_MAX_HOPS = 3

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _validate_token_address(name: str, address: str) -> str:
    """Validate and return a lowercase token address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address.lower()


# UniswapV2 deployment on mainnet
UNISWAP_V2_FACTORY = _validate_token_address("factory", "0x5c69bee701ef814a2b6a3edd4b1652cb9cc5aa6f")

# Well-known token addresses on mainnet (lowercase for consistency)
WETH = _validate_token_address("WETH", "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2")
LINK = _validate_token_address("LINK", "0x514910771AF9Ca656af840dff83E8264EcF986CA")
SUSHI = _validate_token_address("SUSHI", "0x6B3595068778DD592e39A122f4f5a5cF09C90fE2")
USDC = _validate_token_address("USDC", "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")
USDT = _validate_token_address("USDT", "0xdAC17F958D2ee523a2206206994597C13D831ec7")
DAI = _validate_token_address("DAI", "0x6B175474E89094C44Da98b954EedeAC495271d0F")
UNI = _validate_token_address("UNI", "0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984")

NATIVE = NATIVE_SENTINEL

# (address, symbol, name, decimals) for the default token list
DEFAULT_TOKENS: list[tuple[str, str, str, int]] = [
    (NATIVE, "ETH", "Ethereum", 18),
    (WETH, "WETH", "Wrapped Ether", 18),
    (LINK, "LINK", "Chainlink", 18),
    (SUSHI, "SUSHI", "SushiToken", 18),
    (USDC, "USDC", "USD Coin", 6),
    (USDT, "USDT", "Tether USD", 6),
    (DAI, "DAI", "Dai Stablecoin", 18),
    (UNI, "UNI", "Uniswap", 18),
]

# Intermediate assets the route finder may hop through
DEFAULT_BRIDGE_TOKENS: list[str] = [WETH, USDC, USDT, DAI]
