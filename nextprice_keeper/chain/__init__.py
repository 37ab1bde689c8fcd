from .client import ChainClient, ExchangeRates, FuturesMarket, connect, discover_markets
from .deployments import Deployment, load_deployment, parse_deployment

__all__ = [
    "ChainClient",
    "ExchangeRates",
    "FuturesMarket",
    "connect",
    "discover_markets",
    "Deployment",
    "load_deployment",
    "parse_deployment",
]
