from mqbroker.bootstrap.config.loader import ConfigResolver, resolve
from mqbroker.bootstrap.config.settings import BrokerConfig, DEFAULT_CONFIG, TLSInfo
from mqbroker.bootstrap.tls import ClientAuth, TrustContext, TrustContextBuilder

__all__ = [
    "BrokerConfig",
    "ClientAuth",
    "ConfigResolver",
    "DEFAULT_CONFIG",
    "TLSInfo",
    "TrustContext",
    "TrustContextBuilder",
    "resolve",
]
