import logging
import sys
from collections.abc import Sequence
from dataclasses import dataclass

from mqbroker.bootstrap.config.loader import ConfigResolver
from mqbroker.bootstrap.config.settings import BrokerConfig
from mqbroker.bootstrap.tls import TrustContext, TrustContextBuilder
from mqbroker.core.exception import ArgumentError, ConfigError, TlsMaterialError
from mqbroker.core.ports.log import Logger
from mqbroker.core.utils.log import setup_logging


@dataclass(frozen=True)
class Startup:
    """Everything the listener setup needs, resolved once."""

    config: BrokerConfig
    trust: TrustContext | None = None


def bootstrap(args: Sequence[str], logger: Logger | None = None) -> Startup:
    config = ConfigResolver(logger).resolve(args)
    if config.debug:
        setup_logging("DEBUG")

    trust = None
    if config.tls_port:
        trust = TrustContextBuilder(logger).build(config.tls_info)

    return Startup(config=config, trust=trust)


def entrypoint(argv: Sequence[str] | None = None) -> None:
    setup_logging()
    logger = logging.getLogger("mqbroker.bootstrap")

    try:
        startup = bootstrap(sys.argv[1:] if argv is None else argv)
    except ArgumentError as exc:
        logger.error(str(exc))
        raise SystemExit(2) from exc
    except (ConfigError, TlsMaterialError) as exc:
        logger.error(f"Broker startup failed: {exc}")
        raise SystemExit(1) from exc

    config = startup.config
    if config.port:
        logger.info(f"Plaintext listener on {config.host}:{config.port}")
    if startup.trust is not None:
        logger.info(
            f"TLS listener on {config.tls_host}:{config.tls_port} "
            f"(client auth: {startup.trust.client_auth.value})"
        )
    if config.ws_port:
        scheme = "wss" if config.ws_tls else "ws"
        logger.info(f"WebSocket listener on {scheme}://:{config.ws_port}{config.ws_path}")
    if config.acl:
        logger.info(f"ACL enabled with rules from {config.acl_conf}")
    logger.debug(
        f"Workers regular={config.regular_worker} special={config.special_worker} "
        f"supreme={config.supreme_worker}"
    )
