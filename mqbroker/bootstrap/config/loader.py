import argparse
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from mqbroker.bootstrap.config.settings import BrokerConfig, DEFAULT_CONFIG, DEFAULT_WORKERS, WILDCARD_HOST
from mqbroker.core.exception import ArgumentError, ConfigFileError, ConfigValidationError
from mqbroker.core.ports.log import Logger


WORKER_FIELDS = ("regular_worker", "special_worker", "supreme_worker")

TRUE_VALUES = ("1", "t", "T", "TRUE", "true", "True")
FALSE_VALUES = ("0", "f", "F", "FALSE", "false", "False")


def flag_names(*names: str) -> list[str]:
    """Every name is accepted with one or two leading dashes."""
    return [f"{dashes}{name}" for name in names for dashes in ("-", "--")]


def flag_bool(raw: str) -> bool:
    if raw in TRUE_VALUES:
        return True
    if raw in FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value {raw!r}")


class FlagParser(argparse.ArgumentParser):
    """
    ArgumentParser that raises instead of exiting, so that a bad command
    line surfaces as an ``ArgumentError`` to whoever drives resolution.
    """

    def error(self, message: str):
        raise ArgumentError(f"{self.prog}: {message}")


def build_parser() -> FlagParser:
    # Defaults are suppressed so the namespace only holds flags given
    # explicitly; DEFAULT_CONFIG supplies the rest.
    parser = FlagParser(
        prog="mqbroker",
        description=(
            "Start an MQTT broker.\n\n"
            "Listeners are configured either with the flags below or, when\n"
            "-c/-config is given, entirely from a JSON config file."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
        argument_default=argparse.SUPPRESS,
        allow_abbrev=False,
        add_help=False,
    )

    parser.add_argument(
        *flag_names("h", "help"),
        action="help",
        help="Show this message and exit."
    )

    parser.add_argument(
        *flag_names("regularworker", "rew"),
        dest="regular_worker",
        type=int,
        help=(
            "Worker num to process regular messages, prefer (client num)/10.\n"
            "Defaults to 1024."
        )
    )

    parser.add_argument(
        *flag_names("specialworker", "spw"),
        dest="special_worker",
        type=int,
        help=(
            "Worker num to process special messages, prefer (client num)/10.\n"
            "Defaults to 1024."
        )
    )

    parser.add_argument(
        *flag_names("supremeworker", "suw"),
        dest="supreme_worker",
        type=int,
        help=(
            "Worker num to process supreme messages, prefer (client num)/10.\n"
            "Defaults to 1024."
        )
    )

    parser.add_argument(
        *flag_names("port", "p"),
        dest="port",
        type=str,
        help="Port to listen on. Defaults to 1883."
    )

    parser.add_argument(
        *flag_names("host"),
        dest="host",
        type=str,
        help=(
            "Network host to listen on. Defaults to 0.0.0.0.\n"
            "Examples:\n"
            " -host 0.0.0.0 (listen on all interfaces)\n"
            " -host 127.0.0.1 (listen only locally)"
        )
    )

    parser.add_argument(
        *flag_names("wsport", "ws"),
        dest="ws_port",
        type=str,
        help="Port for the WebSocket listener. Disabled when empty."
    )

    parser.add_argument(
        *flag_names("wspath", "wsp"),
        dest="ws_path",
        type=str,
        help="Path for the WebSocket listener, e.g. /mqtt."
    )

    parser.add_argument(
        *flag_names("config", "c"),
        dest="config",
        type=str,
        help=(
            "Path to a JSON config file.\n"
            "When given, the file replaces every other flag."
        )
    )

    parser.add_argument(
        *flag_names("debug", "d"),
        dest="debug",
        nargs="?",
        const=True,
        type=flag_bool,
        help=(
            "Enable debug logging.\n"
            "Accepts an explicit value, e.g. -debug=false."
        )
    )

    return parser


class ConfigResolver:
    """
    Produces the broker configuration from the command line.

    Precedence: defaults < flags, or the config file alone when
    ``-c/-config`` is given.
    """

    def __init__(self, logger: Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("mqbroker.bootstrap.config")

    def resolve(self, args: Sequence[str]) -> BrokerConfig:
        namespace = build_parser().parse_args(list(args))
        explicit = vars(namespace)
        config_file = explicit.pop("config", "")

        if config_file:
            if explicit:
                self._logger.info(
                    f"Config file {config_file} given, ignoring flags: {', '.join(sorted(explicit))}"
                )
            config = self.load(config_file)
        else:
            config = DEFAULT_CONFIG.model_copy(update=explicit)

        return self.validate(config)

    def load(self, path: str | Path) -> BrokerConfig:
        try:
            content = Path(path).read_bytes()
        except OSError as exc:
            self._logger.error(f"Read config file error: {exc}")
            raise ConfigFileError(str(path), str(exc)) from exc

        try:
            # Keys are the JSON names only, and values must already have the right JSON type.
            return BrokerConfig.model_validate_json(content, strict=True, by_name=False)
        except ValidationError as exc:
            self._logger.error(f"Unmarshal config file error: {exc}")
            raise ConfigFileError(str(path), f"invalid content: {exc}") from exc

    def validate(self, config: BrokerConfig) -> BrokerConfig:
        updates = {}

        for name in WORKER_FIELDS:
            if getattr(config, name) == 0:
                updates[name] = DEFAULT_WORKERS

        if config.port and not config.host:
            updates["host"] = WILDCARD_HOST

        if config.tls_port:
            tls = config.tls_info
            missing = tuple(
                key for key, value in (("certFile", tls.cert_file), ("keyFile", tls.key_file))
                if not value
            )
            if missing:
                self._logger.error(f"tls config error, no cert or key file: missing {', '.join(missing)}")
                raise ConfigValidationError(
                    f"tls config error, missing {' and '.join(missing)}",
                    fields=missing
                )
            if not config.tls_host:
                updates["tls_host"] = WILDCARD_HOST

        if not updates:
            return config
        return config.model_copy(update=updates)


def resolve(args: Sequence[str], logger: Logger | None = None) -> BrokerConfig:
    return ConfigResolver(logger).resolve(args)
