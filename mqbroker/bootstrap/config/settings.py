from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field


WILDCARD_HOST = "0.0.0.0"
DEFAULT_WORKERS = 1024


class TLSInfo(BaseModel):
    """
    Key material for the TLS listener.
    Only paths are stored here; files are opened by the TLS builder.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    verify: Annotated[
        bool,
        Field(
            description=(
                "Require connecting clients to present a certificate and verify it.\n"
                "Clients without a valid certificate are rejected during the handshake."
            ),
            default=False
        )
    ]

    ca_file: Annotated[
        str,
        Field(
            alias="caFile",
            description=(
                "Path to a PEM bundle of CA certificates used to verify client\n"
                "certificates. Several certificates may be concatenated."
            ),
            default=""
        )
    ]

    cert_file: Annotated[
        str,
        Field(
            alias="certFile",
            description="Path to the broker's certificate chain (PEM). Required with tlsPort.",
            default=""
        )
    ]

    key_file: Annotated[
        str,
        Field(
            alias="keyFile",
            description="Path to the private key matching certFile (PEM). Required with tlsPort.",
            default=""
        )
    ]


class BrokerConfig(BaseModel):
    """
    Resolved broker configuration.

    Field defaults are zero values: a key missing from the config file is
    empty, not the command-line default. See ``DEFAULT_CONFIG`` for the
    latter.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    regular_worker: Annotated[
        int,
        Field(
            alias="regularWorkerNum",
            description="Size of the regular worker pool. 0 means 1024.",
            default=0
        )
    ]

    special_worker: Annotated[
        int,
        Field(
            alias="specialWorkerNum",
            description="Size of the special worker pool. 0 means 1024.",
            default=0
        )
    ]

    supreme_worker: Annotated[
        int,
        Field(
            alias="supremeWorkerNum",
            description="Size of the supreme worker pool. 0 means 1024.",
            default=0
        )
    ]

    host: Annotated[
        str,
        Field(
            description=(
                "Bind address of the plaintext MQTT listener.\n"
                "Defaults to 0.0.0.0 when a port is set."
            ),
            default=""
        )
    ]

    port: Annotated[
        str,
        Field(
            description="Port of the plaintext MQTT listener. Empty disables it.",
            default=""
        )
    ]

    tls_host: Annotated[
        str,
        Field(
            alias="tlsHost",
            description="Bind address of the TLS listener. Defaults to 0.0.0.0 when tlsPort is set.",
            default=""
        )
    ]

    tls_port: Annotated[
        str,
        Field(
            alias="tlsPort",
            description="Port of the TLS listener. Empty disables it.",
            default=""
        )
    ]

    ws_path: Annotated[
        str,
        Field(alias="wsPath", description="HTTP path served by the WebSocket listener.", default="")
    ]

    ws_port: Annotated[
        str,
        Field(alias="wsPort", description="Port of the WebSocket listener. Empty disables it.", default="")
    ]

    ws_tls: Annotated[
        bool,
        Field(alias="wsTLS", description="Serve the WebSocket listener over TLS.", default=False)
    ]

    tls_info: Annotated[
        TLSInfo,
        Field(alias="tlsInfo", description="TLS key material.", default_factory=TLSInfo)
    ]

    acl: Annotated[
        bool,
        Field(description="Enable topic access control.", default=False)
    ]

    acl_conf: Annotated[
        str,
        Field(alias="aclConf", description="Path to the ACL rules file, used when acl is on.", default="")
    ]

    debug: Annotated[
        bool,
        Field(description="Enable debug logging.", default=False)
    ]


DEFAULT_CONFIG = BrokerConfig(
    regular_worker=DEFAULT_WORKERS,
    special_worker=DEFAULT_WORKERS,
    supreme_worker=DEFAULT_WORKERS,
    host=WILDCARD_HOST,
    port="1883",
    acl=False,
)
