import logging


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once; later calls only change its level,
    so the level can be raised after the configuration is resolved.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(name)s:%(funcName)s] %(levelname)-8s : %(message)s',
    )
    logging.getLogger().setLevel(level)
