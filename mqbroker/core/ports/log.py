from typing import Protocol


class Logger(Protocol):
    def info(self, msg: str, *args, **kwargs) -> None:
        ...

    def error(self, msg: str, *args, **kwargs) -> None:
        ...
