class ConfigError(Exception):
    pass


class ArgumentError(ConfigError):
    pass


class ConfigFileError(ConfigError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"config file {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigValidationError(ConfigError):
    def __init__(self, message: str, fields: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.fields = fields


class TlsMaterialError(Exception):
    pass
