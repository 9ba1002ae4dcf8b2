"""Exceptions raised by the object store and the codecs."""


class LitError(Exception):
    """Base class for every failure lit reports to its caller."""


class InvalidIdentifier(LitError):
    pass


class ObjectNotFound(LitError):
    def __init__(self, oid: str):
        super().__init__(f'object not found: {oid}')
        self.oid = oid


class CorruptObject(LitError):
    pass


class MalformedObject(LitError):
    pass


class MalformedTree(LitError):
    pass


class IOFailure(LitError):
    pass


class ConfigError(LitError):
    pass
