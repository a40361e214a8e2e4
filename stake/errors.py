"""Errors raised while building stake transactions."""


class StakeError(Exception):
    """Base class for every error raised by this project."""


class InvalidInput(StakeError):
    """The request cannot be served as given; the caller must fix it."""


class InvalidAmount(InvalidInput):
    pass


class InvalidAddress(InvalidInput):
    pass


class MissingAccount(InvalidInput):
    pass


class MalformedRequest(InvalidInput):
    pass


class UpstreamFailure(StakeError):
    """The RPC node could not provide what the transaction needs."""


class NetworkUnavailable(UpstreamFailure):
    """The RPC node did not answer in time or could not be reached."""


class RpcError(UpstreamFailure):
    """The RPC node answered with an error."""
