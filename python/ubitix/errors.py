class BaseUbitixError(Exception):
    """
    Base class for all custom exceptions we use in our code
    """


class GatewayError(BaseUbitixError):
    """Class exception for all errors raised by the gateway submodules."""

    def __init__(self, msg: str) -> None:
        super().__init__(msg)
        self._msg = msg

    def __str__(self) -> str:
        return self._msg


class AllocationError(GatewayError):
    pass


class PrefixTooLongError(AllocationError):
    def __init__(self, prefixlen: int) -> None:
        super().__init__(f"the detected prefix must be /64 or shorter to be split into /64 subnets, got /{prefixlen}")
        self.prefixlen = prefixlen


class InsufficientSubnetsError(AllocationError):
    def __init__(self, prefix: str, required: int, available: int) -> None:
        super().__init__(
            f"the prefix {prefix} does not have enough /64 networks for your setup"
            f" ({required} required, only {available} available)"
        )
        self.required = required
        self.available = available


class FirewallError(GatewayError):
    pass


class NotifierError(GatewayError):
    pass


class StateStoreError(GatewayError):
    pass


class WatcherError(GatewayError):
    pass


class ActionError(BaseUbitixError):
    pass
