"""
Exceptions raised by the latency harness helpers.

Request failures are never raised: they are delivered to the continuation as
a Failure outcome. These cover local misuse only.
"""


class LatencyError(Exception):
    """Base class for latency harness errors."""


class ElementNotFound(LatencyError, KeyError):
    """The page has no element with the requested id or name."""

    def __init__(self, element_id: str):
        self.element_id = element_id
        super().__init__(f"No page element named '{element_id}'")

    def __str__(self):
        return self.args[0]


class DeliveryError(LatencyError):
    """An outcome was delivered to a request that already has one."""


class ConfigError(LatencyError):
    """The configuration file is missing or not valid YAML."""
