"""Request context for ownership enforcement."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Request context containing the authenticated identity.

    Every content mutation is checked against ``username`` before any
    relationship or content row is touched.
    """

    username: str
