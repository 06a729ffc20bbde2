"""Router configuration.

RouterConfig is a frozen dataclass — immutable after creation,
IDE-autocompletable, no string-key dict lookups.
"""

from dataclasses import dataclass
from enum import Enum

from waypoint.http.response import Response


class DuplicatePolicy(Enum):
    """What the route table does when a route is inserted twice."""

    FAIL = "fail"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Route table configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(on_duplicate=DuplicatePolicy.SKIP, check_overlaps=True)
    """

    # Registration
    on_duplicate: DuplicatePolicy = DuplicatePolicy.FAIL
    check_overlaps: bool = False  # Reject same-method templates that can match one path

    # Compilation
    escape_literals: bool = True  # Literal template runs never act as regex syntax

    # Handler return annotations must name this type (None disables the check)
    response_type: type | None = Response
