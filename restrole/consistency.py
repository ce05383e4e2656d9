"""
RestRole - Consistency Policy

Maps a role name to the consistency level used for its reads and writes.
The default superuser row must be agreed on cluster-wide so bootstrap never
diverges between nodes; every other role favours latency.
"""

from enum import Enum

from restrole.metadata import DEFAULT_SUPERUSER_NAME


class ConsistencyLevel(str, Enum):
    """Replica acknowledgement required for a store operation"""
    ONE = "ONE"
    LOCAL_ONE = "LOCAL_ONE"
    QUORUM = "QUORUM"


def ConsistencyForRole(role_name: str) -> ConsistencyLevel:
    """
    Select the consistency level for a role row

    Args:
        role_name: Role being read or written

    Returns:
        ConsistencyLevel: QUORUM for the default superuser, LOCAL_ONE otherwise
    """
    if role_name == DEFAULT_SUPERUSER_NAME:
        return ConsistencyLevel.QUORUM

    return ConsistencyLevel.LOCAL_ONE
