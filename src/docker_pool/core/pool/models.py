"""
Pool Data Models
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional, Union


@dataclass
class PoolStatus:
    """Snapshot of a container pool"""

    basename: str
    size: int
    image: Optional[str] = None
    port: Optional[Union[int, str]] = None
    path: Optional[str] = None

    # Slots
    pending: int = 0  # still provisioning
    ready: int = 0  # provisioned, not yet acquired

    last_name: Optional[str] = None
    closed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        return asdict(self)
