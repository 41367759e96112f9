"""EC2 resource kinds."""

from .volumes import (
    delete_candidates,
    delete_volume,
    is_volume_attached,
    iter_volumes,
    list_all,
    mark_and_sweep,
)

__all__ = [
    "delete_candidates",
    "delete_volume",
    "is_volume_attached",
    "iter_volumes",
    "list_all",
    "mark_and_sweep",
]
