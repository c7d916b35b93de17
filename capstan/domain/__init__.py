"""
Domain layer for capstan.

Contains pure domain objects with no I/O or side effects:
- Hypervisor / ImageFormat: closed enumerations and the mapping between them
- ImageRecord: metadata persisted beside each stored image
- ImageEntry / ImageListing: results of listing the repository
- ImageStatus: tri-state existence of an image payload
"""

from .image import (
    FORMAT_VERSION,
    Hypervisor,
    ImageFormat,
    hypervisor_for_format,
    ImageRecord,
    ImageEntry,
    ImageListing,
    ExistenceState,
    ImageStatus,
)

__all__ = [
    'FORMAT_VERSION',
    'Hypervisor',
    'ImageFormat',
    'hypervisor_for_format',
    'ImageRecord',
    'ImageEntry',
    'ImageListing',
    'ExistenceState',
    'ImageStatus',
]
