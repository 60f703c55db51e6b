"""Process-wide map of vendor keys to their indices."""

import logging
from collections import OrderedDict
from typing import Optional

from ragshelf.index.vendor_index import VendorIndex

logger = logging.getLogger(__name__)


class IndexRegistry:
    """Holds exactly one VendorIndex per vendor key.

    ``install`` is the only way to put an index in place and is a single
    reference assignment, so readers see either the old or the new index.
    With ``max_vendors`` set, the least recently used vendor is evicted
    once the bound is exceeded; ``None`` keeps every vendor.
    """

    def __init__(self, max_vendors: Optional[int] = None):
        if max_vendors is not None and max_vendors < 1:
            raise ValueError(f"max_vendors must be positive, got {max_vendors}")
        self.max_vendors = max_vendors
        self._indices: OrderedDict[str, VendorIndex] = OrderedDict()

    def get(self, vendor_id: str) -> Optional[VendorIndex]:
        """Return the vendor's index and mark it as recently used."""
        index = self._indices.get(vendor_id)
        if index is not None:
            self._indices.move_to_end(vendor_id)
        return index

    def peek(self, vendor_id: str) -> Optional[VendorIndex]:
        """Return the vendor's index without touching recency."""
        return self._indices.get(vendor_id)

    def install(self, index: VendorIndex) -> None:
        self._indices[index.vendor_id] = index
        self._indices.move_to_end(index.vendor_id)
        self._evict()

    def discard(self, vendor_id: str) -> Optional[VendorIndex]:
        return self._indices.pop(vendor_id, None)

    def reset(self) -> None:
        self._indices.clear()

    def vendors(self) -> list[str]:
        return list(self._indices)

    def __len__(self) -> int:
        return len(self._indices)

    def __contains__(self, vendor_id: object) -> bool:
        return vendor_id in self._indices

    def _evict(self) -> None:
        if self.max_vendors is None:
            return
        while len(self._indices) > self.max_vendors:
            vendor_id, _ = self._indices.popitem(last=False)
            logger.info(f"Evicted index for vendor {vendor_id}")
