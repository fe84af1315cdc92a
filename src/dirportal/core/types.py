"""Core type definitions."""

from typing import NewType

# Opaque identifiers issued by the backing store.
# Distinct types catch entry/department mix-ups at type-check time.
EntryId = NewType("EntryId", str)
DepartmentId = NewType("DepartmentId", str)
FrameId = NewType("FrameId", str)
UserId = NewType("UserId", str)

# URL path for routing (e.g., "/engineering/docs/setup")
URLPath = NewType("URLPath", str)
