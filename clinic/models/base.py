"""Shared table metadata."""

from sqlalchemy import MetaData

# Every table registers here so foreign keys resolve and migrations see one schema
metadata = MetaData()
