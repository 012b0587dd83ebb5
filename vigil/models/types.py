"""Shared field types."""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator


def _assume_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# Caller-supplied timestamps without an offset are taken as UTC so they
# compare cleanly with the store's own aware timestamps.
UTCDateTime = Annotated[datetime, AfterValidator(_assume_utc)]
