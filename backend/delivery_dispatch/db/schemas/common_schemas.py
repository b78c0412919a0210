# delivery_dispatch/db/schemas/common_schemas.py
from datetime import datetime, timezone
from typing import Annotated
from pydantic import BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# --- Helper for ObjectId ---
# Stored as bson.ObjectId, exposed as its 24-char hex string
PyObjectId = Annotated[str, BeforeValidator(str)]

# Documents and payloads use camelCase on the wire and in MongoDB
CAMEL_CASE_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
)

def utc_now() -> datetime:
    """Current UTC time truncated to the millisecond precision BSON dates keep."""
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)
