import json
import re
from typing import Any, Dict, List

from pydantic import BaseModel

# Request/response schemas for the document store endpoints.

COLLECTION_NAME = re.compile(r"^[a-z][a-z0-9_-]{0,63}$")


class DocumentIn(BaseModel):
    value: Dict[str, Any]


class DocumentOut(BaseModel):
    key: str
    value: Dict[str, Any]


class AddedOut(BaseModel):
    key: str


class IdentityOut(BaseModel):
    is_admin: bool


def _is_valid_collection(name: str) -> bool:
    return bool(COLLECTION_NAME.match(name))


def _format_event(snapshot: List[Dict[str, Any]]) -> str:
    return f"data: {json.dumps(snapshot, separators=(',', ':'))}\n\n"
