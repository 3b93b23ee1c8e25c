from app.api.v1.schemas.diffs import DiffItem, DiffListResponse
from app.api.v1.schemas.notes import StreamRequest, SubmitRequest, SubmitResponse

__all__ = [
    "DiffItem",
    "DiffListResponse",
    "StreamRequest",
    "SubmitRequest",
    "SubmitResponse",
]
