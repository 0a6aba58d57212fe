import json
from typing import Any


class RecordDocumentEncoder(json.JSONEncoder):
    """
    JSON Encoder for the record document.

    Records and ratings serialize through their own .to_dict(), which
    decides which keys are omitted (empty rating maps, absent reviews).
    Anything else that is not plain JSON is an error.
    """

    def default(self, obj: Any) -> Any:
        if hasattr(obj, "to_dict"):
            return obj.to_dict()

        return super().default(obj)


def dump_document(document: Any) -> str:
    """Serialize a record document the way it is written to disk."""
    return json.dumps(document, cls=RecordDocumentEncoder, indent=2, ensure_ascii=False)
