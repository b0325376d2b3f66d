from datetime import datetime

def serialize_doc(doc: dict | None, *, drop: tuple[str, ...] = ()) -> dict | None:
    """
    Shape a stored document for a JSON response.
    `_id` becomes `id`; datetimes become ISO strings; `drop` keys are removed.
    """
    if not doc:
        return doc

    out = {}
    for k, v in doc.items():
        if k in drop:
            continue
        if k == "_id":
            out["id"] = v
        elif isinstance(v, datetime):
            out[k] = v.isoformat()
        else:
            out[k] = v
    return out
