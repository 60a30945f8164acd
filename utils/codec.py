import base64
import math
from typing import Any, Dict, Sequence


def value_to_json(value: Any) -> Any:
    """Map a value returned by sqlite3 onto something json can carry.

    NULL, INTEGER and TEXT pass through, REAL passes through unless it is not
    finite (json has no NaN/inf, so those become null) and BLOB becomes base64
    text.
    """
    if value is None or isinstance(value, (int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    raise TypeError(f"unsupported SQLite value type: {type(value).__name__}")


def row_to_dict(row: Sequence[Any], column_names: Sequence[str]) -> Dict[str, Any]:
    # a repeated column name keeps the last value
    return {name: value_to_json(row[idx]) for idx, name in enumerate(column_names)}
