from typing import List

from state import Row


def infer_schema(rows: List[Row]) -> dict:
    """Per-column profile of a row set plus numeric / categorical column lists."""
    columns: dict = {}
    for row in rows:
        for col in row:
            columns.setdefault(col, [])
    for row in rows:
        for col, values in columns.items():
            values.append(row.get(col))

    schema = {"columns": {}, "numeric": [], "categorical": [], "row_count": len(rows)}

    for col, values in columns.items():
        present = [v for v in values if v is not None]
        is_numeric = bool(present) and all(
            isinstance(v, (int, float)) and not isinstance(v, bool) for v in present
        )

        profile = {
            "dtype": "number" if is_numeric else "string",
            "non_null_pct": round(len(present) / len(values), 2) if values else 0.0,
            "unique_values": len({str(v) for v in present}),
        }
        if is_numeric:
            profile.update({
                "min": float(min(present)),
                "max": float(max(present)),
                "mean": round(sum(present) / len(present), 4),
            })
            schema["numeric"].append(col)
        else:
            schema["categorical"].append(col)

        schema["columns"][col] = profile

    return schema
