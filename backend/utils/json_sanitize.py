import math
import pandas as pd
import numpy as np
from datetime import datetime, date
from typing import List


def sanitize_for_json(obj):
    """
    Recursively sanitize objects so they are 100% JSON serializable.
    Converts:
    - NaN / inf / pd.NA → None
    - numpy scalars → python scalars
    - pandas objects → dict / list
    - datetime → ISO string
    """

    # -----------------------------
    # Primitives
    # -----------------------------
    if obj is None or obj is pd.NA or obj is pd.NaT:
        return None

    if isinstance(obj, (str, bool, int)):
        return obj

    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj

    # -----------------------------
    # NumPy
    # -----------------------------
    if isinstance(obj, np.generic):
        return sanitize_for_json(obj.item())

    # -----------------------------
    # Datetime
    # -----------------------------
    if isinstance(obj, (pd.Timestamp, datetime, date)):
        return obj.isoformat()

    # -----------------------------
    # Pandas
    # -----------------------------
    if isinstance(obj, pd.DataFrame):
        return sanitize_for_json(obj.to_dict(orient="records"))

    if isinstance(obj, pd.Series):
        return sanitize_for_json(obj.tolist())

    # -----------------------------
    # Containers
    # -----------------------------
    if isinstance(obj, dict):
        return {str(k): sanitize_for_json(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set)):
        return [sanitize_for_json(v) for v in obj]

    # Anything else becomes a string scalar
    return str(obj)


def dataframe_to_rows(df: pd.DataFrame) -> List[dict]:
    """DataFrame -> list of rows holding only str / number / bool / None."""
    return sanitize_for_json(df.to_dict(orient="records"))
