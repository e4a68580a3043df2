import pandas as pd
import numpy as np
import warnings

NULL_TOKENS = ["--", "-", "", "none", "null", "nan", "n/a"]


def clean_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """
    Conservative cleaning of an uploaded table:
    - No row loss
    - Strings stripped, null-like tokens -> NaN (case kept, values are chart categories)
    - Mostly-numeric text columns -> numbers
    - Mostly-date text columns -> ISO date strings
    """
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]

    for col in df.columns:
        # ---------------------------------
        # Normalize string values safely
        # ---------------------------------
        if _is_text(df[col]):
            stripped = df[col].map(lambda v: v.strip() if isinstance(v, str) else v)
            is_null = stripped.map(lambda v: isinstance(v, str) and v.lower() in NULL_TOKENS)
            df[col] = stripped.mask(is_null, np.nan)

        df[col] = df[col].infer_objects()

        # ---------------------------------
        # SAFE numeric conversion
        # ---------------------------------
        if _is_text(df[col]):
            non_null = df[col].notna()
            numeric = pd.to_numeric(df[col], errors="coerce")
            if non_null.any() and numeric[non_null].notna().mean() > 0.7:
                df[col] = numeric
                continue

        # ---------------------------------
        # VERY SAFE datetime conversion
        # ---------------------------------
        if _is_text(df[col]):
            non_null = df[col].notna()
            with warnings.catch_warnings():
                warnings.simplefilter("ignore", UserWarning)
                parsed = pd.to_datetime(df[col], errors="coerce")

            if non_null.any() and parsed[non_null].notna().mean() > 0.7:
                df[col] = parsed

        if pd.api.types.is_datetime64_any_dtype(df[col]):
            df[col] = df[col].map(_iso_date)

    return df


def _iso_date(value):
    if pd.isna(value):
        return None
    if value.hour == 0 and value.minute == 0 and value.second == 0:
        return value.date().isoformat()
    return value.isoformat()


def _is_text(series: pd.Series) -> bool:
    return series.dtype == object or isinstance(series.dtype, pd.StringDtype)
