"""
Tests for data-source upload, extraction and cleaning.
"""

import pandas as pd
import pytest
from fastapi import HTTPException

from data_loader import list_data_sources, load_rows, rows_to_response, save_upload
from utils.data_cleaning import clean_dataframe
from utils.json_sanitize import sanitize_for_json
from utils.schema_utils import infer_schema


CSV = (
    "region,category,sales,order_date\n"
    "East,Hardware,10,2024-01-05\n"
    "West,Software,20,2024-01-06\n"
    " none ,Hardware,n/a,2024-01-07\n"
    "East ,Services,5,2024-01-08\n"
).encode()


class TestUpload:

    def test_save_and_list(self, data_root):
        source_id = save_upload("Q1 Sales.csv", CSV)

        assert source_id.startswith("q1-sales-")
        assert (data_root / source_id / "Q1 Sales.csv").exists()
        sources = list_data_sources()
        assert [s["source_id"] for s in sources] == [source_id]
        assert sources[0]["name"] == "Q1 Sales"

    def test_path_components_are_dropped(self, data_root):
        source_id = save_upload("../../evil.csv", CSV)
        assert (data_root / source_id / "evil.csv").exists()

    def test_rejects_unknown_extension(self, data_root):
        with pytest.raises(HTTPException) as exc:
            save_upload("notes.txt", b"hello")
        assert exc.value.status_code == 400

    def test_rejects_empty_file(self, data_root):
        with pytest.raises(HTTPException) as exc:
            save_upload("empty.csv", b"")
        assert exc.value.status_code == 400

    def test_list_without_root(self, data_root):
        assert list_data_sources() == []


class TestLoadRows:

    def test_rows_are_cleaned_scalars(self, data_root):
        source_id = save_upload("sales.csv", CSV)
        rows, columns, name = load_rows(source_id)

        assert name == "sales"
        assert columns == ["region", "category", "sales", "order_date"]
        assert rows[0] == {"region": "East", "category": "Hardware", "sales": 10, "order_date": "2024-01-05"}
        assert rows[2]["region"] is None
        assert rows[2]["sales"] is None
        assert rows[3]["region"] == "East"

    def test_missing_source_is_404(self, data_root):
        with pytest.raises(HTTPException) as exc:
            load_rows("does-not-exist")
        assert exc.value.status_code == 404

    def test_invalid_source_id_is_400(self, data_root):
        with pytest.raises(HTTPException) as exc:
            load_rows("../etc")
        assert exc.value.status_code == 400

    def test_preview_response(self):
        rows = [{"a": i} for i in range(30)]
        response = rows_to_response(rows, ["a"], "numbers", limit=5)
        assert response["row_count"] == 30
        assert len(response["rows"]) == 5

    def test_preview_limit_edges(self):
        rows = [{"a": i} for i in range(30)]
        assert len(rows_to_response(rows, ["a"], "numbers")["rows"]) == 10
        assert rows_to_response(rows, ["a"], "numbers", limit=0)["rows"] == []
        assert rows_to_response(rows, ["a"], "numbers", limit=-3)["rows"] == []


class TestCleaning:

    def test_numeric_text_becomes_numbers(self):
        df = pd.DataFrame({"amount": ["1", "2", "3", "x"]})
        cleaned = clean_dataframe(df)
        assert pd.api.types.is_numeric_dtype(cleaned["amount"])

    def test_mixed_text_stays_text(self):
        df = pd.DataFrame({"name": ["Alice", "Bob", "3"]})
        cleaned = clean_dataframe(df)
        assert list(cleaned["name"]) == ["Alice", "Bob", "3"]

    def test_case_is_preserved(self):
        df = pd.DataFrame({"region": ["East", "WEST"]})
        assert list(clean_dataframe(df)["region"]) == ["East", "WEST"]

    def test_datetimes_become_iso_strings(self):
        df = pd.DataFrame({"at": [pd.Timestamp("2024-03-01"), pd.Timestamp("2024-03-02 10:30")]})
        cleaned = clean_dataframe(df)
        assert list(cleaned["at"]) == ["2024-03-01", "2024-03-02T10:30:00"]


class TestSanitize:

    def test_nan_and_numpy_values(self):
        import numpy as np

        data = {"a": np.int64(3), "b": float("nan"), "c": [np.float64(1.5), None]}
        assert sanitize_for_json(data) == {"a": 3, "b": None, "c": [1.5, None]}


class TestInferSchema:

    def test_numeric_and_categorical_columns(self, category_rows):
        schema = infer_schema(category_rows)
        assert schema["numeric"] == ["sales"]
        assert schema["categorical"] == ["region", "category"]
        assert schema["columns"]["sales"]["max"] == 20.0
        assert schema["row_count"] == 5

    def test_bools_are_not_numeric(self):
        schema = infer_schema([{"flag": True}, {"flag": False}])
        assert schema["categorical"] == ["flag"]
