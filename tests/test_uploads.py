import pytest
from sqlalchemy import func, select

from vendhub import settings
from vendhub.errors import MalformedInput, ValidationError
from vendhub.models import DataImport
from vendhub.pipelines.sales import SalesImportPipeline
from vendhub.schemas import BatchResult
from vendhub.uploads import import_status, ingest_upload


def import_count(store):
    return store.session.scalar(select(func.count()).select_from(DataImport))


def test_import_status():
    assert import_status(BatchResult(processed=3)) == "completed"
    assert import_status(BatchResult(processed=2, failed=1)) == "completed_with_errors"


def test_clean_upload(store, vendor_a_csv):
    result = ingest_upload(
        store, vendor_a_csv, "vendor_a", "vendor_a_sample.csv", uploaded_by="user-1",
        test_mode=True,
    )

    assert (result.total, result.processed, result.failed) == (10, 10, 0)
    assert result.errors == []

    record = store.get_data_import(result.import_id)
    assert record.status == settings.IMPORT_COMPLETED
    assert record.filename == "vendor_a_sample.csv"
    assert record.data_source == "vendor_a"
    assert record.total_rows == 10
    assert record.processed_rows == 10
    assert record.failed_rows == 0
    assert record.uploaded_by == "user-1"
    assert record.error_details is None


def test_upload_with_row_errors(store, vendor_a_csv):
    lines = vendor_a_csv.splitlines()
    lines[5] = "WS_03,Snickers,040000001,June 10,1.50,1.64"

    result = ingest_upload(
        store, "\n".join(lines), "vendor_a", "bad_row.csv", test_mode=True
    )

    assert (result.total, result.processed, result.failed) == (10, 9, 1)
    record = store.get_data_import(result.import_id)
    assert record.status == settings.IMPORT_COMPLETED_WITH_ERRORS
    assert record.error_details == "Row 5: Invalid date format: June 10"


def test_result_serializes_with_camel_case_id(store, vendor_b_csv):
    result = ingest_upload(store, vendor_b_csv, "vendor_b", "b.csv", test_mode=True)
    assert result.model_dump(by_alias=True)["importId"] == result.import_id


@pytest.mark.parametrize("text", ["", "  \n "])
def test_empty_upload(store, text):
    with pytest.raises(MalformedInput, match="CSV file is empty"):
        ingest_upload(store, text, "vendor_a", "empty.csv", test_mode=True)
    assert import_count(store) == 0


def test_missing_headers_create_no_import(store, vendor_a_csv):
    with pytest.raises(MalformedInput, match="Missing required CSV headers"):
        ingest_upload(store, vendor_a_csv, "vendor_b", "wrong.csv", test_mode=True)
    assert import_count(store) == 0


def test_unknown_data_source(store, vendor_a_csv):
    with pytest.raises(ValidationError):
        ingest_upload(store, vendor_a_csv, "vendor_x", "a.csv", test_mode=True)
    assert import_count(store) == 0


def test_unexpected_failure_marks_import_failed(store, vendor_a_csv, monkeypatch):
    def explode(self, transactions):
        raise RuntimeError("disk full")

    monkeypatch.setattr(SalesImportPipeline, "load", explode)

    with pytest.raises(RuntimeError):
        ingest_upload(store, vendor_a_csv, "vendor_a", "a.csv", test_mode=True)

    record = store.session.scalars(select(DataImport)).one()
    assert record.status == settings.IMPORT_FAILED
    assert record.error_details == "disk full"


def test_upload_with_byte_order_mark(store, vendor_b_csv):
    result = ingest_upload(
        store, "\ufeff" + vendor_b_csv, "vendor_b", "excel_export.csv", test_mode=True
    )

    assert (result.total, result.processed, result.failed) == (10, 10, 0)
    assert store.get_data_import(result.import_id).status == settings.IMPORT_COMPLETED
