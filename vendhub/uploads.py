"""
The upload boundary: what the HTTP handler calls once it has the file text.

It checks the file before anything is written, opens a DataImport record,
runs the sales pipeline and closes the record with the final counts.
"""

import logging
from typing import Optional

from . import parsers, settings
from .errors import MalformedInput
from .pipelines.sales import SalesImportPipeline
from .schemas import BatchResult, UploadResult
from .store import SqlStore

logger = logging.getLogger(__name__)


def import_status(result: BatchResult) -> str:
    if result.failed == 0:
        return settings.IMPORT_COMPLETED
    return settings.IMPORT_COMPLETED_WITH_ERRORS


def ingest_upload(
    store: SqlStore,
    raw_csv_text: str,
    data_source: str,
    filename: str,
    uploaded_by: Optional[str] = None,
    test_mode: bool = False,
) -> UploadResult:
    # Structural problems are rejected before an import record exists
    parsers.get_vendor_format(data_source)
    if raw_csv_text is None or not raw_csv_text.strip():
        raise MalformedInput("CSV file is empty")

    frame = parsers.parse_csv_text(raw_csv_text)
    parsers.validate_headers(list(frame.columns), data_source)
    total_rows = len(frame)

    record = store.create_data_import(
        filename=filename,
        data_source=data_source,
        total_rows=total_rows,
        uploaded_by=uploaded_by,
    )
    logger.info(f"📥 Import {record.id}: {filename} ({data_source}, {total_rows} rows)")

    pipeline = SalesImportPipeline(store, raw_csv_text, data_source, test_mode=test_mode)
    try:
        result = pipeline.run()
    except Exception as e:
        logger.error(f"❌ Import {record.id} failed: {e}")
        store.finish_data_import(
            record.id,
            processed=pipeline.result.processed,
            failed=pipeline.result.failed,
            status=settings.IMPORT_FAILED,
            error_details=str(e),
        )
        raise

    store.finish_data_import(
        record.id,
        processed=result.processed,
        failed=result.failed,
        status=import_status(result),
        error_details="\n".join(result.errors) if result.errors else None,
    )
    logger.info(
        f"✅ Import {record.id}: {result.processed} processed, {result.failed} failed"
    )

    return UploadResult(
        total=total_rows,
        processed=result.processed,
        failed=result.failed,
        errors=result.errors,
        import_id=record.id,
    )
