import logging
from abc import ABC, abstractmethod
from typing import Any, Optional
import pandas as pd

from . import data_handler

logger = logging.getLogger(__name__)


class DataPipeline(ABC):
    """
    Abstract base class for data pipelines (sales imports, inventory reports).
    Follows an Extract -> Transform -> Load (ETL) pattern.
    """

    def __init__(self, report_type: str, test_mode: bool = False):
        self.report_type = report_type
        self.test_mode = test_mode
        # Free-form per-run facts logged and sent along with the webhook payload
        self.status_summary: dict[str, Any] = {}

    def run(self):
        """
        Orchestrates the pipeline execution.
        """
        logger.info(f"🚀 STEP: {self.report_type.upper()}")
        logger.info("-" * 30)

        # --- 1. EXTRACT ---
        raw_data = self.extract()
        if raw_data is None or raw_data.empty:
            logger.warning(f"⚠️ No data extracted for {self.report_type}.")
            return self.load([])

        # --- 2. TRANSFORM ---
        transformed = self.transform(raw_data)
        if transformed is None:
            logger.error(f"❌ Transformation failed for {self.report_type}.")
            return None

        # --- 3. LOAD ---
        result = self.load(transformed)

        logger.info(f"✅ {self.report_type.capitalize()} Pipeline Finished.")
        logger.info("=" * 60)
        return result

    @abstractmethod
    def extract(self) -> Optional[pd.DataFrame]:
        """
        Responsible for reading the source and returning a raw DataFrame.
        Errors that make the whole source unusable are raised from here.
        """
        pass

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> Optional[list[Any]]:
        """
        Responsible for normalization and validation.
        Returns a list of validated Pydantic models.
        """
        pass

    def load(self, validated_data: list[Any]):
        """
        Logs the status summary and posts to the webhook.
        """
        if self.status_summary:
            logger.info("--- Final Status Summary ---")
            for key, value in self.status_summary.items():
                logger.info(f"{key}: {value}")

        if not self.test_mode:
            data_handler.post_to_webhook(
                validated_data=validated_data,
                metadata=self.status_summary,
                report_type=self.report_type,
            )
        else:
            logger.info("🧪 Test Mode: Skipping webhook post.")
