"""
services/export_service.py
---------------------------
Generates CSV and Excel exports of tracked obligations.
"""

import io

import pandas as pd

from models.obligation import Obligation
from services.scheduling_service import SchedulingService
from utils.calendar import next_occurrence
from utils.logger import get_logger

logger = get_logger(__name__)


class ExportService:
    """Generates downloadable obligation lists in CSV and Excel formats."""

    def __init__(self, engine: SchedulingService):
        self.engine = engine

    def _frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [self._row(o) for o in self.engine.list_obligations()],
            columns=[
                "Title", "Amount", "Currency", "Due", "Frequency",
                "Next occurrence", "Notes", "Reminder scheduled",
            ],
        )

    @staticmethod
    def _row(o: Obligation) -> dict:
        following = next_occurrence(o) if o.frequency.is_recurring else None
        return {
            "Title": o.title,
            "Amount": float(o.amount) if o.amount is not None else None,
            "Currency": o.currency,
            "Due": o.due_at.strftime("%Y-%m-%d %H:%M"),
            "Frequency": o.frequency.value,
            "Next occurrence": following.strftime("%Y-%m-%d %H:%M") if following else "",
            "Notes": o.notes or "",
            "Reminder scheduled": bool(o.notification_handle),
        }

    def export_csv(self) -> io.BytesIO:
        """
        Export all obligations as a CSV file.

        Returns:
            A BytesIO buffer containing the CSV data.
        """
        df = self._frame()
        buffer = io.BytesIO()
        df.to_csv(buffer, index=False, encoding="utf-8-sig")
        buffer.seek(0)
        logger.info(f"Exported {len(df)} obligations as CSV")
        return buffer

    def export_excel(self) -> io.BytesIO:
        """
        Export all obligations as an Excel (.xlsx) file.

        A second sheet totals tracked amounts per currency and frequency.

        Returns:
            A BytesIO buffer containing the Excel data.
        """
        df = self._frame()

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name="Obligations", index=False)

            priced = df.dropna(subset=["Amount"])
            if not priced.empty:
                summary = (
                    priced.groupby(["Currency", "Frequency"])["Amount"].sum().reset_index()
                )
                summary.columns = ["Currency", "Frequency", "Total"]
                summary.to_excel(writer, sheet_name="Summary", index=False)

        buffer.seek(0)
        logger.info(f"Exported {len(df)} obligations as Excel")
        return buffer
