# delivery_advisor/sources/writers.py
"""
    All File Format Writing Functions:
        - Comma-Separated Values
        - JSON (newline-delimited)
        - Parquet
        - XLSX
"""
from abc import ABC, abstractmethod
from datetime import date, datetime
import polars as pl
import xlsxwriter

from ..config import logger

class BaseWriter(ABC):
    """Abstract base class for all file writers."""
    extension = ""

    def __init__(self, base_path: str):
        self.base_path = base_path

    @property
    def path(self) -> str:
        return f"{self.base_path}.{self.extension}"

    @abstractmethod
    def write(self, df: pl.DataFrame) -> str:
        """Writes the DataFrame to a specific file format and returns the file path."""

class CsvWriter(BaseWriter):
    """Writes data to a CSV file for spreadsheets and ad-hoc analysis."""
    extension = "csv"

    def write(self, df: pl.DataFrame) -> str:
        logger.info(f"Writing to {self.path}")
        df.write_csv(self.path)
        return self.path

class JsonWriter(BaseWriter):
    """Writes data to a newline-delimited JSON file."""
    extension = "json"

    def write(self, df: pl.DataFrame) -> str:
        logger.info(f"Writing to {self.path} (ndjson format)")
        df.write_ndjson(self.path)
        return self.path

class ParquetWriter(BaseWriter):
    """Writes data to a compressed, columnar parquet file."""
    extension = "parquet"

    def write(self, df: pl.DataFrame) -> str:
        logger.info(f"Writing to {self.path}")
        df.write_parquet(self.path)
        return self.path

class XlsxWriter(BaseWriter):
    """Writes data to an Excel file using a streaming approach for performance."""
    extension = "xlsx"

    def write(self, df: pl.DataFrame) -> str:
        logger.info(f"Writing to {self.path} (streaming)")
        with xlsxwriter.Workbook(self.path, {'constant_memory': True}) as workbook:
            worksheet = workbook.add_worksheet()
            worksheet.write_row(0, 0, df.columns)
            for i, row in enumerate(df.iter_rows()):
                # xlsxwriter needs a date format for datetime cells; ISO text keeps the sheet readable
                values = [v.isoformat() if isinstance(v, (datetime, date)) else v for v in row]
                worksheet.write_row(i + 1, 0, values)
        return self.path

WRITER_MAP = {
    "csv": CsvWriter,
    "json": JsonWriter,
    "parquet": ParquetWriter,
    "xlsx": XlsxWriter,
}
