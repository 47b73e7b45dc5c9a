# delivery_advisor/sources/readers.py
"""
    All File Format Reading Functions:
        - Comma-Separated Values
        - JSON (array or newline-delimited)
        - Parquet
        - XLSX
"""
import os
from abc import ABC, abstractmethod
import polars as pl

class BaseReader(ABC):
    """Abstract base class for all file readers."""

    def __init__(self, path: str):
        """
        Initializes the reader with the path to the source file.

        Args:
            path: The full path to the file to be read.
        """
        self.path = path

    @abstractmethod
    def read(self) -> pl.DataFrame:
        """Reads a file and returns its content as a Polars DataFrame."""

class CsvReader(BaseReader):
    """Reads data from a CSV file."""
    def read(self) -> pl.DataFrame:
        return pl.read_csv(self.path, try_parse_dates=True)

class JsonReader(BaseReader):
    """Reads data from a JSON array, or from newline-delimited JSON as written by JsonWriter."""
    def read(self) -> pl.DataFrame:
        with open(self.path, 'r', encoding="utf-8") as f:
            first_char = f.read(1)
        if first_char == "[":
            return pl.read_json(self.path)
        return pl.read_ndjson(self.path)

class ParquetReader(BaseReader):
    """Reads data from a Parquet file."""
    def read(self) -> pl.DataFrame:
        return pl.read_parquet(self.path)

class XlsxReader(BaseReader):
    """Reads data from an Excel (.xlsx) file."""
    def read(self) -> pl.DataFrame:
        return pl.read_excel(self.path)

READER_MAP = {
    ".csv": CsvReader,
    ".json": JsonReader,
    ".parquet": ParquetReader,
    ".xlsx": XlsxReader,
}

def read_table(path: str) -> pl.DataFrame:
    """
    Reads a table with the reader matching the file extension.

    Raises:
        ValueError: For an unsupported extension.
    """
    file_extension = os.path.splitext(path)[1].lower()
    reader_class = READER_MAP.get(file_extension)
    if not reader_class:
        raise ValueError(f"Unsupported file type: {file_extension}")
    return reader_class(path).read()
