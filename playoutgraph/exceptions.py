from typing import Optional


class ValidationError(Exception):
    """Raised when configuration or playlist input is invalid."""

    def __init__(
        self,
        message: str,
        line_number: Optional[int] = None,
        column_number: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.line_number = line_number
        self.column_number = column_number

    def __str__(self):
        if self.line_number is not None:
            return f"Validation Error: {self.message} (Line: {self.line_number}, Column: {self.column_number})"
        return f"Validation Error: {self.message}"


class ProbeError(Exception):
    """ffprobe の実行または出力解析に失敗したことを表す例外。"""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    def __str__(self):
        if self.source:
            return f"Probe Error: {self.message} (Source: {self.source})"
        return f"Probe Error: {self.message}"
