"""Error taxonomy for modelrt.

Each error kind carries a stable numeric ``code`` so callers that work under
an error-code discipline can map exceptions back to plain integers.
"""

from __future__ import annotations

from typing import Any


ERROR_NONE = 0

ERROR_INVALID_ROW = 10
ERROR_INVALID_COLUMN = 11
ERROR_INVALID_INDEX = 12
ERROR_INVALID_MATRIX_DIMENSIONS = 13

ERROR_INVALID_RUNTIME_CONVERSION = 20

ERROR_INVALID_PARAMETER_VALUE = 30
ERROR_INVALID_NUMERIC_VALUE = 31

ERROR_FILE_OPEN = 40
ERROR_FILE_READ = 41
ERROR_FILE_WRITE = 42
ERROR_FILE_SEEK = 43
ERROR_FILE_CLOSE = 44
ERROR_INVALID_FILE_NUMBER = 45

ERROR_CAN_NOT_CONVERT_TO_STRING = 50
ERROR_INVALID_CONTAINER_CONTENTS = 51
ERROR_MALFORMED_STRING = 52


_ERROR_MESSAGES = {
    ERROR_NONE: "Success",
    ERROR_INVALID_ROW: "Invalid row",
    ERROR_INVALID_COLUMN: "Invalid column",
    ERROR_INVALID_INDEX: "Invalid index",
    ERROR_INVALID_MATRIX_DIMENSIONS: "Invalid matrix dimensions",
    ERROR_INVALID_RUNTIME_CONVERSION: "Invalid runtime conversion",
    ERROR_INVALID_PARAMETER_VALUE: "Invalid parameter value",
    ERROR_INVALID_NUMERIC_VALUE: "Invalid numeric value",
    ERROR_FILE_OPEN: "File open error",
    ERROR_FILE_READ: "File read error",
    ERROR_FILE_WRITE: "File write error",
    ERROR_FILE_SEEK: "File seek error",
    ERROR_FILE_CLOSE: "File close error",
    ERROR_INVALID_FILE_NUMBER: "Invalid file number",
    ERROR_CAN_NOT_CONVERT_TO_STRING: "Can not convert to string",
    ERROR_INVALID_CONTAINER_CONTENTS: "Invalid container contents",
    ERROR_MALFORMED_STRING: "Malformed string",
}


def error_message(code: int) -> str:
    """Return the short message registered for an error code."""
    return _ERROR_MESSAGES.get(int(code), "Unknown error")


class ModelRtError(Exception):
    """Base exception for all modelrt errors."""

    code: int = ERROR_NONE

    def __init__(self, message: str | None = None) -> None:
        if message is None:
            message = error_message(self.code)
        super().__init__(message)


class InvalidRow(ModelRtError, IndexError):
    code = ERROR_INVALID_ROW

    def __init__(self, index: int, bound: int) -> None:
        self.index = int(index)
        self.bound = int(bound)
        super().__init__(f"invalid row {self.index}, valid range is 1..{self.bound}")


class InvalidColumn(ModelRtError, IndexError):
    code = ERROR_INVALID_COLUMN

    def __init__(self, index: int, bound: int) -> None:
        self.index = int(index)
        self.bound = int(bound)
        super().__init__(f"invalid column {self.index}, valid range is 1..{self.bound}")


class InvalidIndex(ModelRtError, IndexError):
    code = ERROR_INVALID_INDEX

    def __init__(self, index: int, bound: int) -> None:
        self.index = int(index)
        self.bound = int(bound)
        super().__init__(f"invalid index {self.index}, valid range is 1..{self.bound}")


class InvalidMatrixDimensions(ModelRtError, ValueError):
    code = ERROR_INVALID_MATRIX_DIMENSIONS

    def __init__(
        self,
        rows: int,
        columns: int,
        other_rows: int | None = None,
        other_columns: int | None = None,
    ) -> None:
        self.rows = int(rows)
        self.columns = int(columns)
        self.other_rows = other_rows
        self.other_columns = other_columns
        if other_rows is None:
            msg = f"invalid matrix dimensions {self.rows}x{self.columns}"
        else:
            msg = (
                f"incompatible matrix dimensions {self.rows}x{self.columns} "
                f"and {other_rows}x{other_columns}"
            )
        super().__init__(msg)


class InvalidRuntimeConversion(ModelRtError, TypeError):
    code = ERROR_INVALID_RUNTIME_CONVERSION

    def __init__(self, source: Any, target: Any) -> None:
        self.source = source
        self.target = target
        super().__init__(
            f"can not convert {getattr(source, 'name', source)} to {getattr(target, 'name', target)}"
        )


class InvalidParameterValue(ModelRtError, ValueError):
    code = ERROR_INVALID_PARAMETER_VALUE


class InvalidNumericValue(ModelRtError, ValueError):
    code = ERROR_INVALID_NUMERIC_VALUE


class FileError(ModelRtError, OSError):
    """Filesystem failure; carries the OS error code and the path or handle number."""

    code = ERROR_FILE_OPEN

    def __init__(
        self,
        filename: str | None = None,
        errno_value: int = 0,
        *,
        file_number: int | None = None,
    ) -> None:
        self.filename = filename
        self.file_number = file_number
        self.errno = int(errno_value)
        where = filename if filename is not None else f"file #{file_number}"
        msg = error_message(self.code)
        if self.errno:
            msg += f" (errno {self.errno})"
        Exception.__init__(self, f"{msg}: {where}")

    def __str__(self) -> str:
        return str(self.args[0])


class FileOpenError(FileError):
    code = ERROR_FILE_OPEN


class FileReadError(FileError):
    code = ERROR_FILE_READ


class FileWriteError(FileError):
    code = ERROR_FILE_WRITE


class FileSeekError(FileError):
    code = ERROR_FILE_SEEK


class FileCloseError(FileError):
    code = ERROR_FILE_CLOSE


class InvalidFileNumber(FileError):
    code = ERROR_INVALID_FILE_NUMBER

    def __init__(self, file_number: int) -> None:
        super().__init__(None, 0, file_number=file_number)


class CanNotConvertToString(ModelRtError, ValueError):
    code = ERROR_CAN_NOT_CONVERT_TO_STRING


class InvalidContainerContents(ModelRtError, TypeError):
    code = ERROR_INVALID_CONTAINER_CONTENTS


class MalformedString(ModelRtError, ValueError):
    code = ERROR_MALFORMED_STRING

    def __init__(self, string: str, offset: int = 0) -> None:
        self.string = string
        self.offset = int(offset)
        super().__init__(f"malformed string {string!r} at offset {self.offset}")
