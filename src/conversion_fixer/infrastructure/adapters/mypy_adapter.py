import logging
import os
import re
import subprocess
import sys

from conversion_fixer.domain.config import ConfigurationLoader
from conversion_fixer.domain.constants import DIAGNOSTIC_ID, MYPY_YIELD_MESSAGE_PREFIX
from conversion_fixer.domain.entities import DiagnosticOccurrence, Document
from conversion_fixer.domain.exceptions import DiagnosticSourceError
from conversion_fixer.domain.protocols import DiagnosticSourceProtocol, FileSystemProtocol

logger = logging.getLogger(__name__)

# Pattern: file:line:col: error: message  [code]
_ERROR_LINE = re.compile(r"^(.*?):(\d+):(\d+): error: (.*?)  \[(.*?)\]$")


class MypyAdapter(DiagnosticSourceProtocol):
    """Adapter turning mypy output into incompatible-conversion diagnostics."""

    def __init__(
        self,
        config_loader: ConfigurationLoader,
        filesystem: FileSystemProtocol,
    ) -> None:
        self._config_loader = config_loader
        self._filesystem = filesystem

    def gather_diagnostics(self, target_path: str) -> list[DiagnosticOccurrence]:
        """Run mypy on ``target_path`` and keep the conversion errors."""
        command = [
            sys.executable,
            "-m",
            "mypy",
            "--show-column-numbers",
            "--no-error-summary",
            "--hide-error-context",
            *self._config_loader.mypy_args,
            target_path,
        ]
        logger.debug("Running %s", " ".join(command))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
                env=os.environ.copy(),
            )
        except OSError as e:
            raise DiagnosticSourceError(f"mypy could not be started: {e}") from e

        stderr_text = result.stderr or ""
        if "No module named mypy" in stderr_text:
            raise DiagnosticSourceError("mypy is not installed in this environment")
        # 0: clean, 1: type errors found, 2: mypy itself failed
        if result.returncode not in (0, 1):
            raise DiagnosticSourceError(
                (result.stdout + "\n" + stderr_text).strip()
                or f"mypy failed with exit code {result.returncode}"
            )
        return self.parse_output(result.stdout)

    def parse_output(self, output: str) -> list[DiagnosticOccurrence]:
        """Parse mypy lines, filter to configured codes and compute offsets."""
        codes = set(self._config_loader.mypy_codes)
        documents: dict[str, Document] = {}
        diagnostics: list[DiagnosticOccurrence] = []
        for line in output.splitlines():
            match = _ERROR_LINE.match(line)
            if not match:
                continue
            file_path, line_num, col_num, message, error_code = match.groups()
            if not self.is_conversion_error(error_code, message, codes):
                continue

            document = documents.get(file_path)
            if document is None:
                try:
                    document = self._filesystem.read_document(file_path)
                except OSError as e:
                    logger.warning("Cannot read %s reported by mypy: %s", file_path, e)
                    continue
                documents[file_path] = document

            line_no, column = int(line_num), int(col_num)
            diagnostics.append(
                DiagnosticOccurrence(
                    id=DIAGNOSTIC_ID,
                    path=file_path,
                    span_start=document.offset_of(line_no, column),
                    line=line_no,
                    column=column,
                    message=message,
                    source_code=error_code,
                )
            )
        return diagnostics

    @staticmethod
    def is_conversion_error(error_code: str, message: str, codes: set[str]) -> bool:
        if error_code not in codes:
            return False
        if error_code == "misc":
            return message.startswith(MYPY_YIELD_MESSAGE_PREFIX)
        return True
