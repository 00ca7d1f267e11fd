"""RepositoryScanner: walks a repository and extracts functions and tests.

Files are processed independently, so extraction fans out over a thread
pool. Results are merged back in sorted path order, which keeps reports
identical between runs regardless of completion order.

Failure isolation:
    - An unreadable or unparsable file is logged, counted and skipped.
    - An exceeded deadline cancels pending work and fails the whole scan
      with ``AnalysisTimeoutError``; no partial result is returned.
"""

from __future__ import annotations

import fnmatch
import os
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Optional, Sequence, Union

from ..exceptions import AnalysisTimeoutError, FileAccessError, ParsingError
from ..logging_config import get_logger
from ..models import FunctionInfo, TestFileSummary
from .cues import DEFAULT_CUES, CueTables
from .functions import FunctionExtractor
from .syntax import LanguageSyntax
from .tests import TestExtractor

logger = get_logger(__name__)

# Default worker count: use CPU count, capped at 8 to avoid overwhelming I/O
_DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)


class Deadline:
    """A single wall-clock budget shared by every stage of one run."""

    def __init__(self, seconds: Optional[float] = None) -> None:
        self.seconds = seconds
        self._expires = time.monotonic() + seconds if seconds is not None else None

    def remaining(self) -> Optional[float]:
        if self._expires is None:
            return None
        return max(self._expires - time.monotonic(), 0.0)

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self, completed: int = 0, total: Optional[int] = None) -> None:
        if self.expired:
            raise AnalysisTimeoutError(self.seconds or 0.0, completed=completed, total=total)


@dataclass
class ScanResult:
    """Everything the extractor recovered from one repository."""

    functions: list[FunctionInfo] = field(default_factory=list)
    test_files: list[TestFileSummary] = field(default_factory=list)
    source_files: list[str] = field(default_factory=list)
    failed_files: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class RepositoryScanner:
    """Collects source and test files for one language and extracts them.

    Attributes:
        syntax: Language tables driving both extractors
        include_private: Keep non-exported functions in the inventory
    """

    def __init__(
        self,
        syntax: LanguageSyntax,
        cues: CueTables = DEFAULT_CUES,
        exclude_patterns: Sequence[str] = (),
        max_file_size_mb: float = 10.0,
        max_files: int = 10_000,
        include_private: bool = False,
        span_fallback_lines: int = 20,
        max_workers: Optional[int] = None,
    ) -> None:
        self.syntax = syntax
        self.exclude_patterns = list(exclude_patterns)
        self.max_file_size_mb = max_file_size_mb
        self.max_file_size = int(max_file_size_mb * 1024 * 1024)
        self.max_files = max_files
        self.include_private = include_private
        self._max_workers = max_workers or _DEFAULT_WORKERS
        self._functions = FunctionExtractor(syntax, cues, span_fallback_lines)
        self._tests = TestExtractor(syntax, cues, span_fallback_lines)

    # -- discovery ---------------------------------------------------------

    def collect(self, root: Path) -> tuple[list[str], list[str], list[str]]:
        """Find candidate files under ``root``.

        Returns:
            (source_paths, test_paths, warnings), paths repository-relative
            in POSIX form and sorted
        """
        sources: list[str] = []
        tests: list[str] = []
        warnings: list[str] = []
        count = 0

        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(
                d for d in dirnames if d not in self.syntax.skip_dirs and not d.startswith(".")
            )
            for filename in sorted(filenames):
                full = Path(dirpath) / filename
                rel = full.relative_to(root).as_posix()
                is_test = self.syntax.is_test_file(rel)
                if not is_test and not self.syntax.is_source_file(rel):
                    continue
                if self._excluded(rel):
                    logger.debug(f"Excluded by pattern: {rel}")
                    continue
                try:
                    size = full.stat().st_size
                except OSError as e:
                    logger.warning(f"Cannot stat {rel}: {e}")
                    continue
                if size > self.max_file_size:
                    warnings.append(f"Skipped {rel}: larger than {self.max_file_size_mb:g} MB")
                    continue
                if count >= self.max_files:
                    warnings.append(f"File limit of {self.max_files} reached; remaining files skipped")
                    return sorted(sources), sorted(tests), warnings
                count += 1
                (tests if is_test else sources).append(rel)

        return sorted(sources), sorted(tests), warnings

    def _excluded(self, rel: str) -> bool:
        path = PurePosixPath(rel)
        return any(path.match(p) or fnmatch.fnmatch(rel, p) for p in self.exclude_patterns)

    # -- extraction --------------------------------------------------------

    def scan(
        self,
        root: Union[str, Path],
        deadline: Optional[Deadline] = None,
        sources: bool = True,
        tests: bool = True,
    ) -> ScanResult:
        """Extract every source and test file under ``root``.

        ``sources`` and ``tests`` switch off extraction of either kind; the
        skipped files are neither read nor listed.

        Raises:
            AnalysisTimeoutError: If ``deadline`` expires before all files
                are processed
        """
        root = Path(root)
        deadline = deadline or Deadline()
        source_paths, test_paths, warnings = self.collect(root)
        if not sources:
            source_paths = []
        if not tests:
            test_paths = []
        jobs = [(rel, False) for rel in source_paths] + [(rel, True) for rel in test_paths]
        logger.info(f"Scanning {len(source_paths)} source and {len(test_paths)} test files")

        outputs = self._run(root, jobs, deadline)

        result = ScanResult(source_files=source_paths, warnings=warnings)
        for rel, is_test in jobs:
            if rel not in outputs:
                result.failed_files.append(rel)
                continue
            output = outputs[rel]
            if is_test:
                result.test_files.append(output)
            else:
                result.functions.extend(output)

        if result.failed_files:
            result.warnings.append(f"{len(result.failed_files)} file(s) could not be analyzed")
        return result

    def _run(self, root: Path, jobs: list[tuple[str, bool]], deadline: Deadline) -> dict:
        outputs: dict = {}
        if not jobs:
            return outputs

        executor = ThreadPoolExecutor(max_workers=self._max_workers)
        try:
            futures = {executor.submit(self.extract_file, root, rel, is_test): rel for rel, is_test in jobs}
            pending = set(futures)
            while pending:
                done, pending = wait(pending, timeout=deadline.remaining(), return_when=FIRST_COMPLETED)
                if not done or deadline.expired:
                    for future in pending:
                        future.cancel()
                    raise AnalysisTimeoutError(
                        deadline.seconds or 0.0, completed=len(futures) - len(pending), total=len(jobs)
                    )
                for future in done:
                    rel = futures[future]
                    try:
                        outputs[rel] = future.result()
                    except (FileAccessError, ParsingError) as e:
                        logger.warning(str(e))
                    except Exception as e:
                        logger.warning(f"Error extracting {rel}: {e}")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return outputs

    def extract_file(
        self, root: Path, rel: str, is_test: bool
    ) -> Union[list[FunctionInfo], TestFileSummary]:
        """Extract one file.

        Raises:
            FileAccessError: If the file cannot be read
            ParsingError: If extraction fails on its content
        """
        path = root / rel
        try:
            content = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise FileAccessError(path, f"OS error: {e}")

        try:
            if is_test:
                return self._tests.extract(content, rel)
            functions = self._functions.extract(content, rel)
        except (RecursionError, ValueError, IndexError) as e:
            raise ParsingError(path, self.syntax.name, str(e))

        if not self.include_private:
            functions = [f for f in functions if f.is_exported]
        return functions
