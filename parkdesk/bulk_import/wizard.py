"""
Bulk lot import wizard.

A plain state machine over ``ImportStep``; the Streamlit page and the
import API both drive it. Steps only move forward through the named
actions, and each action checks it is called from the right step.

Example:
    >>> wizard = ImportWizard()
    >>> wizard.load_file("lots.csv", data)
    >>> wizard.confirm_mapping()
    >>> results = wizard.run_import(client.bulk_create_lots)
"""

from __future__ import annotations

import concurrent.futures
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from parkdesk.bulk_import.fields import FIELDS_BY_KEY, SKIP
from parkdesk.bulk_import.mapping import apply_mapping, suggest_mapping, validate_mapping
from parkdesk.bulk_import.parsing import ParsedUpload, parse_upload
from parkdesk.bulk_import.preview import ImportPreview, build_preview
from parkdesk.bulk_import.results import ImportResults
from parkdesk.config import settings
from parkdesk.exceptions import InvalidStateError, ParkDeskError, ValidationError
from parkdesk.logging_config import get_logger, log_event

logger = get_logger(__name__)

Submit = Callable[[list[dict[str, Any]]], Any]
ProgressCallback = Callable[[int], None]


class ImportStep(str, Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    PREVIEW = "preview"
    IMPORTING = "importing"
    RESULTS = "results"


@dataclass
class ImportWizard:
    require_park_name: bool | None = None
    step: ImportStep = ImportStep.UPLOAD
    upload: ParsedUpload | None = None
    mapping: dict[str, str] = field(default_factory=dict)
    records: list[dict[str, Any]] = field(default_factory=list)
    progress: int = 0
    results: ImportResults | None = None
    error: str | None = None

    @property
    def headers(self) -> list[str]:
        return self.upload.headers if self.upload else []

    @property
    def rows(self) -> list[dict[str, Any]]:
        return self.upload.rows if self.upload else []

    def _require(self, action: str, *steps: ImportStep) -> None:
        if self.step not in steps:
            raise InvalidStateError(action, self.step.value)

    # -- upload ---------------------------------------------------------------

    def load_file(self, filename: str, data: bytes) -> ParsedUpload:
        self._require("load_file", ImportStep.UPLOAD)
        try:
            upload = parse_upload(filename, data)
        except ParkDeskError as exc:
            self.error = exc.user_message
            raise
        self.upload = upload
        self.mapping = suggest_mapping(upload.headers)
        self.error = None
        self.step = ImportStep.MAPPING
        return upload

    # -- mapping --------------------------------------------------------------

    def set_mapping(self, target: str, source: str) -> None:
        self._require("set_mapping", ImportStep.MAPPING)
        if target not in FIELDS_BY_KEY:
            raise ValidationError("unknown import field", field=target)
        if source != SKIP and source not in self.headers:
            raise ValidationError("column not found in file", field=target, detail=source)
        self.mapping[target] = source

    def confirm_mapping(self, mapping: dict[str, str] | None = None) -> ImportPreview:
        self._require("confirm_mapping", ImportStep.MAPPING)
        if mapping is not None:
            self.mapping = dict(mapping)
        try:
            active = validate_mapping(self.mapping, self.headers, require_park_name=self.require_park_name)
        except ParkDeskError as exc:
            self.error = exc.user_message
            raise
        self.records = apply_mapping(self.rows, active)
        self.error = None
        self.step = ImportStep.PREVIEW
        return self.preview()

    # -- preview --------------------------------------------------------------

    def preview(self, limit: int | None = None) -> ImportPreview:
        return build_preview(self.records, limit=limit)

    def back_to_mapping(self) -> None:
        self._require("back_to_mapping", ImportStep.PREVIEW)
        self.records = []
        self.step = ImportStep.MAPPING

    # -- importing ------------------------------------------------------------

    def tick(self) -> int:
        """Advance simulated progress one step, never past the cap."""
        self.progress = min(settings.import_progress_cap, self.progress + settings.import_progress_step)
        return self.progress

    def run_import(self, submit: Submit, on_progress: ProgressCallback | None = None) -> ImportResults:
        """
        Submit every mapped row as one batch.

        ``submit`` receives the row list and returns ``ImportResults`` (or
        the raw server payload). Progress ticks while the request is in
        flight. Any failure, including a response that cannot be read, puts
        the wizard back on PREVIEW with ``error`` set, then propagates.
        """
        self._require("run_import", ImportStep.PREVIEW)
        records = list(self.records)
        self.step = ImportStep.IMPORTING
        self.progress = 0
        self.error = None
        logger.info("import_started", extra={"row_count": len(records)})

        try:
            results = self._submit(submit, records, on_progress)
        except Exception as exc:
            self.step = ImportStep.PREVIEW
            self.progress = 0
            if isinstance(exc, ParkDeskError):
                self.error = exc.user_message
                error_code = exc.error_code
            else:
                self.error = str(exc) or type(exc).__name__
                error_code = type(exc).__name__
            logger.warning("import_failed", extra={"row_count": len(records), "error_code": error_code})
            raise

        self.results = results
        self.progress = 100
        log_event(
            "bulk_import_completed",
            row_count=len(records),
            successful=len(results.successful),
            failed=len(results.failed),
        )
        if on_progress:
            on_progress(self.progress)
        self.step = ImportStep.RESULTS
        return results

    def _submit(self, submit: Submit, records: list[dict[str, Any]], on_progress: ProgressCallback | None) -> ImportResults:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix="lot-import") as pool:
            future = pool.submit(submit, records)
            while True:
                try:
                    outcome = future.result(timeout=settings.import_progress_interval)
                    break
                except concurrent.futures.TimeoutError:
                    self.tick()
                    if on_progress:
                        on_progress(self.progress)
        if isinstance(outcome, ImportResults):
            return outcome
        return ImportResults.from_response(outcome, total=len(records))

    def reset(self) -> None:
        self.step = ImportStep.UPLOAD
        self.upload = None
        self.mapping = {}
        self.records = []
        self.progress = 0
        self.results = None
        self.error = None
