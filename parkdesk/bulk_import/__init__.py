"""
Bulk lot import: parse an upload, map its columns, preview, submit.
"""

from parkdesk.bulk_import.fields import LOT_IMPORT_FIELDS, SKIP, ImportField, field_label, required_fields
from parkdesk.bulk_import.mapping import apply_mapping, suggest_mapping, validate_mapping
from parkdesk.bulk_import.parsing import ParsedUpload, parse_upload
from parkdesk.bulk_import.preview import ImportPreview, PreviewRow, build_preview
from parkdesk.bulk_import.results import ImportFailure, ImportResults, ImportWarning
from parkdesk.bulk_import.wizard import ImportStep, ImportWizard

__all__ = [
    "LOT_IMPORT_FIELDS",
    "SKIP",
    "ImportField",
    "field_label",
    "required_fields",
    "apply_mapping",
    "suggest_mapping",
    "validate_mapping",
    "ParsedUpload",
    "parse_upload",
    "ImportPreview",
    "PreviewRow",
    "build_preview",
    "ImportFailure",
    "ImportResults",
    "ImportWarning",
    "ImportStep",
    "ImportWizard",
]
