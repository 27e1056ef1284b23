"""
================================================================================
BOSS-Y CAMPUS NETWORK - BULK USER UPLOAD
================================================================================

@file        bulk_upload.py
@description Spreadsheet parsing and per-row user provisioning

SPREADSHEET FORMAT
================================================================================
First worksheet of an .xlsx file. Row 1 is the header and must name the
columns email, name, role, password (any order, case-insensitive; extra
columns are ignored). Every following non-blank row is one user.

PROCESSING
================================================================================
Straight loop, one process_user_upload() call per row, each inside its
own savepoint and try/except. A failing row becomes a BulkUploadError with
its spreadsheet row number and does not stop the loop. No batching and no
retry.

Final status:
    processed  at least one row succeeded, or nothing failed
    failed     every row failed, or the file could not be read
               (whole-file problems are recorded as row 0)

================================================================================
"""

import logging
from zipfile import BadZipFile

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from .models import BulkUploadError, BulkUserUpload, User

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('email', 'name', 'role', 'password')


class SpreadsheetFormatError(Exception):
    """The file is not a readable workbook or lacks a required column."""


def _cell_text(row, index):
    value = row[index] if index < len(row) else None
    if value is None:
        return ''
    # Numeric passwords come back as floats
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def read_user_rows(fileobj):
    """
    Parse the uploaded workbook into rows.

    Args:
        fileobj: Seekable binary file object holding an .xlsx workbook

    Returns:
        list[tuple[int, dict]]: (spreadsheet row number, {column: text})

    Raises:
        SpreadsheetFormatError: Unreadable workbook, empty sheet or
            missing column
    """
    if hasattr(fileobj, 'seek'):
        fileobj.seek(0)
    try:
        workbook = load_workbook(fileobj, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as exc:
        raise SpreadsheetFormatError(f"Could not read spreadsheet: {exc}") from exc

    try:
        rows = workbook.worksheets[0].iter_rows(values_only=True)
        header = next(rows, None)
        if not header:
            raise SpreadsheetFormatError("Spreadsheet is empty")

        columns = [str(c).strip().lower() if c is not None else '' for c in header]
        missing = [c for c in REQUIRED_COLUMNS if c not in columns]
        if missing:
            raise SpreadsheetFormatError(f"Missing column(s): {', '.join(missing)}")
        index = {c: columns.index(c) for c in REQUIRED_COLUMNS}

        parsed = []
        for row_number, row in enumerate(rows, start=2):
            values = {column: _cell_text(row, i) for column, i in index.items()}
            if not any(values.values()):
                continue
            parsed.append((row_number, values))
        return parsed
    finally:
        workbook.close()


def process_user_upload(email, password, name, role):
    """Create one approved account and return its id."""
    return User.objects.provision(email=email, password=password, name=name, role=role).pk


def _error_text(exc):
    if isinstance(exc, ValidationError):
        return '; '.join(exc.messages)
    return str(exc)


def process_upload(upload, fileobj):
    """
    Provision one user per spreadsheet row and record the outcome.

    Args:
        upload (BulkUserUpload): Record created by the admin view, status pending
        fileobj: The uploaded workbook

    Returns:
        BulkUserUpload: The same record with counts and final status saved
    """
    try:
        rows = read_user_rows(fileobj)
    except SpreadsheetFormatError as exc:
        logger.warning("Bulk upload %s rejected: %s", upload.pk, exc)
        BulkUploadError.objects.create(upload=upload, row_number=0, error_message=str(exc))
        upload.status = BulkUserUpload.STATUS_FAILED
        upload.save(update_fields=['status', 'updated_at'])
        return upload

    processed = failed = 0
    for row_number, values in rows:
        try:
            with transaction.atomic():
                process_user_upload(
                    values['email'], values['password'], values['name'], values['role']
                )
            processed += 1
        except (ValidationError, IntegrityError, ValueError) as exc:
            failed += 1
            logger.info("Bulk upload %s row %s failed: %s", upload.pk, row_number, exc)
            BulkUploadError.objects.create(
                upload=upload,
                row_number=row_number,
                error_message=_error_text(exc),
            )

    upload.processed_count = processed
    upload.failed_count = failed
    if processed or not failed:
        upload.status = BulkUserUpload.STATUS_PROCESSED
    else:
        upload.status = BulkUserUpload.STATUS_FAILED
    upload.save(update_fields=['processed_count', 'failed_count', 'status', 'updated_at'])
    logger.info(
        "Bulk upload %s finished: %s processed, %s failed", upload.pk, processed, failed
    )
    return upload
