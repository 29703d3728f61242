"""
Invoicing Documents - ZIP Bundle
================================
One archive with every PDF rendered by a batch run, for download.

Entry names: {invoice number}_{client name, cleaned, max 30 chars}.pdf
"""

from __future__ import annotations

import io
import re
import zipfile
from dataclasses import dataclass
from typing import Iterable

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9]+")
CLIENT_NAME_MAX = 30


@dataclass(frozen=True)
class BundleEntry:
    number: str
    client_name: str
    pdf: bytes


def bundle_entry_name(number: str, client_name: str) -> str:
    clean = _UNSAFE_CHARS.sub("_", client_name).strip("_")[:CLIENT_NAME_MAX]
    return f"{number}_{clean or 'client'}.pdf"


def build_document_bundle(entries: Iterable[BundleEntry]) -> bytes:
    """ZIP the given PDFs in order. Raises ValueError when there is nothing to bundle."""
    buffer = io.BytesIO()
    count = 0
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for entry in entries:
            archive.writestr(bundle_entry_name(entry.number, entry.client_name), entry.pdf)
            count += 1
    if not count:
        raise ValueError("No documents to bundle.")
    return buffer.getvalue()
