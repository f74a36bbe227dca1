"""
Helpers for the .xlsx container format and its HTTP transport.
"""
import io
import logging
import zipfile
from typing import Dict, Optional
from urllib.parse import quote
from xml.etree import ElementTree

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# ZIP local file header, end of central directory, data descriptor
XLSX_SIGNATURES = (
    b"\x50\x4b\x03\x04",
    b"\x50\x4b\x05\x06",
    b"\x50\x4b\x07\x08",
)

CACHE_CONTROL = "no-store,no-cache,must-revalidate"
PRAGMA = "no-cache"
NOSNIFF = "nosniff"

APP_PROPERTIES_PART = "docProps/app.xml"
EXTENDED_NS = "http://schemas.openxmlformats.org/officeDocument/2006/extended-properties"
VT_NS = "http://schemas.openxmlformats.org/officeDocument/2006/docPropsVTypes"
# Elements of app.xml that identify the generating software or organisation
PROVENANCE_ELEMENTS = ("Application", "AppVersion", "Company", "Manager")


def has_excel_format(content_type: Optional[str], content: Optional[bytes]) -> bool:
    """
    Check that an upload really is an .xlsx workbook.

    The declared content type must be the xlsx media type and the first
    four bytes must carry a ZIP signature, so a forged Content-Type header
    alone is not enough.

    Args:
        content_type: Content type declared by the client
        content: Uploaded bytes

    Returns:
        bool: True if both checks pass; False otherwise, including when
        the content is missing or unreadable
    """
    if not content:
        return False
    if content_type != XLSX_MEDIA_TYPE:
        return False
    try:
        header = bytes(content[:4])
    except (TypeError, ValueError):
        logger.error("Error reading file bytes for signature validation", exc_info=True)
        return False
    if len(header) < 4:
        return False
    return header in XLSX_SIGNATURES


def create_excel_headers(file_name: str, content: bytes) -> Dict[str, str]:
    """
    Build the response headers for a workbook download.

    Args:
        file_name: Name offered to the client, URL-encoded in the header
        content: Workbook bytes, used for Content-Length

    Returns:
        Dict of header names to values
    """
    encoded_file_name = quote(file_name, safe="")
    return {
        "Content-Type": XLSX_MEDIA_TYPE,
        "Content-Disposition": f'attachment; filename="{encoded_file_name}"',
        "Cache-Control": CACHE_CONTROL,
        "Pragma": PRAGMA,
        "X-Content-Type-Options": NOSNIFF,
        "Content-Length": str(len(content)),
    }


def _scrub_app_properties(xml_bytes: bytes) -> bytes:
    ElementTree.register_namespace("", EXTENDED_NS)
    ElementTree.register_namespace("vt", VT_NS)
    root = ElementTree.fromstring(xml_bytes)
    for name in PROVENANCE_ELEMENTS:
        for element in root.findall(f"{{{EXTENDED_NS}}}{name}"):
            root.remove(element)
    return ElementTree.tostring(root, encoding="UTF-8", xml_declaration=True)


def strip_application_properties(content: bytes) -> bytes:
    """
    Remove software provenance from a saved workbook.

    The workbook writer always emits an extended-properties part naming the
    application, so the part is rewritten inside the ZIP container.

    Args:
        content: Saved .xlsx bytes

    Returns:
        The workbook bytes with Application, AppVersion, Company and Manager removed
    """
    source = io.BytesIO(content)
    target = io.BytesIO()
    with zipfile.ZipFile(source) as zin, zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zout:
        for item in zin.infolist():
            data = zin.read(item.filename)
            if item.filename == APP_PROPERTIES_PART:
                data = _scrub_app_properties(data)
            zout.writestr(item, data)
    return target.getvalue()
