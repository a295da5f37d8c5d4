#!/usr/bin/env python3
"""
PDF text extraction for invoice parsing.

Only plain page text is produced here; the vendor parsers work on text and
do their own line reconstruction.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Union

import pdfplumber

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = (".txt", ".text")


class InvoiceTextError(Exception):
    """Raised when no text can be read from an invoice file."""


class PDFTextExtractor:
    """Extracts page text, trying pdfplumber first and pdftotext second."""

    def __init__(self):
        self.extraction_methods = [
            self._extract_with_pdfplumber,
            self._extract_with_pdftotext,
        ]

    def extract_text(self, pdf_path: str) -> str:
        """
        Extract text from a PDF.

        Args:
            pdf_path: Path to the PDF file

        Returns:
            Page text joined with line breaks, or "" if every method fails
        """
        for method in self.extraction_methods:
            try:
                text = method(pdf_path)
            except Exception as e:
                logger.warning(f"Method {method.__name__} failed: {e}")
                continue
            if text and text.strip():
                logger.info(f"Extracted {len(text)} characters using {method.__name__}")
                return text

        logger.error(f"All extraction methods failed for {pdf_path}")
        return ""

    def _extract_with_pdfplumber(self, pdf_path: str) -> str:
        pages: List[str] = []
        with pdfplumber.open(pdf_path) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    pages.append(page_text)
        return "\n".join(pages)

    def _extract_with_pdftotext(self, pdf_path: str) -> str:
        """Fall back to poppler's pdftotext when it is installed."""
        if shutil.which("pdftotext") is None:
            logger.debug("pdftotext not available")
            return ""

        result = subprocess.run(["pdftotext", "-raw", pdf_path, "-"], capture_output=True, text=True)
        if result.returncode != 0:
            logger.warning(f"pdftotext failed: {result.stderr.strip()}")
            return ""
        return result.stdout


def extract_pdf_text(pdf_path: str) -> str:
    """Convenience function to extract text from a PDF."""
    return PDFTextExtractor().extract_text(pdf_path)


def load_invoice_text(path: Union[str, Path]) -> str:
    """
    Read invoice text from a .txt dump or a .pdf file.

    Raises:
        InvoiceTextError: If the file yields no text (e.g. a scanned PDF)
    """
    path = Path(path)
    if path.suffix.lower() in TEXT_SUFFIXES:
        text = path.read_text(encoding="utf-8")
    else:
        text = extract_pdf_text(str(path))

    if not text.strip():
        raise InvoiceTextError(f"No text could be extracted from {path}; the PDF may be image-based")
    return text
