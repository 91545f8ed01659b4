from __future__ import annotations

from pathlib import Path
from typing import List

from content_renamer.config import (
    IMAGE_EXTENSIONS,
    MIN_TEXT_LENGTH_FOR_OCR_SKIP,
    PDF_EXTENSIONS,
    PDF_MAX_PAGES,
    TEXT_EXTENSIONS,
    TEXT_FILE_MAX_CHARS,
    AppConfig,
)
from content_renamer.extract.text_utils import normalize_extracted_text, primary_language


def can_extract(path: Path) -> bool:
    return path.suffix.lower() in PDF_EXTENSIONS | IMAGE_EXTENSIONS | TEXT_EXTENSIONS


def extract_pdf_text(path: Path, max_pages: int = PDF_MAX_PAGES) -> tuple[str, list[str]]:
    text_parts: List[str] = []
    notes: list[str] = []
    try:
        import pdfplumber  # type: ignore

        with pdfplumber.open(str(path)) as pdf:
            for page in pdf.pages[:max_pages]:
                text_parts.append(page.extract_text() or "")
                if sum(len(p) for p in text_parts) > MIN_TEXT_LENGTH_FOR_OCR_SKIP:
                    break
        notes.append("embedded_text_extracted:pdfplumber")
    except Exception as exc_pdfplumber:
        notes.append(f"embedded_text_error:pdfplumber:{type(exc_pdfplumber).__name__}")
        text_parts = []
        try:
            from pypdf import PdfReader  # type: ignore

            reader = PdfReader(str(path))
            for page in reader.pages[:max_pages]:
                text_parts.append(page.extract_text() or "")
                if sum(len(p) for p in text_parts) > MIN_TEXT_LENGTH_FOR_OCR_SKIP:
                    break
            notes.append("embedded_text_extracted:pypdf")
        except Exception as exc_pypdf:
            notes.append(f"embedded_text_error:pypdf:{type(exc_pypdf).__name__}")
            return "", notes
    return "\n".join(text_parts).strip(), notes


def tesseract_options(config: AppConfig) -> tuple[str, str]:
    lang = primary_language(config.tesseract_language)
    options = f'--oem 1 --psm 6 --tessdata-dir "{config.tesseract_data_path}"'
    return lang, options


def ocr_image_or_pdf(path: Path, config: AppConfig, max_pages: int = PDF_MAX_PAGES) -> tuple[str, list[str]]:
    notes: list[str] = []
    if not Path(config.tesseract_data_path).is_dir():
        notes.append("ocr_unavailable:tessdata_missing")
        return "", notes
    try:
        import pytesseract  # type: ignore
        from PIL import Image, ImageOps  # type: ignore
    except Exception as exc:
        notes.append(f"ocr_unavailable:{type(exc).__name__}")
        return "", notes

    lang, options = tesseract_options(config)

    def _ocr_image(img: "Image.Image") -> str:
        img = ImageOps.grayscale(img)
        img = ImageOps.autocontrast(img)
        return pytesseract.image_to_string(img, lang=lang, config=options)

    if path.suffix.lower() in IMAGE_EXTENSIONS:
        try:
            with Image.open(path) as img:
                return _ocr_image(img), ["ocr_applied:image"]
        except Exception as exc:
            notes.append(f"ocr_error:image:{type(exc).__name__}")
            return "", notes

    try:
        from pdf2image import convert_from_path  # type: ignore

        pages = convert_from_path(str(path), dpi=300, first_page=1, last_page=max_pages)
        notes.append(f"ocr_pdf_page_count:{len(pages)}")
        text = "\n".join(_ocr_image(p) for p in pages)
        if text.strip():
            notes.append("ocr_applied:pdf")
        return text, notes
    except Exception as exc:
        notes.append(f"ocr_error:pdf:{type(exc).__name__}")
        return "", notes


def read_text_file(path: Path, max_chars: int = TEXT_FILE_MAX_CHARS) -> tuple[str, list[str]]:
    try:
        with path.open("r", encoding="utf-8", errors="replace") as f:
            return f.read(max_chars), ["text_file_read"]
    except OSError as exc:
        return "", [f"text_file_error:{type(exc).__name__}"]


def get_document_text(path: Path, config: AppConfig) -> tuple[str, list[str]]:
    suffix = path.suffix.lower()
    notes: list[str] = []
    text = ""
    if suffix in TEXT_EXTENSIONS:
        text, notes = read_text_file(path)
    elif suffix in IMAGE_EXTENSIONS:
        text, notes = ocr_image_or_pdf(path, config)
    elif suffix in PDF_EXTENSIONS:
        text, notes = extract_pdf_text(path)
        if len(text) < MIN_TEXT_LENGTH_FOR_OCR_SKIP:
            ocr_text, ocr_notes = ocr_image_or_pdf(path, config)
            notes.extend(ocr_notes)
            if ocr_text:
                text = f"{text}\n{ocr_text}".strip()
    else:
        notes.append(f"unsupported_extension:{suffix}")
    return normalize_extracted_text(text), notes
