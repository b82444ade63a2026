# core/pdf_text.py
from typing import List, Tuple
import fitz
from core.page_layout import build_lines
from model.layout import PageLayout, TextItem
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


def extract_pages_texts(file_bytes: bytes) -> List[Tuple[int, str]]:
    """
    Return [(page_number, page_text)] for the whole PDF.
    If parsing fails, returns [].
    """
    try:
        out: List[Tuple[int, str]] = []
        with timed(logger, "pdf.open"):
            with fitz.open(stream=file_bytes, filetype="pdf") as doc:
                pages = doc.page_count
                with timed(logger, "pdf.parse", pages=pages):
                    for i in range(pages):
                        page = doc.load_page(i)
                        txt = (page.get_text("text") or "").strip()
                        out.append((i + 1, txt))
        logger.info("pdf.pages count=%d", len(out))
        return out
    except Exception:
        # do not log payloads
        logger.error("pdf.parse.error", exc_info=True)
        return []


def extract_full_text(file_bytes: bytes) -> Tuple[str, int]:
    """(full text with pages separated by blank lines, page count)."""
    pages = extract_pages_texts(file_bytes)
    return "\n\n".join(txt for _, txt in pages if txt), len(pages)


def _page_items(page: "fitz.Page") -> List[TextItem]:
    """
    One TextItem per PyMuPDF span. PyMuPDF already uses a top-left origin; the
    span origin's y is the baseline.
    """
    items: List[TextItem] = []
    for block in page.get_text("dict").get("blocks", []):
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                text = span.get("text") or ""
                if not text.strip():
                    continue
                x0, y0, x1, y1 = span["bbox"]
                baseline = span.get("origin", (x0, y1))[1]
                items.append(
                    TextItem(
                        text=text,
                        x=x0,
                        y=baseline,
                        width=x1 - x0,
                        height=max(baseline - y0, span.get("size", 0.0) or 0.0),
                    )
                )
    return items


def extract_page_layouts(file_bytes: bytes) -> List[PageLayout]:
    """
    Ground-truth layouts for claim pinning: positioned items plus
    reconstructed lines per page, in page units.
    """
    try:
        out: List[PageLayout] = []
        with fitz.open(stream=file_bytes, filetype="pdf") as doc:
            with timed(logger, "pdf.layout", pages=doc.page_count):
                for i in range(doc.page_count):
                    page = doc.load_page(i)
                    items = _page_items(page)
                    out.append(
                        PageLayout(
                            pageNum=i + 1,
                            width=page.rect.width,
                            height=page.rect.height,
                            items=items,
                            lines=build_lines(items),
                        )
                    )
        logger.info("pdf.layout.pages count=%d", len(out))
        return out
    except Exception:
        logger.error("pdf.layout.error", exc_info=True)
        return []
