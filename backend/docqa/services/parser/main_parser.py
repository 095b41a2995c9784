import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

# Parsing Libraries
from pypdf import PdfReader
import docx
from pptx import Presentation # For PPTX

# Local Imports
from docqa.core.errors import DocumentLoadError
from docqa.models.data_models import Document

logger = logging.getLogger(__name__)

# --- PDF Parsing ---
def _parse_pdf(file_path: str) -> str:
    reader = PdfReader(file_path)
    pages = []
    for page_num, page in enumerate(reader.pages):
        page_text = page.extract_text() or ""
        if page_text.strip(): pages.append(page_text)
        else: logger.debug("[Parser] Page %d of %s: no extractable text.", page_num + 1, file_path)
    return "\n\n".join(pages)

# --- DOCX Parsing ---
def _parse_docx(file_path: str) -> str:
    doc = docx.Document(file_path)
    return "\n".join(para.text for para in doc.paragraphs if para.text.strip())

# --- PPTX Parsing ---
def _parse_pptx(file_path: str) -> str:
    prs = Presentation(file_path)
    slides = []
    for slide in prs.slides:
        slide_text = ""
        for shape in slide.shapes:
            if hasattr(shape, "text") and shape.text.strip():
                slide_text += shape.text + "\n"
        # Also check notes slide
        if slide.has_notes_slide and slide.notes_slide.notes_text_frame and slide.notes_slide.notes_text_frame.text.strip():
            slide_text += "\nNotes:\n" + slide.notes_slide.notes_text_frame.text + "\n"
        if slide_text: slides.append(slide_text)
    return "\n".join(slides)

# --- Plain Text Parsing (TXT, MD, CSV, JSON) ---
def _parse_text(file_path: str) -> str:
    with open(file_path, 'r', encoding='utf-8') as f:
        return f.read()

PARSERS: Dict[str, Callable[[str], str]] = {
    '.txt': _parse_text,
    '.md': _parse_text,
    '.csv': _parse_text,
    '.json': _parse_text,
    '.pdf': _parse_pdf,
    '.docx': _parse_docx,
    '.pptx': _parse_pptx,
}
SUPPORTED_EXTENSIONS = tuple(sorted(PARSERS))

@dataclass
class LoadResult:
    documents: List[Document] = field(default_factory=list)
    errors: List[DocumentLoadError] = field(default_factory=list)

class FileSystemDocumentSource:
    """
    Discovers supported files under a directory tree and turns each one into a Document.

    A file that fails to parse is reported in LoadResult.errors; it never stops the walk.
    """

    def __init__(self, extensions: Optional[Iterable[str]] = None):
        self.extensions = tuple(e.lower() for e in (extensions or SUPPORTED_EXTENSIONS))

    def _discover(self, root: Path) -> List[Path]:
        found = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith('.'))
            for name in sorted(filenames):
                if name.startswith('.'): continue
                path = Path(dirpath) / name
                if path.suffix.lower() in self.extensions: found.append(path)
                else: logger.info("[Parser Service] Skipping unsupported file type '%s': %s", path.suffix, path)
        return found

    def load_file(self, path: Path, root: Path) -> Document:
        source = path.relative_to(root).as_posix()
        file_type = path.suffix.lower()
        parser = PARSERS.get(file_type)
        if parser is None:
            raise DocumentLoadError(source, f"unsupported file type '{file_type}'")
        try:
            text = parser(str(path))
        except Exception as e:
            raise DocumentLoadError(source, str(e) or type(e).__name__) from e
        return Document(source=source, text=text, metadata={"path": str(path), "file_type": file_type.lstrip('.')})

    def load(self, root) -> LoadResult:
        root = Path(root)
        result = LoadResult()
        for path in self._discover(root):
            try:
                document = self.load_file(path, root)
            except DocumentLoadError as e:
                logger.warning("[Parser Service] Skipping unreadable document %s", e)
                result.errors.append(e)
                continue
            if not document.text.strip():
                logger.warning("[Parser Service] Skipping empty document: %s", document.source)
                continue
            result.documents.append(document)
        logger.info("[Parser Service] Loaded %d documents from %s (%d failed).", len(result.documents), root, len(result.errors))
        return result
