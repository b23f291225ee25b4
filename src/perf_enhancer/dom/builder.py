# src/perf_enhancer/dom/builder.py
import logging

from bs4 import BeautifulSoup, Doctype

from .models import HTMLDocument

logger = logging.getLogger(__name__)


class DocumentStructureError(ValueError):
    """Raised when parsed markup lacks the <head> or <body> the pipeline needs."""


class DOMBuilder:
    """
    Parses raw HTML into an HTMLDocument and serializes it back.

    Uses BeautifulSoup with the tolerant 'html.parser' backend, so malformed
    markup degrades into a best-effort tree instead of raising. Attributes are
    kept as plain strings (no multi-valued `class`/`rel` lists) so values
    round-trip exactly.
    """

    parser_name = "html.parser"

    def parse_doc(self, html: str) -> HTMLDocument:
        """
        Parses markup into an HTMLDocument.

        Args:
            html (str): The full page markup.

        Returns:
            HTMLDocument: The document with head and body resolved.

        Raises:
            DocumentStructureError: If the markup has no <head> or no <body>.
        """
        if not html or not html.strip():
            raise DocumentStructureError("Cannot build a document from empty markup.")

        # A BOM in the middle of the buffer ends up as stray text
        clean_html = html.replace("\ufeff", "")
        soup = BeautifulSoup(clean_html, self.parser_name, multi_valued_attributes=None)

        head = soup.find("head")
        body = soup.find("body")
        if head is None or body is None:
            raise DocumentStructureError(
                f"Document is missing required elements (head={head is not None}, body={body is not None})."
            )

        has_doctype = any(isinstance(item, Doctype) for item in soup.contents)
        logger.debug("Parsed document (doctype=%s, %d chars).", has_doctype, len(clean_html))
        return HTMLDocument(soup=soup, head=head, body=body, has_doctype=has_doctype)

    @staticmethod
    def serialize(doc: HTMLDocument) -> str:
        """Serializes the (mutated) tree back to markup."""
        return doc.soup.decode(formatter="minimal")
