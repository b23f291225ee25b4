# src/perf_enhancer/dom/models.py
from typing import Optional

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, ConfigDict


class HTMLDocument(BaseModel):
    """
    The mutable tree for one response.

    Owns the parsed soup and keeps direct references to the <head> and
    <body> elements. Lives for a single pipeline invocation.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    soup: BeautifulSoup
    head: Tag
    body: Tag
    has_doctype: bool = False

    def get_element_by_id(self, element_id: str) -> Optional[Tag]:
        """Returns the first element carrying `id=element_id`, if any."""
        if not element_id:
            return None
        return self.soup.find(attrs={"id": element_id})
