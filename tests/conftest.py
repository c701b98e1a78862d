"""Shared pytest fixtures for the full pagevoice test suite."""

from __future__ import annotations

import pytest

from tests.pdf_factory import book_page, build_pdf


@pytest.fixture
def two_page_book_pdf() -> bytes:
    """Provide a two-page PDF with running headers and page-number footers."""

    return build_pdf(
        [
            book_page("Running Header", ["Page one text."], "Footer 1"),
            book_page("Running Header", ["Page two text."], "Footer 2"),
        ]
    )
