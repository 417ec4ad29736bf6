# studenthome/core/extract/__init__.py
from .html_records import extract_from_html, university_from_url
from .json_records import extract_document, extract_records, load_input_file, parse_universities
from .shapes import detect_shape, is_listing

__all__ = [
    "extract_records",
    "extract_document",
    "load_input_file",
    "parse_universities",
    "extract_from_html",
    "university_from_url",
    "detect_shape",
    "is_listing",
]
