"""Extraction pipeline services."""

from .assembler import ResultAssembler, assemble_results
from .body_decoder import decode_body
from .gmail import build_search_query, message_from_gmail, message_from_mime
from .otp_reader import OtpReader
from .sender import extract_email_address

__all__ = [
    "OtpReader",
    "ResultAssembler",
    "assemble_results",
    "build_search_query",
    "decode_body",
    "extract_email_address",
    "message_from_gmail",
    "message_from_mime",
]
