"""Utility functions for ledgerrecon."""

from ledgerrecon.utils.date_parser import parse_date
from ledgerrecon.utils.amount_parser import parse_amount
from ledgerrecon.utils.logging_config import get_logger, setup_logging

__all__ = ["parse_date", "parse_amount", "get_logger", "setup_logging"]
