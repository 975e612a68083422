"""Utility functions shared across the lspnav application.

Path/text helpers and the position resolver live here.
"""

import logging

# Configure logger for this module
logger = logging.getLogger(__name__)
