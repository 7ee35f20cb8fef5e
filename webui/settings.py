"""
BGPsec Filter WebUI Settings
Centralized paths and environment variables
"""

import os
from pathlib import Path

# Base directory paths
DATA_DIR = Path(os.getenv('BGPSEC_FILTER_DATA_DIR', '/var/lib/bgpsec-filter'))

# Environment configuration
BGPSEC_FILTER_WEBUI_LOG_LEVEL = os.getenv('BGPSEC_FILTER_WEBUI_LOG_LEVEL', 'INFO').upper()
