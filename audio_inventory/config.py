"""
Configuration constants for the audio inventory.
"""

# --- Container Families ---
WAV_EXTS = {'.wav'}
WAC_EXTS = {'.wac'}
FLAC_EXTS = {'.flac'}

FAMILY_EXTS = {
    'wav': WAV_EXTS,
    'wac': WAC_EXTS,
    'flac': FLAC_EXTS,
}

# Extension to family mapping, used to tag files without if/else chains
EXT_TO_FAMILY = {}
for family, exts in FAMILY_EXTS.items():
    for ext in exts:
        EXT_TO_FAMILY[ext] = family

# Accepted values for the file-type selector
FILE_TYPES = ('wav', 'wac', 'flac', 'all')

# --- Size Classification ---
# Files at or below this size are too small to hold a reliable header.
UNSAFE_SIZE_THRESHOLD = 500_000  # 0.5 MB
BYTES_PER_MB = 1_000_000

# --- Filename Parsing ---
# Recorder firmware writes this character into the name when the clock was GPS-synced
GPS_MARKER = '$'

# Tried in order. Firmware channel markers must come before the plain underscore.
FILENAME_SEPARATORS = [
    '_0+1_',
    '_1+2_',
    '_0+2_',
    '__0__',
    '__1__',
    '_',
]

# Leftover markers stripped from the front of the date-time remainder.
# The GPS marker is appended by the parser.
LEADING_MARKERS = [r'\d\+\d_', r'\d__', r'[_+\-]']

# Compact date-time, e.g. 20220615_060000
TIMESTAMP_PATTERN = r'^(\d{8})[_T\-]?(\d{6})'
TIMESTAMP_FORMAT = '%Y%m%d%H%M%S'

# --- Binary Header (Family B, .wac) ---
# name(4s) version(B) n_channels(B) frame_size(H) block_size(H) flags(H) sample_rate(I) samples(I)
WAC_HEADER_FORMAT = '<4sBBHHHII'

# Family A/C lengths are rounded; Family B is not.
LENGTH_DECIMALS = 2

# --- Performance ---
DEFAULT_MAX_WORKERS = 4

# --- Catalog / Staging ---
JOIN_KEY_FORMAT = '{location}_{timestamp:%Y%m%d_%H%M%S}'
CATALOG_DATE_FORMATS = [
    '%Y-%m-%d %H:%M:%S',
    '%Y/%m/%d %H:%M:%S',
    '%Y%m%d_%H%M%S',
    '%Y%m%d%H%M%S',
]
UNKNOWN_LOCATION_DIR = 'unknown'
