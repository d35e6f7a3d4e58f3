"""
Configuration constants for the media organizer.
"""
import re

# --- File Type Definitions ---
IMAGE_EXTS = {'.jpg', '.jpeg', '.png', '.gif', '.bmp', '.tiff', '.tif', '.heic', '.heif', '.webp'}
RAW_EXTS = {'.cr2', '.cr3', '.crw', '.raf', '.raw', '.dng', '.nef', '.arw', '.orf', '.rw2'}
VIDEO_EXTS = {'.mp4', '.mov', '.avi', '.mkv', '.m4v', '.wmv', '.flv', '.webm'}

MEDIA_EXTS = IMAGE_EXTS | RAW_EXTS | VIDEO_EXTS


# --- Cleanup ---
# Marker files that do not count as directory content
IGNORABLE_FILENAMES = {'.DS_Store', 'Thumbs.db', '.localized'}
APPLEDOUBLE_PREFIX = '._'

# --- Organization ---
FOLDER_PATTERN = "{year:04d}/{year:04d}-{month:02d}-{day:02d}"

# An organized tree is <root>/<YYYY>/<YYYY-MM-DD>/...; only these two segments are checked
ORGANIZED_YEAR_RE = re.compile(r'^\d{4}$')
ORGANIZED_DAY_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')

# Conflict-free names are <base>-<n><ext>, n starting at 1
CONFLICT_NAME_PATTERN = "{base}-{n}{ext}"

DUPLICATE_REASON = "Duplicate of {path}"

# --- Hashing ---
HASH_ALGORITHM = 'md5'

# --- CLI ---
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
