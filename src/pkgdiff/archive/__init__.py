"""Archive layer — gzip decoding, tar parsing, path normalization."""

from pkgdiff.archive.extract import extract_package
from pkgdiff.archive.gzip import DecompressionError, decompress
from pkgdiff.archive.models import ArchiveEntry, EntryKind, ExtractedPackage, file_content
from pkgdiff.archive.paths import ensure_directories, normalize_path, strip_common_root
from pkgdiff.archive.tar import MalformedArchiveError, TarMember, iter_members, parse_archive

__all__ = [
    "ArchiveEntry",
    "DecompressionError",
    "EntryKind",
    "ExtractedPackage",
    "MalformedArchiveError",
    "TarMember",
    "decompress",
    "ensure_directories",
    "extract_package",
    "file_content",
    "iter_members",
    "normalize_path",
    "parse_archive",
    "strip_common_root",
]
