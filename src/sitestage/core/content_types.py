"""Extension to content type table.

The most common standard extensions are supported, and html is delivered as
``application/xhtml+xml`` so markup errors show up immediately in the
browser. Some common non-standard extensions are explicitly refused so a
non-portable file fails loudly instead of being served with a guessed type.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

XHTML = "application/xhtml+xml"


class TypeStatus(Enum):
    """Outcome of an extension lookup."""

    KNOWN = "known"
    REFUSED = "refused"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class TypeLookup:
    """Result of TypeTable.lookup()."""

    status: TypeStatus
    mime_type: str | None = None

    @property
    def servable(self) -> bool:
        return self.status is TypeStatus.KNOWN


# None marks an extension that is refused rather than merely unknown
DEFAULT_TYPES: dict[str, str | None] = {
    "html": XHTML,
    "css": "text/css",
    "js": "application/javascript",
    "mjs": "application/javascript",  # ES modules
    "png": "image/png",
    "gif": "image/gif",
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "svg": "image/svg+xml",
    "json": "application/json",
    "pdf": "application/pdf",
    "txt": "text/plain",
    "ttf": "application/x-font-ttf",
    "woff": "application/font-woff",
    "aac": "audio/aac",
    "mp3": "audio/mpeg",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "ico": "image/x-icon",  # favicon.ico
    "xhtml": None,  # use .html
    "htm": None,  # use .html
    "rar": None,  # platform dependent, use .zip
    "doc": None,  # platform dependent, use .pdf
    "docx": None,  # platform dependent, use .pdf
}


class TypeTable:
    """Immutable mapping from file extension to MIME type.

    Distinguishes extensions that are not listed at all from extensions that
    are listed but refused. Both are unservable; the difference only records
    whether a type was deliberately turned away.
    """

    __slots__ = ("_types",)

    def __init__(self, types: Mapping[str, str | None] | None = None) -> None:
        """Build the table.

        Args:
            types: Extension (no dot) to MIME type, or None for refused
                extensions. Defaults to DEFAULT_TYPES.
        """
        source = DEFAULT_TYPES if types is None else types
        self._types: Mapping[str, str | None] = MappingProxyType(
            {ext.lower().lstrip("."): mime for ext, mime in source.items()},
        )

    def lookup(self, extension: str) -> TypeLookup:
        """Look up an extension.

        Args:
            extension: File extension without the dot, matched exactly as written

        Returns:
            TypeLookup with status KNOWN (and a MIME type), REFUSED or UNKNOWN
        """
        if extension not in self._types:
            return TypeLookup(TypeStatus.UNKNOWN)
        mime_type = self._types[extension]
        if mime_type is None:
            return TypeLookup(TypeStatus.REFUSED)
        return TypeLookup(TypeStatus.KNOWN, mime_type)

    def for_path(self, path: str) -> TypeLookup:
        """Look up the type of a path by the text after its last dot."""
        dot = path.rfind(".")
        if dot == -1 or "/" in path[dot:]:
            return TypeLookup(TypeStatus.UNKNOWN)
        return self.lookup(path[dot + 1 :])

    def __contains__(self, extension: object) -> bool:
        return isinstance(extension, str) and extension in self._types
