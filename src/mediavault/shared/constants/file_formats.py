"""
File Format Constants

Extensions and name patterns used by resolvers, ignore rules and
local metadata extractors.
"""

from __future__ import annotations

from typing import ClassVar


class VideoFormats:
    """Video file extensions."""

    EXTENSIONS: ClassVar[frozenset[str]] = frozenset(
        {
            ".264", ".265", ".3g2", ".3gp", ".amv", ".asf", ".avi", ".divx",
            ".dvr-ms", ".f4v", ".flv", ".gxf", ".h264", ".h265", ".hevc",
            ".img", ".ismv", ".iso", ".ivf", ".m1v", ".m2t", ".m2ts", ".m2v",
            ".m4v", ".mjpg", ".mjpeg", ".mk3d", ".mkv", ".mov", ".mp4",
            ".mpg", ".mpeg", ".mts", ".mxf", ".nut", ".nuv", ".ogm", ".ogv",
            ".ps", ".rec", ".ts", ".rm", ".rmvb", ".vdr", ".vro", ".vob",
            ".webm", ".wmv", ".wtv", ".y4m",
        }
    )


class AudioFormats:
    """Audio file extensions."""

    EXTENSIONS: ClassVar[frozenset[str]] = frozenset(
        {
            ".aac", ".aif", ".aiff", ".alac", ".ape", ".dsf", ".flac",
            ".m4a", ".m4b", ".mka", ".mp2", ".mp3", ".mpc", ".oga", ".ogg",
            ".opus", ".wav", ".wma", ".wv",
        }
    )


class ImageFormats:
    """Image file extensions."""

    EXTENSIONS: ClassVar[frozenset[str]] = frozenset(
        {
            ".bmp", ".gif", ".heic", ".heif", ".jpeg", ".jpg", ".png",
            ".tif", ".tiff", ".webp",
        }
    )
    ARTWORK_EXTENSIONS: ClassVar[tuple[str, ...]] = (".jpg", ".jpeg", ".png", ".webp")


class SidecarFormats:
    """Sidecar file names recognised by local metadata extractors."""

    NFO_EXTENSION = ".nfo"
    MOVIE_NFO = "movie.nfo"
    POSTER_NAMES: ClassVar[tuple[str, ...]] = ("poster", "folder", "cover")
    BACKDROP_NAMES: ClassVar[tuple[str, ...]] = ("fanart", "backdrop", "background")
    SIDECAR_EXTENSIONS: ClassVar[frozenset[str]] = frozenset({".nfo", ".srt", ".ass", ".ssa", ".sub", ".idx", ".vtt"})


class ExclusionPatterns:
    """Names and patterns skipped during traversal."""

    DIRECTORY_NAMES: ClassVar[frozenset[str]] = frozenset(
        {
            "extrafanart",
            "extrathumbs",
            ".actors",
            "lost+found",
            "#recycle",
            ".@__thumb",
            "@eadir",
            "subs",
        }
    )
    FILE_NAMES: ClassVar[frozenset[str]] = frozenset({"thumbs.db", ".ds_store"})
    HIDDEN_FILE_PATTERN = r"^\.[^.].*"
    SAMPLE_PATTERN = r"\bsample\b"
    TRICKPLAY_PATTERN = r"\.trickplay(\.\w+)?$"
    SMALL_IMAGE_PATTERN = r"(small|poster|albumart)\.(jpg|jpeg|png|webp)$"
    DOT_IGNORE_FILE = ".ignore"
