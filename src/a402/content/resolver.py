"""
Content Source Resolver.

Classifies a configured content reference (IPFS CID or URL, direct media
URL, video-platform URL or bare video ID) into a ContentDescriptor the
player can load.

Rules are evaluated in order and the first match wins. Order matters: a
URL ending in .mp4 is direct media even if it also looks like a platform
URL, and a bare CID must be tested before the 11-character video-ID rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable

from a402.core.logging import get_logger
from a402.core.types import ContentDescriptor, ContentKind

logger = get_logger("content")

DEFAULT_IPFS_GATEWAY = "https://ipfs.io"
VIDEO_EMBED_BASE = "https://www.youtube.com/embed/"

_MEDIA_EXTENSION_RE = re.compile(r"\.(mp4|webm|ogg|mov|m3u8)(\?.*)?$", re.IGNORECASE)
_VIDEO_PLATFORM_RE = re.compile(
    r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/|youtube\.com/shorts/)"
    r"([A-Za-z0-9_-]{11})"
)
_BARE_CID_RE = re.compile(r"^(Qm[A-Za-z0-9]{44,}|bafy[A-Za-z0-9]{50,})$")
_BARE_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_IPFS_PATH_RE = re.compile(r"/ip[fn]s/")


@dataclass(frozen=True)
class ContentRule:
    """One classification rule: a predicate and the descriptor it builds."""

    name: str
    matches: Callable[[str], bool]
    build: Callable[[str], ContentDescriptor]


def _is_http(ref: str) -> bool:
    return ref.lower().startswith(("http://", "https://"))


class ContentSourceResolver:
    """
    Ordered classifier for content references.

    classify() is total: it never raises, and anything it cannot place is
    ContentKind.UNKNOWN with an empty locator.

    Usage:
        resolver = ContentSourceResolver(ipfs_gateway="https://ipfs.io")
        descriptor = resolver.classify("ipfs://QmHash")
        descriptor.resolved_locator  # https://ipfs.io/ipfs/QmHash
    """

    def __init__(self, ipfs_gateway: str = DEFAULT_IPFS_GATEWAY) -> None:
        self._gateway = (ipfs_gateway or DEFAULT_IPFS_GATEWAY).rstrip("/")
        self._rules: tuple[ContentRule, ...] = (
            ContentRule("ipfs-scheme", self._is_ipfs_scheme, self._build_ipfs_scheme),
            ContentRule("ipfs-path", lambda ref: bool(_IPFS_PATH_RE.search(ref)), self._build_as_is(ContentKind.IPFS)),
            ContentRule("media-extension", self._is_media_url, self._build_as_is(ContentKind.DIRECT_MEDIA)),
            ContentRule("video-platform-url", self._is_platform_url, self._build_platform_url),
            ContentRule("http-url", _is_http, self._build_as_is(ContentKind.DIRECT_MEDIA)),
            ContentRule("bare-cid", lambda ref: bool(_BARE_CID_RE.match(ref)), self._build_bare_cid),
            ContentRule("bare-video-id", lambda ref: bool(_BARE_VIDEO_ID_RE.match(ref)), self._build_video_id),
        )

    @property
    def ipfs_gateway(self) -> str:
        return self._gateway

    @property
    def rules(self) -> tuple[ContentRule, ...]:
        return self._rules

    def classify(self, ref: Any) -> ContentDescriptor:
        """Classify a content reference; first matching rule wins."""
        if not isinstance(ref, str) or not ref.strip():
            return ContentDescriptor(kind=ContentKind.UNKNOWN, resolved_locator="")

        ref = ref.strip()
        for rule in self._rules:
            if rule.matches(ref):
                descriptor = rule.build(ref)
                logger.debug(f"Content ref matched {rule.name}: {descriptor.kind.value}")
                return descriptor

        logger.warning(f"Unrecognized content reference: {ref[:60]}")
        return ContentDescriptor(kind=ContentKind.UNKNOWN, resolved_locator="")

    # ─── Predicates ──────────────────────────────────────────────────

    @staticmethod
    def _is_ipfs_scheme(ref: str) -> bool:
        return ref.lower().startswith("ipfs://")

    @staticmethod
    def _is_media_url(ref: str) -> bool:
        return ref.lower().startswith("http") and bool(_MEDIA_EXTENSION_RE.search(ref))

    @staticmethod
    def _is_platform_url(ref: str) -> bool:
        return _is_http(ref) and bool(_VIDEO_PLATFORM_RE.search(ref))

    # ─── Builders ────────────────────────────────────────────────────

    @staticmethod
    def _build_as_is(kind: ContentKind) -> Callable[[str], ContentDescriptor]:
        return lambda ref: ContentDescriptor(kind=kind, resolved_locator=ref)

    def _gateway_url(self, cid_path: str) -> str:
        return f"{self._gateway}/ipfs/{cid_path}"

    def _build_ipfs_scheme(self, ref: str) -> ContentDescriptor:
        return ContentDescriptor(kind=ContentKind.IPFS, resolved_locator=self._gateway_url(ref[len("ipfs://"):]))

    def _build_bare_cid(self, ref: str) -> ContentDescriptor:
        return ContentDescriptor(kind=ContentKind.IPFS, resolved_locator=self._gateway_url(ref))

    def _build_platform_url(self, ref: str) -> ContentDescriptor:
        video_id = _VIDEO_PLATFORM_RE.search(ref).group(1)
        return self._build_video_id(video_id)

    @staticmethod
    def _build_video_id(video_id: str) -> ContentDescriptor:
        return ContentDescriptor(
            kind=ContentKind.VIDEO_PLATFORM,
            resolved_locator=f"{VIDEO_EMBED_BASE}{video_id}",
            platform_id=video_id,
        )


def classify_content(ref: Any, ipfs_gateway: str = DEFAULT_IPFS_GATEWAY) -> ContentDescriptor:
    """Shortcut for ContentSourceResolver(ipfs_gateway).classify(ref)."""
    return ContentSourceResolver(ipfs_gateway).classify(ref)
