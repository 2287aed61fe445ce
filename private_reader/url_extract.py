from __future__ import annotations

import logging
import re
from urllib.parse import parse_qs, urlparse

import httpx
from bs4 import BeautifulSoup
from fastapi.concurrency import run_in_threadpool
from readability import Document
from youtube_transcript_api import YouTubeTranscriptApi

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 200
MAX_RAW_CONTENT = 30_000

_USER_AGENT = "Mozilla/5.0 (compatible; PrivateReader/1.0)"


def clean_text(text: str) -> str:
    text = text.replace("\u00a0", " ")
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def truncate(text: str, max_chars: int = MAX_RAW_CONTENT) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "\n\n[TRUNCATED]"


async def fetch_raw_content(url: str, transport: httpx.AsyncBaseTransport | None = None) -> str:
    """
    Fetch a resource page and return its main readable text.
    Readability first, BeautifulSoup body text as fallback; YouTube links use captions.
    The transcript fetch and HTML parsing are blocking and run in the threadpool.
    """
    yt_text = await run_in_threadpool(_try_youtube_transcript, url)
    if yt_text:
        return truncate(yt_text)

    async with httpx.AsyncClient(
        timeout=20,
        follow_redirects=True,
        headers={"User-Agent": _USER_AGENT},
        transport=transport,
    ) as client:
        r = await client.get(url)
        r.raise_for_status()
        html = r.text

    return truncate(await run_in_threadpool(extract_main_text, html))


def extract_main_text(html: str) -> str:
    try:
        doc = Document(html)
        soup = BeautifulSoup(doc.summary(html_partial=True), "html.parser")
        text = clean_text(soup.get_text("\n"))
        if len(text) >= MIN_TEXT_LENGTH:
            return text
    except Exception:
        logger.debug("Readability extraction failed; falling back to body text", exc_info=True)

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript", "header", "footer", "nav", "aside", "form"]):
        tag.decompose()
    return clean_text(soup.get_text("\n"))


def youtube_video_id(url: str) -> str | None:
    try:
        u = urlparse(url)
    except ValueError:
        return None

    host = (u.netloc or "").lower()
    path = u.path or ""

    if "youtu.be" in host:
        vid = path.strip("/").split("/")[0]
        return vid or None

    if "youtube.com" in host:
        vid = (parse_qs(u.query or "").get("v") or [None])[0]
        if vid:
            return vid
        if path.startswith("/embed/"):
            vid = path.split("/embed/", 1)[1].split("/")[0]
            return vid or None

    return None


def _try_youtube_transcript(url: str) -> str | None:
    vid = youtube_video_id(url)
    if not vid:
        return None

    try:
        fetched = YouTubeTranscriptApi().fetch(vid, languages=["en", "en-US", "en-GB"])
        text = clean_text("\n".join(snippet.text for snippet in fetched))
    except Exception:
        # Captions disabled or unavailable; the page HTML is used instead.
        logger.info("No transcript available for YouTube video %s", vid)
        return None
    return text if len(text) >= MIN_TEXT_LENGTH else None
