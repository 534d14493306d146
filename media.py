from typing import Optional
from urllib.parse import parse_qs, urlparse

VIDEO_HOSTS = ("youtube.com", "youtu.be", "vimeo.com")
VIDEO_EXTENSIONS = (".mp4", ".webm")
YOUTUBE_EMBED = "https://www.youtube.com/embed/{}"


def is_valid_url(url: Optional[str]) -> bool:
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return bool(parsed.scheme)


def is_video_url(url: str) -> bool:
    return any(host in url for host in VIDEO_HOSTS) or url.endswith(VIDEO_EXTENSIONS)


def embed_url(url: str) -> str:
    """Rewrite YouTube watch and youtu.be links to the embeddable player URL.

    Anything else is returned unchanged for native playback.
    """
    if "youtube.com/watch?v=" in url:
        video_id = parse_qs(urlparse(url).query).get("v", [""])[0]
        return YOUTUBE_EMBED.format(video_id)
    if "youtu.be/" in url:
        video_id = urlparse(url).path.lstrip("/").split("/")[0]
        return YOUTUBE_EMBED.format(video_id)
    return url


def render_media(post: dict) -> dict:
    """Drop unparseable URLs from a post and add the video embed URL."""
    for field in ("imageUrl", "linkUrl", "videoUrl"):
        if post.get(field) and not is_valid_url(post[field]):
            post[field] = None
    video = post.get("videoUrl")
    post["videoEmbedUrl"] = embed_url(video) if video and is_video_url(video) else None
    return post
