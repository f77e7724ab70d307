"""Object keys for stored videos: <orientation>/<random base64url>.mp4"""
import base64
import secrets

from app.services.media_inspector import LANDSCAPE, PORTRAIT

KEY_RANDOM_BYTES = 32

ASPECT_PREFIXES = {
    LANDSCAPE: "landscape/",
    PORTRAIT: "portrait/",
}
OTHER_PREFIX = "other/"


def prefix_for_aspect_ratio(ratio: str) -> str:
    return ASPECT_PREFIXES.get(ratio, OTHER_PREFIX)


def random_token(nbytes: int = KEY_RANDOM_BYTES) -> str:
    return base64.urlsafe_b64encode(secrets.token_bytes(nbytes)).rstrip(b"=").decode("ascii")


def generate_video_key(ratio: str) -> str:
    # Not checked against existing keys; 256 random bits make collisions negligible.
    return f"{prefix_for_aspect_ratio(ratio)}{random_token()}.mp4"
