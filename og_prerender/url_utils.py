"""Shared URL and path utilities."""

from __future__ import annotations

from pathlib import PurePosixPath

INDEX_FILE = "index.html"
IMAGE_DIR = "__og_image__"
IMAGE_FILE = "og.png"


def has_file_extension(path: str) -> bool:
    """True when the last path segment looks like a file (``/feed.xml``)."""
    last = path.rstrip("/").rsplit("/", 1)[-1]
    return "." in last


def split_segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def join_url(origin: str, path: str) -> str:
    """Join a server origin and a route path with exactly one slash."""
    if not path:
        return origin
    return origin.rstrip("/") + "/" + path.lstrip("/")


def route_for_file(file_name: str) -> str:
    """Route path served for a rendered file relative to the public dir."""
    posix = PurePosixPath(file_name)
    if posix.name == INDEX_FILE:
        parent = posix.parent.as_posix()
        return "/" if parent == "." else f"/{parent}"
    return "/" + posix.with_suffix("").as_posix()


def output_path_for(file_name: str) -> str:
    """Output image path for a rendered file, relative to the public dir.

    ``blog/post/index.html`` -> ``blog/post/__og_image__/og.png``
    """
    if PurePosixPath(file_name).name == INDEX_FILE:
        prefix = file_name[: -len(INDEX_FILE)]
    else:
        prefix = PurePosixPath(file_name).with_suffix("").as_posix()
    if prefix and not prefix.endswith("/"):
        prefix += "/"
    return f"{prefix.lstrip('/')}{IMAGE_DIR}/{IMAGE_FILE}"
